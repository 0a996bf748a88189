"""Streaming markup events for coverage reports.

``iter_report_events`` wraps defusedxml's ``iterparse`` and turns it into a
lazy, forward-only sequence of ``DocumentStart``, ``ElementStart`` and
``ElementEnd`` events. Tokenizer and I/O failures surface as
``MalformedMarkupError`` and ``SourceUnavailableError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError as DefusedParseError
from defusedxml.ElementTree import iterparse

from covtree.errors import MalformedMarkupError, SourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentStart:
    """Start of a document, carrying the identifier it was opened from."""

    source_id: str


@dataclass(frozen=True)
class ElementStart:
    """An element was opened."""

    tag: str
    attributes: Mapping[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str | None:
        """Return the attribute value, or None when the element lacks it."""
        return self.attributes.get(name)


@dataclass(frozen=True)
class ElementEnd:
    """An element was closed."""

    tag: str


ReportEvent = DocumentStart | ElementStart | ElementEnd


def _local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix from a tag."""
    if tag.startswith("{"):
        return tag.rsplit("}", maxsplit=1)[-1]
    return tag


def iter_report_events(path: str | Path) -> Iterator[ReportEvent]:
    """Yield markup events for the report at ``path``.

    The file is opened lazily on the first ``next()`` call and closed when the
    iterator is exhausted, fails, or is closed by the caller.

    Raises:
        SourceUnavailableError: If the file cannot be opened or read.
        MalformedMarkupError: If the content is not well-formed XML or uses
            forbidden constructs (entity declarations, external references).
    """
    source_id = Path(path).as_posix()
    try:
        stream = open(path, "rb")
    except OSError as e:
        raise SourceUnavailableError(source_id, e.strerror or str(e)) from e

    try:
        yield DocumentStart(source_id)
        for event, element in iterparse(stream, events=("start", "end")):
            tag = _local_name(element.tag)
            if event == "start":
                yield ElementStart(tag, dict(element.attrib))
            else:
                yield ElementEnd(tag)
                element.clear()
    except DefusedParseError as e:
        line, column = e.position
        raise MalformedMarkupError(str(e), source=source_id, line=line, column=column) from e
    except DefusedXmlException as e:
        raise MalformedMarkupError(str(e), source=source_id) from e
    except OSError as e:
        raise SourceUnavailableError(source_id, e.strerror or str(e)) from e
    finally:
        stream.close()
        logger.debug("Closed coverage report %s", source_id)
