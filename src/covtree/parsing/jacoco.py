"""JaCoCo XML report parser.

JaCoCo lists every ``<class>`` of a package before the ``<sourcefile>``
elements of that package, while in the coverage tree classes are children of
files. Class nodes are therefore buffered per package, keyed by their
``sourcefilename``, and attached when the matching ``<sourcefile>`` starts.

Counters become leaves only on METHOD nodes. Class, file and package
counters are aggregates of the method counters and are skipped.
"""

from __future__ import annotations

import logging
from contextlib import closing
from enum import Enum
from typing import TYPE_CHECKING

from covtree.errors import (
    InvalidAttributeError,
    MalformedMarkupError,
    MissingAttributeError,
)
from covtree.models.coverage import Coverage, CoverageLeaf, CoverageMetric, CoverageNode
from covtree.parsing.events import DocumentStart, ElementEnd, ElementStart, iter_report_events

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from covtree.parsing.events import ReportEvent

logger = logging.getLogger(__name__)


class ReportTag(Enum):
    """Elements of a JaCoCo report that the parser acts on."""

    REPORT = "report"
    PACKAGE = "package"
    CLASS = "class"
    SOURCEFILE = "sourcefile"
    METHOD = "method"
    COUNTER = "counter"

    @classmethod
    def lookup(cls, tag: str) -> ReportTag | None:
        """Return the member for ``tag``, or None for elements the parser skips."""
        try:
            return cls(tag)
        except ValueError:
            return None


_COUNTER_METRICS: dict[str, CoverageMetric] = {
    "LINE": CoverageMetric.LINE,
    "INSTRUCTION": CoverageMetric.INSTRUCTION,
    "BRANCH": CoverageMetric.BRANCH,
    "COMPLEXITY": CoverageMetric.COMPLEXITY,
}


def _require(element: ElementStart, attribute: str) -> str:
    value = element.get(attribute)
    if value is None:
        raise MissingAttributeError(element.tag, attribute)
    return value


def _require_count(element: ElementStart, attribute: str) -> int:
    value = _require(element, attribute)
    try:
        count = int(value)
    except ValueError:
        raise InvalidAttributeError(element.tag, attribute, value) from None
    if count < 0:
        raise InvalidAttributeError(element.tag, attribute, value)
    return count


def _source_basename(source_id: str) -> str:
    """Return the part of the document identifier after the final ``/``."""
    return source_id.rsplit("/", maxsplit=1)[-1]


def module_name(report_name: str, source_id: str) -> str:
    """Build the module name ``"<report name>: <report file name>"``.

    The report name alone is not unique once several reports are combined, so
    the file name the report was read from is appended.
    """
    return f"{report_name}: {_source_basename(source_id)}"


def package_name(path: str) -> str:
    """Convert a JaCoCo package path (``com/example/app``) to dotted form."""
    return path.replace("/", ".")


class _ClassBuffer:
    """Class nodes waiting for their ``<sourcefile>``, keyed by file name."""

    def __init__(self) -> None:
        self._pending: dict[str, list[CoverageNode]] = {}

    def record(self, file_name: str, class_node: CoverageNode) -> None:
        self._pending.setdefault(file_name, []).append(class_node)

    def take_all(self, file_name: str) -> list[CoverageNode]:
        """Remove and return the classes recorded for ``file_name``."""
        return self._pending.pop(file_name, [])

    def reset(self) -> dict[str, list[CoverageNode]]:
        """Drop every entry and return what was still pending."""
        pending = self._pending
        self._pending = {}
        return pending


class _ParseContext:
    """Insertion state of a single parse.

    ``current`` is the innermost open scope: the parent of new methods and the
    target of counter leaves. ``package`` is tracked separately because files
    attach to the package even while ``current`` points into a class.
    """

    def __init__(self) -> None:
        self.source_id = ""
        self.root: CoverageNode | None = None
        self.package: CoverageNode | None = None
        self.classes = _ClassBuffer()
        self._current: CoverageNode | None = None

    def current(self, element: str) -> CoverageNode:
        if self._current is None:
            raise MalformedMarkupError(
                f"<{element}> appears outside of <report>", source=self.source_id
            )
        return self._current

    def start_module(self, node: CoverageNode) -> None:
        if self.root is not None:
            raise MalformedMarkupError("nested <report> element", source=self.source_id)
        self.root = node
        self._current = node

    def focus(self, node: CoverageNode) -> None:
        """Make ``node`` current without attaching it anywhere."""
        self._current = node

    def enter(self, node: CoverageNode, element: str) -> None:
        """Attach ``node`` under the current node and make it current."""
        self.current(element).add(node)
        self._current = node

    def exit_to_parent(self, element: str) -> None:
        parent = self.current(element).parent
        if parent is None:
            raise MalformedMarkupError(
                f"</{element}> closes a scope that was never opened", source=self.source_id
            )
        self._current = parent

    def enter_package_scope(self, node: CoverageNode) -> None:
        if self.root is None:
            raise MalformedMarkupError(
                "<package> appears outside of <report>", source=self.source_id
            )
        self.root.add(node)
        self.package = node
        self._current = node

    def exit_package_scope(self) -> None:
        self._current = self.root
        self.package = None
        for file_name, classes in self.classes.reset().items():
            logger.warning(
                "Dropping %d class(es) of %s: no <sourcefile name=%r> in the package",
                len(classes),
                self.source_id,
                file_name,
            )

    def require_package(self, element: str) -> CoverageNode:
        if self.package is None:
            raise MalformedMarkupError(
                f"<{element}> appears outside of <package>", source=self.source_id
            )
        return self.package


class JacocoParser:
    """Builds a coverage tree from a JaCoCo XML report.

    Each call to ``parse``/``parse_events`` uses fresh parse state, so one
    parser can be reused and separate parsers can run in parallel threads.
    ``root`` holds the tree of the most recent successful parse.
    """

    def __init__(self) -> None:
        self.root: CoverageNode | None = None

    def parse(self, path: str | Path) -> CoverageNode:
        """Parse the report at ``path`` and return its MODULE node.

        Raises:
            SourceUnavailableError: If the report cannot be read.
            MalformedMarkupError: If the report is not well-formed.
            MissingAttributeError: If a required attribute is absent.
            InvalidAttributeError: If a counter value is not a count.
        """
        with closing(iter_report_events(path)) as events:
            return self.parse_events(events)

    def parse_events(self, events: Iterable[ReportEvent]) -> CoverageNode:
        """Build the tree from an already tokenized event stream."""
        context = _ParseContext()
        for event in events:
            if isinstance(event, ElementStart):
                self._start_element(context, event)
            elif isinstance(event, ElementEnd):
                self._end_element(context, event)
            elif isinstance(event, DocumentStart):
                context.source_id = event.source_id

        if context.root is None:
            raise MalformedMarkupError("no <report> element found", source=context.source_id)

        self.root = context.root
        if logger.isEnabledFor(logging.INFO):
            counts = context.root.metric_counts()
            logger.info(
                "Parsed %s: %d packages, %d files, %d classes, %d methods",
                context.root.name,
                counts.get(CoverageMetric.PACKAGE, 0),
                counts.get(CoverageMetric.FILE, 0),
                counts.get(CoverageMetric.CLASS, 0),
                counts.get(CoverageMetric.METHOD, 0),
            )
        return context.root

    def _start_element(self, context: _ParseContext, element: ElementStart) -> None:
        tag = ReportTag.lookup(element.tag)
        if tag is None:
            logger.debug("Skipping <%s> element", element.tag)
        elif tag is ReportTag.REPORT:
            name = module_name(_require(element, "name"), context.source_id)
            context.start_module(CoverageNode(CoverageMetric.MODULE, name))
        elif tag is ReportTag.PACKAGE:
            name = package_name(_require(element, "name"))
            context.enter_package_scope(CoverageNode(CoverageMetric.PACKAGE, name))
        elif tag is ReportTag.CLASS:
            self._handle_class(context, element)
        elif tag is ReportTag.SOURCEFILE:
            self._handle_sourcefile(context, element)
        elif tag is ReportTag.METHOD:
            method_node = CoverageNode(CoverageMetric.METHOD, _require(element, "name"))
            context.enter(method_node, element.tag)
        elif tag is ReportTag.COUNTER:
            self._handle_counter(context, element)

    def _end_element(self, context: _ParseContext, element: ElementEnd) -> None:
        tag = ReportTag.lookup(element.tag)
        if tag is ReportTag.PACKAGE:
            context.exit_package_scope()
        elif tag is ReportTag.METHOD:
            context.exit_to_parent(element.tag)

    def _handle_class(self, context: _ParseContext, element: ElementStart) -> None:
        class_node = CoverageNode(CoverageMetric.CLASS, _require(element, "name"))
        file_name = _require(element, "sourcefilename")
        context.require_package(element.tag)

        context.classes.record(file_name, class_node)
        context.focus(class_node)

    def _handle_sourcefile(self, context: _ParseContext, element: ElementStart) -> None:
        file_node = CoverageNode(CoverageMetric.FILE, _require(element, "name"))
        package_node = context.require_package(element.tag)

        for class_node in context.classes.take_all(file_node.name):
            file_node.add(class_node)
        logger.debug("Attached %d class(es) to %s", len(file_node.children), file_node.name)

        package_node.add(file_node)

    def _handle_counter(self, context: _ParseContext, element: ElementStart) -> None:
        counter_type = _require(element, "type")
        metric = _COUNTER_METRICS.get(counter_type)
        if metric is None:
            logger.debug("Skipping %s counter", counter_type)
            return

        current = context.current(element.tag)
        if current.metric is not CoverageMetric.METHOD:
            return

        coverage = Coverage(
            covered=_require_count(element, "covered"),
            missed=_require_count(element, "missed"),
        )
        current.add(CoverageLeaf(metric, coverage))


def parse_jacoco_report(path: str | Path) -> CoverageNode:
    """Parse a JaCoCo XML report into a coverage tree."""
    return JacocoParser().parse(path)
