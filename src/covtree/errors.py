"""Errors raised while turning a coverage report into a coverage tree."""

from __future__ import annotations


class CoverageParseError(Exception):
    """Base class for every failure that aborts a report parse."""


class SourceUnavailableError(CoverageParseError):
    """Raised when the report cannot be opened or read."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Cannot read coverage report {source}: {reason}")
        self.source = source
        self.reason = reason


class MalformedMarkupError(CoverageParseError):
    """Raised when the report markup cannot be tokenized or is structurally broken."""

    def __init__(
        self,
        message: str,
        *,
        source: str = "",
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        location = source
        if line is not None:
            location = f"{source}:{line}" if source else f"line {line}"
            if column is not None:
                location = f"{location}:{column}"
        super().__init__(f"{location}: {message}" if location else message)
        self.source = source
        self.line = line
        self.column = column


class MissingAttributeError(CoverageParseError):
    """Raised when an element lacks an attribute the tree builder requires."""

    def __init__(self, element: str, attribute: str) -> None:
        super().__init__(f"<{element}> element is missing required attribute '{attribute}'")
        self.element = element
        self.attribute = attribute


class InvalidAttributeError(CoverageParseError):
    """Raised when a counter value is not a non-negative integer."""

    def __init__(self, element: str, attribute: str, value: str) -> None:
        super().__init__(
            f"<{element}> attribute '{attribute}' must be a non-negative integer (got: {value!r})"
        )
        self.element = element
        self.attribute = attribute
        self.value = value
