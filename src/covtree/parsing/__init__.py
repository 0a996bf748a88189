"""Coverage report parsing."""

from covtree.parsing.events import (
    DocumentStart,
    ElementEnd,
    ElementStart,
    ReportEvent,
    iter_report_events,
)
from covtree.parsing.jacoco import JacocoParser, ReportTag, parse_jacoco_report

__all__ = [
    "DocumentStart",
    "ElementEnd",
    "ElementStart",
    "JacocoParser",
    "ReportEvent",
    "ReportTag",
    "iter_report_events",
    "parse_jacoco_report",
]
