"""Data models for covtree."""

from covtree.models.coverage import Coverage, CoverageLeaf, CoverageMetric, CoverageNode

__all__ = [
    "Coverage",
    "CoverageLeaf",
    "CoverageMetric",
    "CoverageNode",
]
