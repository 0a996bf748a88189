"""Coverage tree models.

A parsed report is a tree of ``CoverageNode`` objects rooted at a single
MODULE node. Nodes own their children; the ``parent`` link is a weak
back-reference used only for walking upwards. Covered/missed counters are
stored as ``CoverageLeaf`` values on METHOD nodes and are not tree nodes.
"""

from __future__ import annotations

import weakref
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class CoverageMetric(Enum):
    """Granularity of a node, or the kind of a counted leaf."""

    MODULE = "module"
    PACKAGE = "package"
    FILE = "file"
    CLASS = "class"
    METHOD = "method"

    LINE = "line"
    INSTRUCTION = "instruction"
    BRANCH = "branch"
    COMPLEXITY = "complexity"

    @property
    def is_leaf_metric(self) -> bool:
        """Return True for counter kinds that only ever appear as leaves."""
        return self in _LEAF_METRICS


_LEAF_METRICS = frozenset(
    {
        CoverageMetric.LINE,
        CoverageMetric.INSTRUCTION,
        CoverageMetric.BRANCH,
        CoverageMetric.COMPLEXITY,
    }
)

NODE_METRICS = (
    CoverageMetric.MODULE,
    CoverageMetric.PACKAGE,
    CoverageMetric.FILE,
    CoverageMetric.CLASS,
    CoverageMetric.METHOD,
)
"""Node granularities, outermost first."""

LEAF_METRICS = (
    CoverageMetric.LINE,
    CoverageMetric.INSTRUCTION,
    CoverageMetric.BRANCH,
    CoverageMetric.COMPLEXITY,
)
"""Leaf counter kinds in report order."""


@dataclass(frozen=True)
class Coverage:
    """Covered and missed item counts of a single counter."""

    covered: int
    missed: int

    def __post_init__(self) -> None:
        if self.covered < 0 or self.missed < 0:
            raise ValueError(
                f"Coverage counts must be non-negative (covered={self.covered}, "
                f"missed={self.missed})"
            )

    @property
    def total(self) -> int:
        """Total number of counted items."""
        return self.covered + self.missed

    @property
    def covered_percentage(self) -> float:
        """Return the covered share as a percentage (0.0-100.0)."""
        if self.total == 0:
            return 100.0
        return (self.covered / self.total) * 100.0


@dataclass(frozen=True)
class CoverageLeaf:
    """A typed counter value attached to a METHOD node."""

    metric: CoverageMetric
    coverage: Coverage

    def __post_init__(self) -> None:
        if not self.metric.is_leaf_metric:
            raise ValueError(f"{self.metric.name} is not a leaf metric")

    @property
    def covered(self) -> int:
        return self.coverage.covered

    @property
    def missed(self) -> int:
        return self.coverage.missed


@dataclass(eq=False)
class CoverageNode:
    """A node of the coverage tree (module, package, file, class or method)."""

    metric: CoverageMetric
    name: str
    children: list[CoverageNode] = field(default_factory=list, init=False, repr=False)
    leaves: list[CoverageLeaf] = field(default_factory=list, init=False, repr=False)
    _parent: weakref.ref[CoverageNode] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.metric.is_leaf_metric:
            raise ValueError(f"{self.metric.name} can only be used for leaves")

    @property
    def parent(self) -> CoverageNode | None:
        """Return the enclosing node, or None for the root."""
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def path(self) -> list[str]:
        """Names from the root down to this node."""
        names: list[str] = []
        node: CoverageNode | None = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        names.reverse()
        return names

    def add(self, item: CoverageNode | CoverageLeaf) -> None:
        """Append a child node or a leaf.

        A node keeps the parent it was first added to; adding it a second time
        raises ``ValueError``.
        """
        if isinstance(item, CoverageLeaf):
            self.leaves.append(item)
            return
        if item is self:
            raise ValueError("A node cannot be its own child")
        if item._parent is not None:
            raise ValueError(f"{item!r} already belongs to {item.parent!r}")
        item._parent = weakref.ref(self)
        self.children.append(item)

    def walk(self) -> Iterator[CoverageNode]:
        """Yield this node and all descendants in pre-order."""
        stack: list[CoverageNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def get_all(self, metric: CoverageMetric) -> list[CoverageNode]:
        """Return every node of ``metric`` in this subtree, in pre-order."""
        return [node for node in self.walk() if node.metric is metric]

    def find(self, metric: CoverageMetric, name: str) -> CoverageNode | None:
        """Return the first node in this subtree with the given metric and name."""
        for node in self.walk():
            if node.metric is metric and node.name == name:
                return node
        return None

    def get_leaf(self, metric: CoverageMetric) -> CoverageLeaf | None:
        """Return the first leaf of ``metric`` attached directly to this node."""
        for leaf in self.leaves:
            if leaf.metric is metric:
                return leaf
        return None

    def metric_counts(self) -> dict[CoverageMetric, int]:
        """Count nodes per metric and leaves per leaf metric in this subtree."""
        counts: Counter[CoverageMetric] = Counter()
        for node in self.walk():
            counts[node.metric] += 1
            counts.update(leaf.metric for leaf in node.leaves)
        return dict(counts)

    def __repr__(self) -> str:
        return f"CoverageNode({self.metric.name}, {self.name!r})"
