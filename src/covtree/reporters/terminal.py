"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from covtree.models.coverage import LEAF_METRICS, NODE_METRICS, CoverageMetric

if TYPE_CHECKING:
    from pathlib import Path

    from covtree.models.coverage import CoverageLeaf, CoverageNode

console = Console()


_HIGH_COVERAGE = 80.0
_MEDIUM_COVERAGE = 50.0

_METRIC_STYLES = {
    CoverageMetric.MODULE: "bold cyan",
    CoverageMetric.PACKAGE: "bold",
    CoverageMetric.FILE: "blue",
    CoverageMetric.CLASS: "magenta",
    CoverageMetric.METHOD: "",
}


def _coverage_color(percentage: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if percentage >= _HIGH_COVERAGE:
        return "green"
    if percentage >= _MEDIUM_COVERAGE:
        return "yellow"
    return "red"


def _format_leaf(leaf: CoverageLeaf) -> str:
    """Format a leaf as ``LINE 5/7`` colored by its covered share."""
    color = _coverage_color(leaf.coverage.covered_percentage)
    return f"[{color}]{leaf.metric.name} {leaf.covered}/{leaf.coverage.total}[/{color}]"


def _node_label(node: CoverageNode, *, show_leaves: bool) -> str:
    style = _METRIC_STYLES.get(node.metric, "")
    name = escape(node.name)
    if style:
        name = f"[{style}]{name}[/{style}]"
    label = f"[dim]{node.metric.name.lower()}[/dim] {name}"
    if show_leaves and node.leaves:
        label += "  " + "  ".join(_format_leaf(leaf) for leaf in node.leaves)
    return label


class CLIReporter:
    """Rich terminal output for coverage trees."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def build_tree(
        self,
        root: CoverageNode,
        *,
        max_depth: int = 0,
        show_leaves: bool = True,
    ) -> Tree:
        """Build a Rich tree for ``root``.

        Args:
            root: Node to render; usually the MODULE node of a report.
            max_depth: Deepest level rendered below ``root`` (0 = unlimited).
            show_leaves: Append counter leaves to method labels.
        """
        tree = Tree(_node_label(root, show_leaves=show_leaves))
        pending: list[tuple[CoverageNode, Tree, int]] = [(root, tree, 0)]
        while pending:
            node, branch, depth = pending.pop()
            if max_depth and depth >= max_depth:
                continue
            for child in node.children:
                child_branch = branch.add(_node_label(child, show_leaves=show_leaves))
                pending.append((child, child_branch, depth + 1))
        return tree

    def print_coverage_tree(
        self,
        root: CoverageNode,
        *,
        max_depth: int = 0,
        show_leaves: bool = True,
    ) -> None:
        """Print the coverage tree below ``root``."""
        self.console.print(self.build_tree(root, max_depth=max_depth, show_leaves=show_leaves))

    def print_metric_summary(self, root: CoverageNode) -> None:
        """Print node counts per granularity and leaf counts per counter kind."""
        counts = root.metric_counts()

        table = Table(title=escape(root.name), title_style="bold cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Kind")
        table.add_column("Count", justify="right")

        for metric in NODE_METRICS:
            table.add_row(metric.name, "node", str(counts.get(metric, 0)))
        for metric in LEAF_METRICS:
            table.add_row(metric.name, "leaf", str(counts.get(metric, 0)))

        self.console.print(table)

    def print_report_paths(self, paths: list[Path]) -> None:
        """Print discovered report locations."""
        if not paths:
            self.print_warning("No JaCoCo reports found")
            return
        self.print_success(f"Found {len(paths)} JaCoCo report(s)")
        for path in paths:
            self.console.print(f"  [cyan]{path}[/cyan]")


# Singleton instance for easy import
reporter = CLIReporter()
