"""Output reporters for covtree."""

from covtree.reporters.terminal import CLIReporter, reporter

__all__ = ["CLIReporter", "reporter"]
