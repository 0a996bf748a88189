"""covtree CLI — top-level command group."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from covtree import __version__
from covtree.config import CovtreeConfig, find_reports, load_config, validate_config
from covtree.errors import CoverageParseError
from covtree.models.coverage import CoverageNode
from covtree.parsing.jacoco import JacocoParser
from covtree.reporters.terminal import reporter

logger = logging.getLogger(__name__)
console = Console()


def _configure_logging(level: str, *, verbose: bool) -> None:
    if level not in logging.getLevelNamesMapping():
        level = "WARNING"
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config_or_abort(ctx: click.Context, path: str) -> CovtreeConfig:
    try:
        config = load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    _configure_logging(config.log_level, verbose=ctx.obj.get("verbose", False))
    return config


def _resolve_report(config: CovtreeConfig, report: str | None) -> Path:
    if report is not None:
        return Path(report)

    found = find_reports(config)
    if not found:
        reporter.print_error(
            f"No JaCoCo report given and none found under {config.root} "
            "(see report.paths in .covtree.yml)"
        )
        raise click.Abort
    logger.info("Using discovered report %s", found[0])
    return found[0]


def _parse_or_abort(report_path: Path) -> CoverageNode:
    try:
        return JacocoParser().parse(report_path)
    except CoverageParseError as e:
        reporter.print_error(str(e))
        raise click.Abort from e


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="covtree")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """covtree — browse JaCoCo coverage reports as coverage trees."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("report", required=False, type=click.Path(dir_okay=False))
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option("--depth", type=click.IntRange(min=0), default=None, help="Levels to show.")
@click.option("--no-leaves", is_flag=True, help="Hide counter values on methods.")
@click.pass_context
def tree(
    ctx: click.Context, report: str | None, path: str, depth: int | None, *, no_leaves: bool
) -> None:
    """Render the coverage tree of a JaCoCo XML report.

    Without REPORT, the first report found at the configured locations is used.

    Example:
      covtree tree target/site/jacoco/jacoco.xml --depth 2
    """
    config = _load_config_or_abort(ctx, path)
    root = _parse_or_abort(_resolve_report(config, report))

    reporter.print_coverage_tree(
        root,
        max_depth=config.display.max_depth if depth is None else depth,
        show_leaves=config.display.show_leaves and not no_leaves,
    )


@cli.command()
@click.argument("report", required=False, type=click.Path(dir_okay=False))
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.pass_context
def summary(ctx: click.Context, report: str | None, path: str) -> None:
    """Count the nodes and leaves of a JaCoCo XML report."""
    config = _load_config_or_abort(ctx, path)
    root = _parse_or_abort(_resolve_report(config, report))
    reporter.print_metric_summary(root)


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.pass_context
def find(ctx: click.Context, path: str) -> None:
    """List JaCoCo reports at the configured locations."""
    config = _load_config_or_abort(ctx, path)
    reporter.print_report_paths(find_reports(config))


@cli.group("config")
def config_group() -> None:
    """Inspect `.covtree.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
@click.pass_context
def config_show(ctx: click.Context, path: str, *, as_json: bool) -> None:
    """Display the resolved configuration.

    Example:
      covtree config show --json-output
    """
    config = _load_config_or_abort(ctx, path)
    config_dict = asdict(config)
    config_dict.pop("raw", None)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.pass_context
def config_validate(ctx: click.Context, path: str) -> None:
    """Validate `.covtree.yml`."""
    config = _load_config_or_abort(ctx, path)
    errors = validate_config(config)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    raise click.Abort