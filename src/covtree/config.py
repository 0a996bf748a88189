"""Configuration parsing from ``.covtree.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".covtree.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Gradle writes to build/reports/jacoco/..., Maven to target/site/jacoco/jacoco.xml
DEFAULT_REPORT_PATHS = (
    "build/reports/jacoco/test/jacocoTestReport.xml",
    "build/reports/jacoco/test/jacoco.xml",
    "build/jacoco/test/jacocoTestReport.xml",
    "target/site/jacoco/jacoco.xml",
    "target/jacoco.xml",
)


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    if not isinstance(section, dict):
        logger.warning("Ignoring %s section of %s: expected a mapping", name, CONFIG_FILE_NAME)
        return {}
    return section


@dataclass
class ReportConfig:
    """Where to look for JaCoCo reports."""

    paths: list[str] = field(default_factory=lambda: list(DEFAULT_REPORT_PATHS))
    """Candidate report locations, relative to the project root."""


@dataclass
class DisplayConfig:
    """Terminal rendering of coverage trees."""

    max_depth: int = 0
    """Deepest tree level to render below the module (0 = unlimited)."""

    show_leaves: bool = True
    """Show counter leaves next to method nodes."""


@dataclass
class CovtreeConfig:
    """Complete configuration loaded from ``.covtree.yml``."""

    root: str
    """Project root directory."""

    report: ReportConfig = field(default_factory=ReportConfig)

    display: DisplayConfig = field(default_factory=DisplayConfig)

    log_level: str = "WARNING"
    """Log level used by the CLI when ``--verbose`` is not given."""

    raw: dict[str, Any] = field(default_factory=dict)
    """The resolved YAML mapping the config was built from."""


def _parse_report_config(raw: dict[str, Any]) -> ReportConfig:
    report_raw = _section(raw, "report")
    paths = report_raw.get("paths")
    if paths is None:
        return ReportConfig()
    if isinstance(paths, str):
        paths = [paths]
    if not isinstance(paths, list):
        logger.warning("report.paths must be a list, using defaults")
        return ReportConfig()
    return ReportConfig(paths=[str(p) for p in paths])


def _parse_display_config(raw: dict[str, Any]) -> DisplayConfig:
    display_raw = _section(raw, "display")
    return DisplayConfig(
        max_depth=int(display_raw.get("max_depth", os.environ.get("COVTREE_MAX_DEPTH", 0))),
        show_leaves=bool(display_raw.get("show_leaves", True)),
    )


def load_config(root: str | Path) -> CovtreeConfig:
    """Load ``.covtree.yml`` from ``root``.

    Falls back to defaults and environment variables when the file is
    missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILE_NAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)

    log_level = raw.get("log_level", os.environ.get("COVTREE_LOG_LEVEL", "WARNING"))

    return CovtreeConfig(
        root=str(root_path),
        report=_parse_report_config(raw),
        display=_parse_display_config(raw),
        log_level=str(log_level).upper(),
        raw=raw,
    )


def validate_config(config: CovtreeConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.report.paths:
        errors.append("report.paths must list at least one report location")

    errors.extend(
        f"report.paths entries must be relative to the project root (got: {path})"
        for path in config.report.paths
        if Path(path).is_absolute()
    )

    if config.display.max_depth < 0:
        errors.append(f"display.max_depth must be non-negative (got: {config.display.max_depth})")

    if config.log_level not in _VALID_LOG_LEVELS:
        errors.append(
            f"log_level must be one of: {', '.join(_VALID_LOG_LEVELS)} (got: {config.log_level})"
        )

    return errors


def find_reports(config: CovtreeConfig) -> list[Path]:
    """Return the configured report locations that exist, in configured order."""
    root_path = Path(config.root)
    found = [root_path / rel for rel in config.report.paths if (root_path / rel).is_file()]
    logger.debug("Found %d JaCoCo report(s) under %s", len(found), root_path)
    return found
