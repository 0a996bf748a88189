"""Tests for config.py — .covtree.yml parsing and validation."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from covtree.config import (
    DEFAULT_REPORT_PATHS,
    CovtreeConfig,
    DisplayConfig,
    ReportConfig,
    _resolve_dict,
    _resolve_env_vars,
    find_reports,
    load_config,
    validate_config,
)

if TYPE_CHECKING:
    import pytest


def _write_config(root: Path, data: dict[str, Any]) -> None:
    """Write .covtree.yml with given data."""
    (root / ".covtree.yml").write_text(yaml.dump(data), encoding="utf-8")


# ── _resolve_env_vars / _resolve_dict ─────────────────────────────────


class TestResolveEnvVars:
    def test_resolves_existing_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPORT_DIR", "target")
        assert _resolve_env_vars("${REPORT_DIR}/jacoco.xml") == "target/jacoco.xml"

    def test_missing_var_returns_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MISSING_VAR", raising=False)
        assert _resolve_env_vars("${MISSING_VAR}") == ""

    def test_no_vars_unchanged(self) -> None:
        assert _resolve_env_vars("plain text") == "plain text"


class TestResolveDict:
    def test_resolves_nested_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OUT", "build")
        result = _resolve_dict({"report": {"paths": ["${OUT}/a.xml", 3]}, "flag": True})
        assert result == {"report": {"paths": ["build/a.xml", 3]}, "flag": True}


# ── load_config ───────────────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("COVTREE_LOG_LEVEL", raising=False)
        monkeypatch.delenv("COVTREE_MAX_DEPTH", raising=False)
        config = load_config(tmp_path)
        assert config.root == str(tmp_path.resolve())
        assert config.report.paths == list(DEFAULT_REPORT_PATHS)
        assert config.display == DisplayConfig()
        assert config.log_level == "WARNING"
        assert config.raw == {}

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / ".covtree.yml").write_text("")
        config = load_config(tmp_path)
        assert config.report == ReportConfig()

    def test_full_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MODULE_DIR", "app")
        _write_config(
            tmp_path,
            {
                "report": {"paths": ["${MODULE_DIR}/target/site/jacoco/jacoco.xml"]},
                "display": {"max_depth": 3, "show_leaves": False},
                "log_level": "info",
            },
        )
        config = load_config(tmp_path)
        assert config.report.paths == ["app/target/site/jacoco/jacoco.xml"]
        assert config.display.max_depth == 3
        assert config.display.show_leaves is False
        assert config.log_level == "INFO"

    def test_single_path_string(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"report": {"paths": "coverage/jacoco.xml"}})
        assert load_config(tmp_path).report.paths == ["coverage/jacoco.xml"]

    def test_invalid_section_uses_defaults(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"report": "nope", "display": ["x"]})
        config = load_config(tmp_path)
        assert config.report == ReportConfig()
        assert config.display == DisplayConfig()

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COVTREE_LOG_LEVEL", "debug")
        monkeypatch.setenv("COVTREE_MAX_DEPTH", "2")
        config = load_config(tmp_path)
        assert config.log_level == "DEBUG"
        assert config.display.max_depth == 2

    def test_file_wins_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COVTREE_MAX_DEPTH", "2")
        _write_config(tmp_path, {"display": {"max_depth": 5}})
        assert load_config(tmp_path).display.max_depth == 5


# ── validate_config ───────────────────────────────────────────────────


class TestValidateConfig:
    def test_defaults_are_valid(self, tmp_path: Path) -> None:
        assert validate_config(CovtreeConfig(root=str(tmp_path))) == []

    def test_empty_report_paths(self, tmp_path: Path) -> None:
        config = CovtreeConfig(root=str(tmp_path), report=ReportConfig(paths=[]))
        assert validate_config(config) == ["report.paths must list at least one report location"]

    def test_absolute_report_path(self, tmp_path: Path) -> None:
        config = CovtreeConfig(root=str(tmp_path), report=ReportConfig(paths=["/tmp/j.xml"]))
        errors = validate_config(config)
        assert len(errors) == 1
        assert "relative" in errors[0]

    def test_negative_depth(self, tmp_path: Path) -> None:
        config = CovtreeConfig(root=str(tmp_path), display=DisplayConfig(max_depth=-1))
        assert any("display.max_depth" in e for e in validate_config(config))

    def test_unknown_log_level(self, tmp_path: Path) -> None:
        config = CovtreeConfig(root=str(tmp_path), log_level="LOUD")
        assert any("log_level" in e for e in validate_config(config))


# ── find_reports ──────────────────────────────────────────────────────


class TestFindReports:
    def test_finds_maven_report(self, tmp_path: Path) -> None:
        report = tmp_path / "target" / "site" / "jacoco" / "jacoco.xml"
        report.parent.mkdir(parents=True)
        report.write_text("<report/>")
        assert find_reports(load_config(tmp_path)) == [report.resolve()]

    def test_keeps_configured_order(self, tmp_path: Path) -> None:
        for rel in ("b.xml", "a.xml"):
            (tmp_path / rel).write_text("<report/>")
        config = CovtreeConfig(root=str(tmp_path), report=ReportConfig(paths=["b.xml", "a.xml"]))
        assert [p.name for p in find_reports(config)] == ["b.xml", "a.xml"]

    def test_nothing_found(self, tmp_path: Path) -> None:
        assert find_reports(CovtreeConfig(root=str(tmp_path))) == []

    def test_directories_are_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "target" / "jacoco.xml").mkdir(parents=True)
        assert find_reports(CovtreeConfig(root=str(tmp_path))) == []
