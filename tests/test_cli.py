"""Tests for the sonarcov CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest
import yaml
from click.testing import CliRunner
from defusedxml import ElementTree

if TYPE_CHECKING:
    from pathlib import Path

from sonarcov.cli import _config_to_dict, cli
from sonarcov.config import load_config

_ENV_VARS = (
    "SONARCOV_COVERAGE_FILE",
    "SONARCOV_REPORT_DIR",
    "SONARCOV_REPORT_FILE",
    "SONARCOV_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _file_coverage(path: str) -> dict[str, Any]:
    return {
        "path": path,
        "statementMap": {
            "0": {"start": {"line": 1, "column": 0}, "end": {"line": 1, "column": 10}},
            "1": {"start": {"line": 2, "column": 0}, "end": {"line": 2, "column": 10}},
        },
        "fnMap": {},
        "branchMap": {
            "0": {
                "loc": {"start": {"line": 2, "column": 0}, "end": {"line": 2, "column": 10}},
                "type": "if",
                "locations": [{}, {}],
            }
        },
        "s": {"0": 1, "1": 0},
        "f": {},
        "b": {"0": [1, 0]},
    }


def _write_coverage(root: Path, rel: str = "coverage/coverage.json") -> Path:
    src = root / "src"
    data = {
        str(src / "a.js"): _file_coverage(str(src / "a.js")),
        str(src / "lib" / "b.js"): _file_coverage(str(src / "lib" / "b.js")),
    }
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "report" in result.output


# ── report ───────────────────────────────────────────────────────


class TestReportCommand:
    def test_writes_default_report(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path)
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])

        assert result.exit_code == 0, result.output
        output = tmp_path / "sonar-coverage.xml"
        assert output.exists()
        root = ElementTree.fromstring(output.read_text(encoding="utf-8"))
        assert len(root.findall("file")) == 2
        assert "2 file(s)" in result.output

    def test_options_override_config(self, tmp_path: Path) -> None:
        coverage = _write_coverage(tmp_path, "out/final.json")
        out_dir = tmp_path / "reports"
        result = CliRunner().invoke(
            cli,
            [
                "report",
                "--path",
                str(tmp_path),
                "--coverage-file",
                str(coverage),
                "--dir",
                str(out_dir),
                "--file",
                "cov.xml",
            ],
        )
        assert result.exit_code == 0, result.output
        assert (out_dir / "cov.xml").exists()

    def test_config_file_used(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path, "build/cov.json")
        (tmp_path / ".sonarcov.yml").write_text(
            yaml.dump(
                {
                    "input": {"coverage_file": "build/cov.json"},
                    "report": {"dir": "target", "file": "sonar.xml"},
                }
            ),
            encoding="utf-8",
        )
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "target" / "sonar.xml").exists()

    def test_falls_back_to_coverage_final(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path, "coverage/coverage-final.json")
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "sonar-coverage.xml").exists()
        assert "Coverage file not found" in result.output

    def test_empty_coverage_writes_empty_report(self, tmp_path: Path) -> None:
        coverage = tmp_path / "coverage" / "coverage.json"
        coverage.parent.mkdir()
        coverage.write_text("{}", encoding="utf-8")
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "No file coverage" in result.output
        root = ElementTree.parse(tmp_path / "sonar-coverage.xml").getroot()
        assert root.findall("file") == []

    def test_async_mode(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path)
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path), "--async"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "sonar-coverage.xml").exists()

    def test_summary_table(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path)
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path), "--summary"])
        assert result.exit_code == 0, result.output
        assert "Coverage Summary" in result.output
        assert "All files" in result.output

    def test_missing_coverage_fails(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])
        assert result.exit_code != 0
        assert "Failed to read coverage file" in result.output
        assert not (tmp_path / "sonar-coverage.xml").exists()

    def test_write_failure_fails(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path)
        (tmp_path / "blocker").write_text("", encoding="utf-8")
        result = CliRunner().invoke(
            cli, ["report", "--path", str(tmp_path), "--dir", str(tmp_path / "blocker" / "out")]
        )
        assert result.exit_code != 0
        assert "Failed to write" in result.output

    def test_invalid_config_fails(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path)
        (tmp_path / ".sonarcov.yml").write_text(
            yaml.dump({"report": {"file": "nested/sonar.xml"}}), encoding="utf-8"
        )
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])
        assert result.exit_code != 0
        assert "report.file" in result.output

    def test_malformed_config_fails(self, tmp_path: Path) -> None:
        _write_coverage(tmp_path)
        (tmp_path / ".sonarcov.yml").write_text("report: [unclosed\n", encoding="utf-8")
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])
        assert result.exit_code != 0
        assert "Failed to load configuration" in result.output
        assert not (tmp_path / "sonar-coverage.xml").exists()


# ── types ────────────────────────────────────────────────────────


def test_types_lists_sonar_report() -> None:
    result = CliRunner().invoke(cli, ["types"])
    assert result.exit_code == 0
    assert "sonarreport" in result.output


# ── config ───────────────────────────────────────────────────────


class TestConfigCommands:
    def test_show_yaml(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["config", "show", "--path", str(tmp_path)])
        assert result.exit_code == 0
        shown = yaml.safe_load(result.output)
        assert shown["report"]["file"] == "sonar-coverage.xml"
        assert "raw" not in shown

    def test_show_json(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli, ["config", "show", "--path", str(tmp_path), "--json-output"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["input"]["coverage_file"] == "coverage/coverage.json"

    def test_validate_ok(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["config", "validate", "--path", str(tmp_path)])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_validate_errors(self, tmp_path: Path) -> None:
        (tmp_path / ".sonarcov.yml").write_text(
            yaml.dump({"logging": {"level": "loud"}}), encoding="utf-8"
        )
        result = CliRunner().invoke(cli, ["config", "validate", "--path", str(tmp_path)])
        assert result.exit_code != 0
        assert "logging.level" in result.output


def test_config_to_dict_drops_raw(tmp_path: Path) -> None:
    config_dict = _config_to_dict(load_config(tmp_path))
    assert "raw" not in config_dict
    assert config_dict["report"]["sync"] is True
