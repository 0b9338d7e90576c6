"""Tests for the planinspector command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from planinspector import __version__
from planinspector.cli.main import app
from planinspector.config import CONFIG_FILE_ENV, reset_config

FIXTURES_DIR = Path(__file__).parent / "fixtures"

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(CONFIG_FILE_ENV, raising=False)
    reset_config()
    yield
    reset_config()


def fixture(name: str) -> str:
    return str(FIXTURES_DIR / name)


class TestAnalyze:

    def test_text_report(self) -> None:
        result = runner.invoke(app, ["analyze", fixture("seq_scan_filtered.json")])

        assert result.exit_code == 0
        assert "PlanInspector: BAD" in result.output
        assert "Performance Hotspots" in result.output
        assert "CREATE INDEX idx_huge_table_on_status" in result.output

    def test_good_report(self) -> None:
        result = runner.invoke(app, ["analyze", fixture("index_scan_good.json")])

        assert result.exit_code == 0
        assert "PlanInspector: GOOD" in result.output
        assert "Recommendations" not in result.output

    def test_json_report(self) -> None:
        result = runner.invoke(app, ["analyze", "--json", fixture("sort_disk.json")])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["analyze"] is True
        assert data["verdict"] == {"level": "ok", "message": "Room for improvement: 4 warnings found."}
        assert data["hotspots"] == ["Sort (850.25ms)", "Seq Scan on events (300ms)"]
        assert data["node_insights"][1]["path"] == ["Plan", "Plans[0]"]
        assert [r["severity"] for r in data["recommendations"]] == ["warning"] * 4

    def test_estimate_flag(self) -> None:
        result = runner.invoke(
            app, ["analyze", "--estimate", "-j", fixture("seq_scan_filtered.json")]
        )

        data = json.loads(result.output)
        assert data["analyze"] is False
        assert data["hotspots"] == []
        assert data["verdict"]["message"].startswith("Potential problems")

    def test_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "thresholds.json"
        config.write_text(json.dumps({"slow_query_ms": 5000, "moderate_query_ms": 5000}))

        result = runner.invoke(
            app, ["analyze", "--json", "--config", str(config), fixture("sort_disk.json")]
        )

        titles = [r["title"] for r in json.loads(result.output)["recommendations"]]
        assert "Moderately slow query (900ms)" not in titles


class TestFailOn:

    @pytest.mark.parametrize(
        ("name", "fail_on", "exit_code"),
        [
            ("seq_scan_filtered.json", "bad", 1),
            ("sort_disk.json", "bad", 0),
            ("sort_disk.json", "ok", 1),
            ("index_scan_good.json", "ok", 0),
        ],
    )
    def test_exit_code(self, name: str, fail_on: str, exit_code: int) -> None:
        result = runner.invoke(app, ["analyze", "--json", "--fail-on", fail_on, fixture(name)])

        assert result.exit_code == exit_code

    def test_default_never_fails(self) -> None:
        result = runner.invoke(app, ["analyze", fixture("seq_scan_filtered.json")])

        assert result.exit_code == 0


class TestErrors:

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text('[{"Plan": ')

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert "Invalid JSON format" in result.output

    def test_invalid_plan(self, tmp_path: Path) -> None:
        path = tmp_path / "no_type.json"
        path.write_text(json.dumps([{"Plan": {"Total Cost": 1.0}}]))

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 1
        assert "missing 'Node Type'" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["analyze", str(tmp_path / "absent.json")])

        assert result.exit_code != 0


class TestOtherCommands:

    def test_rules(self) -> None:
        result = runner.invoke(app, ["rules"])

        assert result.exit_code == 0
        assert "SEQ_SCAN_WITH_FILTER" in result.output
        assert "15 rules available" in result.output

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
