"""Tests for the docwindow entry point: version and help."""

from __future__ import annotations

from typer.testing import CliRunner

from docwindow.cli.main import app

runner = CliRunner()


def test_version_flag_exits_zero() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("docwindow ")


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "docwindow" in result.output


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("ingest", "memory", "cache", "janitor", "version"):
        assert name in result.output


def test_log_file_receives_json_events(project_dir) -> None:
    log = project_dir / "logs" / "docwindow.jsonl"
    runner.invoke(app, ["--log-file", str(log), "memory", "add", "-c", "c1", "-r", "user", "-t", "hi"])
    assert log.exists()
