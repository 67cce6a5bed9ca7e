"""CLI fixtures: every test runs in an empty project directory."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def project_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("docwindow.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    monkeypatch.delenv("DOCWINDOW_GENERATION_MODEL", raising=False)
    monkeypatch.delenv("DOCWINDOW_DB_PATH", raising=False)
    return tmp_path
