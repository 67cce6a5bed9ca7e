"""Tests for docwindow config loader."""

from __future__ import annotations

import stat
import warnings
from pathlib import Path

import pytest
import yaml

from docwindow.config import (
    CacheCfg,
    ChunkingCfg,
    ConfigError,
    DocwindowConfig,
    ensure_global_config,
    load_config,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    monkeypatch.delenv("DOCWINDOW_GENERATION_MODEL", raising=False)
    monkeypatch.delenv("DOCWINDOW_DB_PATH", raising=False)


# ---------------------------------------------------------------------------
# Defaults: no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.generation.timeout_seconds == 120
    assert cfg.chunking.min_tokens == 256
    assert cfg.chunking.target_tokens == 384
    assert cfg.chunking.max_tokens == 512
    assert cfg.chunking.overlap_tokens == 100
    assert cfg.memory.max_tokens == 8_000
    assert cfg.memory.recent_message_count == 6
    assert cfg.resilience.max_retries == 3
    assert cfg.resilience.retry_delay_ms == 1_000
    assert cfg.resilience.failure_threshold == 5
    assert cfg.resilience.open_duration_seconds == 30.0
    assert cfg.cache == CacheCfg(max_age_days=7, cleanup_enabled=True, cleanup_hour=2)
    assert cfg.database.path == ".docwindow.db"


def test_default_config_object_matches_loader(tmp_path: Path) -> None:
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg == DocwindowConfig()


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


def test_global_config_overrides_defaults(tmp_path: Path) -> None:
    global_path = tmp_path / "global" / "config.yaml"
    _write_yaml(global_path, {"generation": {"model": "anthropic/claude-3-5-haiku-20241022"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_path)

    assert cfg.generation.model == "anthropic/claude-3-5-haiku-20241022"
    assert cfg.generation.summary_max_tokens == 400  # untouched


def test_global_config_with_api_key_raises(tmp_path: Path) -> None:
    global_path = tmp_path / "global" / "config.yaml"
    _write_yaml(global_path, {"generation": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="api_key"):
        load_config(project_dir=tmp_path, global_config_path=global_path)


def test_max_tokens_is_not_mistaken_for_a_secret(tmp_path: Path) -> None:
    global_path = tmp_path / "global" / "config.yaml"
    _write_yaml(global_path, {"memory": {"max_tokens": 4000}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_path)

    assert cfg.memory.max_tokens == 4000


# ---------------------------------------------------------------------------
# Per-project config
# ---------------------------------------------------------------------------


def test_project_config_overrides_global(tmp_path: Path) -> None:
    global_path = tmp_path / "global" / "config.yaml"
    _write_yaml(global_path, {"cache": {"max_age_days": 30, "cleanup_hour": 4}})
    _write_yaml(tmp_path / "docwindow.yaml", {"cache": {"max_age_days": 3}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_path)

    assert cfg.cache.max_age_days == 3
    assert cfg.cache.cleanup_hour == 4  # deep-merged from global


def test_project_config_chunking_section(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "docwindow.yaml",
        {"chunking": {"min_tokens": 100, "target_tokens": 200, "max_tokens": 300}},
    )

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")

    assert cfg.chunking == ChunkingCfg(min_tokens=100, target_tokens=200, max_tokens=300)


def test_cleanup_enabled_accepts_string_false(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "docwindow.yaml", {"cache": {"cleanup_enabled": "false"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")

    assert cfg.cache.cleanup_enabled is False


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "docwindow.yaml", {"retrieval": {"top_k": 5}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")

    assert any("retrieval" in str(w.message) for w in caught)


def test_empty_project_file_is_defaults(tmp_path: Path) -> None:
    (tmp_path / "docwindow.yaml").write_text("", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")

    assert cfg == DocwindowConfig()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "chunking",
    [
        {"min_tokens": 600},  # min > target
        {"target_tokens": 600},  # target > max
        {"overlap_tokens": 512},  # overlap == max
        {"min_tokens": 0},
    ],
)
def test_invalid_chunking_bounds_raise(tmp_path: Path, chunking: dict) -> None:
    _write_yaml(tmp_path / "docwindow.yaml", {"chunking": chunking})

    with pytest.raises(ConfigError, match="chunking"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_invalid_cleanup_hour_raises(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "docwindow.yaml", {"cache": {"cleanup_hour": 24}})

    with pytest.raises(ConfigError, match="cleanup_hour"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_zero_retries_raises(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "docwindow.yaml", {"resilience": {"max_retries": 0}})

    with pytest.raises(ConfigError, match="max_retries"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def test_env_overrides_win_over_files(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(
        tmp_path / "docwindow.yaml",
        {"generation": {"model": "openai/gpt-4o"}, "database": {"path": "a.db"}},
    )
    monkeypatch.setenv("DOCWINDOW_GENERATION_MODEL", "ollama/llama3")
    monkeypatch.setenv("DOCWINDOW_DB_PATH", "/tmp/other.db")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")

    assert cfg.generation.model == "ollama/llama3"
    assert cfg.database.path == "/tmp/other.db"


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file_with_0600(tmp_path: Path) -> None:
    target = tmp_path / "home" / ".docwindow" / "config.yaml"

    path = ensure_global_config(target)

    assert path == target
    assert target.exists()
    assert stat.S_IMODE(target.stat().st_mode) == 0o600
    data = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert data["generation"]["model"] == "openai/gpt-4o-mini"


def test_ensure_global_config_does_not_overwrite(tmp_path: Path) -> None:
    target = tmp_path / "config.yaml"
    target.write_text("generation:\n  model: custom/model\n", encoding="utf-8")

    ensure_global_config(target)

    assert "custom/model" in target.read_text(encoding="utf-8")


def test_generated_global_config_loads_cleanly(tmp_path: Path) -> None:
    target = ensure_global_config(tmp_path / "g" / "config.yaml")

    cfg = load_config(project_dir=tmp_path, global_config_path=target)

    assert cfg.cache.max_age_days == 7
