"""docwindow configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (DOCWINDOW_GENERATION_MODEL, DOCWINDOW_DB_PATH)
  3. Per-project docwindow.yaml
  4. Global ~/.docwindow/config.yaml  (model defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".docwindow"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "docwindow.yaml"

# Matches api_key, api-key, api_secret, *_token, token, *_secret, secret,
# password, passwd, credential(s). Does NOT match max_tokens or min_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["generation", "chunking", "memory", "resilience", "cache", "database"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class GenerationCfg:
    """LLM generation configuration (docwindow.yaml: generation:)."""

    model: str = "openai/gpt-4o-mini"
    summary_max_tokens: int = 400
    temperature: float = 0.0
    timeout_seconds: int = 120


@dataclass
class ChunkingCfg:
    """Adaptive chunker bounds, in estimated tokens (docwindow.yaml: chunking:).

    Tokens are estimated as ``chars / chars_per_token`` regardless of language.
    """

    min_tokens: int = 256
    target_tokens: int = 384
    max_tokens: int = 512
    overlap_tokens: int = 100
    chars_per_token: int = 4


@dataclass
class MemoryCfg:
    """Token-windowed conversation memory (docwindow.yaml: memory:)."""

    max_tokens: int = 8_000
    recent_message_count: int = 6


@dataclass
class ResilienceCfg:
    """Retry/backoff/circuit-breaker settings (docwindow.yaml: resilience:)."""

    max_retries: int = 3
    retry_delay_ms: int = 1_000
    failure_threshold: int = 5
    open_duration_seconds: float = 30.0


@dataclass
class CacheCfg:
    """Summary cache eviction (docwindow.yaml: cache:).

    Attributes:
        max_age_days: Entries not accessed for this many days are evicted.
        cleanup_enabled: Disables the scheduled sweep (manual trigger still runs).
        cleanup_hour: Local hour of day (0-23) of the daily sweep.
    """

    max_age_days: int = 7
    cleanup_enabled: bool = True
    cleanup_hour: int = 2


@dataclass
class DatabaseCfg:
    """SQLite store location (docwindow.yaml: database:)."""

    path: str = ".docwindow.db"


@dataclass
class DocwindowConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    generation: GenerationCfg = field(default_factory=GenerationCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    memory: MemoryCfg = field(default_factory=MemoryCfg)
    resilience: ResilienceCfg = field(default_factory=ResilienceCfg)
    cache: CacheCfg = field(default_factory=CacheCfg)
    database: DatabaseCfg = field(default_factory=DatabaseCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: DocwindowConfig) -> None:
    """Raise ConfigError for values the chunker, memory or janitor cannot run with."""
    ch = cfg.chunking
    if not 0 < ch.min_tokens <= ch.target_tokens <= ch.max_tokens:
        raise ConfigError(
            "chunking: expected 0 < min_tokens <= target_tokens <= max_tokens, got "
            f"{ch.min_tokens} / {ch.target_tokens} / {ch.max_tokens}"
        )
    if not 0 <= ch.overlap_tokens < ch.max_tokens:
        raise ConfigError("chunking.overlap_tokens must be in [0, max_tokens)")
    if ch.chars_per_token < 1:
        raise ConfigError("chunking.chars_per_token must be >= 1")
    if cfg.memory.max_tokens < 1 or cfg.memory.recent_message_count < 0:
        raise ConfigError("memory: max_tokens must be >= 1 and recent_message_count >= 0")
    if cfg.resilience.max_retries < 1:
        raise ConfigError("resilience.max_retries must be >= 1")
    if not 0 <= cfg.cache.cleanup_hour <= 23:
        raise ConfigError("cache.cleanup_hour must be in 0..23")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _cfg_from_dict(data: dict[str, Any]) -> DocwindowConfig:
    """Build a *DocwindowConfig* from a merged raw YAML dict."""
    cfg = DocwindowConfig()

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            summary_max_tokens=int(
                g.get("summary_max_tokens", cfg.generation.summary_max_tokens)
            ),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
            timeout_seconds=int(g.get("timeout_seconds", cfg.generation.timeout_seconds)),
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            min_tokens=int(c.get("min_tokens", cfg.chunking.min_tokens)),
            target_tokens=int(c.get("target_tokens", cfg.chunking.target_tokens)),
            max_tokens=int(c.get("max_tokens", cfg.chunking.max_tokens)),
            overlap_tokens=int(c.get("overlap_tokens", cfg.chunking.overlap_tokens)),
            chars_per_token=int(c.get("chars_per_token", cfg.chunking.chars_per_token)),
        )

    if "memory" in data:
        m = data["memory"] or {}
        cfg.memory = MemoryCfg(
            max_tokens=int(m.get("max_tokens", cfg.memory.max_tokens)),
            recent_message_count=int(
                m.get("recent_message_count", cfg.memory.recent_message_count)
            ),
        )

    if "resilience" in data:
        r = data["resilience"] or {}
        cfg.resilience = ResilienceCfg(
            max_retries=int(r.get("max_retries", cfg.resilience.max_retries)),
            retry_delay_ms=int(r.get("retry_delay_ms", cfg.resilience.retry_delay_ms)),
            failure_threshold=int(
                r.get("failure_threshold", cfg.resilience.failure_threshold)
            ),
            open_duration_seconds=float(
                r.get("open_duration_seconds", cfg.resilience.open_duration_seconds)
            ),
        )

    if "cache" in data:
        k = data["cache"] or {}
        cfg.cache = CacheCfg(
            max_age_days=int(k.get("max_age_days", cfg.cache.max_age_days)),
            cleanup_enabled=_as_bool(k.get("cleanup_enabled", cfg.cache.cleanup_enabled)),
            cleanup_hour=int(k.get("cleanup_hour", cfg.cache.cleanup_hour)),
        )

    if "database" in data:
        d = data["database"] or {}
        cfg.database = DatabaseCfg(path=str(d.get("path", cfg.database.path)))

    return cfg


def _apply_env_overrides(cfg: DocwindowConfig) -> DocwindowConfig:
    """Apply DOCWINDOW_* environment variable overrides."""
    if model := os.environ.get("DOCWINDOW_GENERATION_MODEL"):
        cfg.generation.model = model
    if db_path := os.environ.get("DOCWINDOW_DB_PATH"):
        cfg.database.path = db_path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> DocwindowConfig:
    """Load and return a merged *DocwindowConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *docwindow.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *DocwindowConfig* with env var overrides applied.

    Raises:
        ConfigError: If global config contains API-key-like fields, or if any
            bound is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.docwindow/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).

    Args:
        global_config_path: Override path (for testing).

    Returns:
        Path to the global config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# docwindow global configuration: model defaults only.\n"
            "# NEVER store API keys here, use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "generation:\n"
            "  model: openai/gpt-4o-mini\n"
            "\n"
            "cache:\n"
            "  max_age_days: 7\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
