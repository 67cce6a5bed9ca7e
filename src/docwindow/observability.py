"""Structured logging setup (structlog over stdlib logging).

Modules obtain a logger with ``get_logger(__name__)`` and log events as
``logger.info("cache_hit", conversation_id=..., range_hash=...)``.
``configure_logging()`` is called once by the CLI; library users may call it
themselves or configure structlog their own way. Until then only warnings
and errors are printed.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

_ROOT_LOGGER = "docwindow"


def _configure_structlog(renderer) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def reset_logging() -> None:
    """Detach docwindow handlers and fall back to the quiet default.

    Events go through stdlib logging with no handler of our own, so only
    warnings and errors reach stderr (via the interpreter's last-resort
    handler) until ``configure_logging()`` is called.
    """
    root = logging.getLogger(_ROOT_LOGGER)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True
    _configure_structlog(structlog.dev.ConsoleRenderer(colors=False))


def configure_logging(
    level: str | int = "WARNING",
    *,
    log_path: str | Path | None = None,
    json_lines: bool = False,
) -> None:
    """Route docwindow events to stderr (or *log_path*) at *level*.

    Args:
        level: Minimum stdlib level name or number.
        log_path: Append JSON/console lines to this file instead of stderr.
        json_lines: Render events as JSON objects rather than key=value text.
    """
    if log_path is not None:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger(_ROOT_LOGGER)
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False

    renderer = (
        structlog.processors.JSONRenderer()
        if json_lines
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    _configure_structlog(renderer)


def get_logger(name: str):
    return structlog.get_logger(name)


reset_logging()
