"""docwindow cache CLI commands.

Commands:
  docwindow cache status    number of cached summaries and the oldest access time
  docwindow cache cleanup   evict summaries not read within cache.max_age_days
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from docwindow.cli.common import load_config_or_exit, open_existing_db, resolve_db
from docwindow.db.repository import Repository
from docwindow.jobs.janitor import CacheJanitor
from docwindow.memory.cache import SummaryCache

console = Console()

cache_app = typer.Typer(
    name="cache",
    help="Inspect and clean the summary cache (status, cleanup).",
    add_completion=False,
)

_DbOpt = Annotated[
    Path | None,
    typer.Option("--db", help="Path to .docwindow.db (default: database.path from config)."),
]


@cache_app.command("status")
def cache_status_cmd(db: _DbOpt = None) -> None:
    """Show cached summary count and the least recent access."""
    cfg = load_config_or_exit()
    conn = open_existing_db(resolve_db(db, cfg))
    try:
        cache = SummaryCache(Repository(conn))
        count = cache.count()
        oldest = cache.oldest_access()
    finally:
        conn.close()

    console.print(f"Cached summaries: [bold]{count}[/]")
    if oldest is not None:
        console.print(f"Oldest access:    {oldest.isoformat(timespec='seconds')}")
    console.print(
        f"[dim]Eviction after {cfg.cache.max_age_days} days without access "
        f"(scheduled sweep {'on' if cfg.cache.cleanup_enabled else 'off'}, "
        f"{cfg.cache.cleanup_hour:02d}:00)[/]"
    )


@cache_app.command("cleanup")
def cache_cleanup_cmd(db: _DbOpt = None) -> None:
    """Evict stale summaries now (runs even if the scheduled sweep is disabled)."""
    cfg = load_config_or_exit()
    conn = open_existing_db(resolve_db(db, cfg))
    try:
        deleted = CacheJanitor(SummaryCache(Repository(conn)), cfg.cache).trigger_manual_cleanup()
    finally:
        conn.close()
    console.print(f"[green]✓[/] Deleted {deleted} stale summaries")
