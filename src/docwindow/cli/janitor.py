"""docwindow janitor: run the daily cache sweep in the foreground until interrupted."""

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


def janitor_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .docwindow.db (default: database.path from config)."),
    ] = None,
) -> None:
    """Sweep stale cached summaries daily at cache.cleanup_hour (Ctrl+C to stop)."""
    cfg = load_config_or_exit()
    if not cfg.cache.cleanup_enabled:
        console.print(
            "[yellow]Scheduled cleanup is disabled[/] (cache.cleanup_enabled: false).\n"
            "  Run a one-off sweep with:  docwindow cache cleanup"
        )
        raise typer.Exit(0)

    conn = open_existing_db(resolve_db(db, cfg))
    janitor = CacheJanitor(SummaryCache(Repository(conn)), cfg.cache)
    console.print(f"Janitor running; next sweep at {janitor.next_run_at():%Y-%m-%d %H:%M}")
    try:
        janitor.run_forever()
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/]")
    finally:
        janitor.stop()
        conn.close()
