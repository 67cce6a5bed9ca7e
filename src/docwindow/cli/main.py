"""docwindow CLI entry point."""

from __future__ import annotations

import importlib.metadata
from pathlib import Path
from typing import Annotated

import typer

from docwindow.cli.cache import cache_app
from docwindow.cli.ingest import ingest_cmd
from docwindow.cli.janitor import janitor_cmd
from docwindow.cli.memory import memory_app
from docwindow.observability import configure_logging


def _installed_version() -> str:
    try:
        return importlib.metadata.version("docwindow")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"docwindow {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="docwindow",
    help=(
        "docwindow: document chunking and token-windowed conversation memory.\n\n"
        "  docwindow ingest   Chunk documents into citation-framed retrieval units.\n"
        "  docwindow memory   Inspect the summarized context window of a conversation."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log progress events (INFO) to stderr."),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Write JSON log lines to this file instead."),
    ] = None,
) -> None:
    """docwindow: document chunking and token-windowed conversation memory."""
    configure_logging(
        "INFO" if verbose else "WARNING",
        log_path=log_file,
        json_lines=log_file is not None,
    )


app.command("ingest")(ingest_cmd)
app.command("janitor")(janitor_cmd)
app.add_typer(memory_app, name="memory")
app.add_typer(cache_app, name="cache")


@app.command("version")
def version_cmd() -> None:
    """Show the installed docwindow version."""
    typer.echo(f"docwindow {_installed_version()}")


if __name__ == "__main__":
    app()
