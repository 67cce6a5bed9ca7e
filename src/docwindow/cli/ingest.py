"""docwindow ingest: extract and chunk documents, print a per-file report.

Source dispatch by extension:
  .pdf               → PdfExtractor
  .txt .md .text     → PlainTextExtractor
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docwindow.cli.common import load_config_or_exit
from docwindow.cli.errors import err_no_files
from docwindow.ingest.chunker import AdaptiveChunker
from docwindow.ingest.pipeline import FileResult, IngestPipeline

console = Console()

_PREVIEW_CHARS = 160


def ingest_cmd(
    files: Annotated[
        list[Path] | None,
        typer.Argument(help="Documents to chunk (.pdf, .txt, .md, .text)."),
    ] = None,
    show: Annotated[
        bool,
        typer.Option("--show", help="Print every chunk's citation header and a preview."),
    ] = False,
) -> None:
    """Chunk documents into citation-framed retrieval units."""
    if not files:
        console.print(err_no_files())
        raise typer.Exit(1)

    cfg = load_config_or_exit()
    pipeline = IngestPipeline(chunker=AdaptiveChunker(cfg.chunking))
    report = pipeline.ingest(files)

    for result in report.files:
        _print_result(result, show=show)

    table = Table(title="Ingest summary", show_lines=False)
    table.add_column("File")
    table.add_column("Lang")
    table.add_column("Pages", justify="right")
    table.add_column("Chunks", justify="right")
    table.add_column("Tokens", justify="right")
    for result in report.files:
        table.add_row(
            Path(result.path).name,
            result.language or "-",
            str(result.pages),
            str(result.chunk_count),
            f"{result.token_estimate:,}",
        )
    console.print(table)

    if report.failed:
        raise typer.Exit(1)


def _print_result(result: FileResult, *, show: bool) -> None:
    console.print(f"\n[bold]→ {result.path}[/]")
    if not result.ok:
        console.print(f"  [red]✗ Error:[/] {escape(result.error or '')}")
        return
    console.print(
        f"  [green]✓[/] {result.chunk_count} chunks · {result.pages} pages · "
        f"language {result.language}"
    )
    if not show:
        return
    for chunk in result.chunks:
        header, _, body = chunk.content.partition("\n\n")
        preview = " ".join(body.split())[:_PREVIEW_CHARS]
        console.print(
            f"  [dim]#{chunk.index} · ~{chunk.token_estimate} tokens[/] {escape(header)}"
        )
        console.print(f"    {escape(preview)}")
