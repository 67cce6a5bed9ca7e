"""docwindow memory CLI commands.

Commands:
  docwindow memory list                              show conversations and turn counts
  docwindow memory show  --conversation ID           print the token-windowed context
  docwindow memory add   --conversation ID --role R --text T
  docwindow memory clear --conversation ID [--yes]   delete turns and cached summaries
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docwindow.cli.common import build_memory, load_config_or_exit, open_existing_db, resolve_db
from docwindow.cli.errors import err_conversation_not_found, err_no_api_key, err_unknown_role
from docwindow.db.models import ConversationTurn, Role
from docwindow.db.repository import Repository
from docwindow.db.schema import open_db
from docwindow.llm.client import provider_of, validate_api_key
from docwindow.memory.tokens import estimate_text_tokens

console = Console()

memory_app = typer.Typer(
    name="memory",
    help="Inspect and manage conversation memory (list, show, add, clear).",
    add_completion=False,
)

_ConversationOpt = Annotated[
    str, typer.Option("--conversation", "-c", help="Conversation id.")
]
_DbOpt = Annotated[
    Path | None,
    typer.Option("--db", help="Path to .docwindow.db (default: database.path from config)."),
]


@memory_app.command("list")
def memory_list_cmd(db: _DbOpt = None) -> None:
    """List conversations with their stored turn counts."""
    cfg = load_config_or_exit()
    conn = open_existing_db(resolve_db(db, cfg))
    try:
        conversations = Repository(conn).list_conversations()
    finally:
        conn.close()

    if not conversations:
        console.print("[yellow]No conversations stored.[/]")
        raise typer.Exit(0)

    table = Table(title="Conversations", show_header=True, header_style="bold")
    table.add_column("Conversation", style="bold")
    table.add_column("Turns", justify="right")
    for conversation_id, count in conversations:
        table.add_row(escape(conversation_id), str(count))
    console.print(table)


@memory_app.command("show")
def memory_show_cmd(conversation: _ConversationOpt, db: _DbOpt = None) -> None:
    """Print the context a chat model would receive for CONVERSATION."""
    cfg = load_config_or_exit()
    conn = open_existing_db(resolve_db(db, cfg))
    try:
        repo = Repository(conn)
        if not repo.get_turns(conversation):
            console.print(err_conversation_not_found(conversation))
            raise typer.Exit(0)

        try:
            validate_api_key(cfg.generation.model)
        except EnvironmentError:
            console.print(err_no_api_key(provider_of(cfg.generation.model)))

        window = build_memory(repo, cfg).get(conversation)
    finally:
        conn.close()

    total = 0
    for turn in window:
        tokens = estimate_text_tokens(turn.text)
        total += tokens
        console.print(f"[bold]{turn.role.value}[/] [dim](~{tokens} tokens)[/]")
        console.print(escape(turn.text))
        console.print()
    console.print(
        f"[dim]{len(window)} messages · ~{total} tokens (limit {cfg.memory.max_tokens})[/]"
    )


@memory_app.command("add")
def memory_add_cmd(
    conversation: _ConversationOpt,
    role: Annotated[str, typer.Option("--role", "-r", help="user, assistant or system.")],
    text: Annotated[str, typer.Option("--text", "-t", help="Turn text.")],
    db: _DbOpt = None,
) -> None:
    """Append one turn to CONVERSATION (creates the database if missing)."""
    parsed = Role.parse(role)
    if parsed is Role.UNKNOWN:
        console.print(err_unknown_role(role))
        raise typer.Exit(1)

    cfg = load_config_or_exit()
    conn = open_db(resolve_db(db, cfg))
    try:
        repo = Repository(conn)
        build_memory(repo, cfg).add(conversation, [ConversationTurn(parsed, text)])
        count = len(repo.get_turns(conversation))
    finally:
        conn.close()
    console.print(f"[green]✓[/] Added {parsed.value} turn to '{escape(conversation)}' ({count} turns)")


@memory_app.command("clear")
def memory_clear_cmd(
    conversation: _ConversationOpt,
    db: _DbOpt = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
) -> None:
    """Delete every turn and cached summary of CONVERSATION."""
    cfg = load_config_or_exit()
    conn = open_existing_db(resolve_db(db, cfg))
    try:
        repo = Repository(conn)
        turns = len(repo.get_turns(conversation))
        if turns == 0:
            console.print(err_conversation_not_found(conversation))
            raise typer.Exit(0)

        console.print(f"\nClear conversation: [bold]{escape(conversation)}[/] ({turns} turns)")
        if not yes and not typer.confirm("Confirm clear?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

        build_memory(repo, cfg).clear(conversation)
    finally:
        conn.close()
    console.print(f"[green]✓[/] Cleared: {escape(conversation)}")
