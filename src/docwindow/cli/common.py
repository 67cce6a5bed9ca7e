"""Helpers shared by CLI commands: config loading and DB/memory wiring."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import typer
from rich.console import Console

from docwindow.cli.errors import err_config, err_no_db
from docwindow.config import ConfigError, DocwindowConfig, load_config
from docwindow.db.repository import Repository
from docwindow.db.schema import open_db
from docwindow.llm.client import LiteLLMGenerator
from docwindow.llm.resilience import ResilientInvoker
from docwindow.memory.cache import SummaryCache
from docwindow.memory.summarizer import ConversationSummarizer
from docwindow.memory.window import ConversationMemory

console = Console()


def load_config_or_exit() -> DocwindowConfig:
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


def resolve_db(db: Path | None, cfg: DocwindowConfig) -> Path:
    """The ``--db`` flag wins over ``database.path`` from config."""
    return db if db is not None else Path(cfg.database.path)


def open_existing_db(db_path: Path) -> sqlite3.Connection:
    """Open *db_path*, exiting with an actionable message if it does not exist."""
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    return open_db(db_path)


def build_memory(repo: Repository, cfg: DocwindowConfig) -> ConversationMemory:
    """Wire a ConversationMemory with a LiteLLM-backed summarizer."""
    summarizer = ConversationSummarizer(
        SummaryCache(repo),
        LiteLLMGenerator(cfg.generation),
        ResilientInvoker.from_config(cfg.resilience),
    )
    return ConversationMemory(repo, summarizer, cfg.memory)
