"""docwindow database layer."""

from docwindow.db.connection import Database
from docwindow.db.migrations import MIGRATIONS, run_migrations
from docwindow.db.repository import Repository
from docwindow.db.schema import initialize, open_db

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "open_db",
    "run_migrations",
    "MIGRATIONS",
]
