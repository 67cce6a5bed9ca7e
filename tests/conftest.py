"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from docwindow.db.connection import Database
from docwindow.db.repository import Repository
from docwindow.db.schema import initialize
from docwindow.observability import reset_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo configure_logging() calls made by CLI invocations."""
    yield
    reset_logging()


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".docwindow.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)
