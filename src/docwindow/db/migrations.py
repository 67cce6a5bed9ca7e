"""Forward-only migration runner for the docwindow schema."""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

# Timestamps in summary_cache are ISO-8601 UTC strings with fixed microsecond
# precision, so lexicographic comparison equals chronological comparison.
_V1_SQL = """
CREATE TABLE IF NOT EXISTS conversation_turns (
    conversation_id TEXT NOT NULL,
    seq             INTEGER NOT NULL,
    role            TEXT NOT NULL,
    content         TEXT NOT NULL,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (conversation_id, seq)
);

CREATE TABLE IF NOT EXISTS summary_cache (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id     TEXT NOT NULL,
    range_hash          TEXT NOT NULL,
    summary_text        TEXT NOT NULL,
    message_count       INTEGER NOT NULL,
    token_estimate      INTEGER NOT NULL,
    created_at          TEXT NOT NULL,
    last_accessed_at    TEXT NOT NULL,
    UNIQUE (conversation_id, range_hash)
);

CREATE INDEX IF NOT EXISTS idx_summary_cache_last_accessed
    ON summary_cache (last_accessed_at);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
