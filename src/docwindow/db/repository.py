"""Repository pattern for all docwindow database operations.

Single interface for: per-conversation turn logs and the content-addressed
summary cache. Statement execution is serialised with a lock so one
connection can be shared by request handlers and the cache janitor thread.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Sequence
from datetime import datetime, timezone

from docwindow.db.models import CachedSummary, ConversationTurn, Role


def to_db_timestamp(moment: datetime) -> str:
    """Render *moment* as a sortable UTC ISO-8601 string (fixed precision)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(raw: str) -> datetime:
    return datetime.fromisoformat(raw)


class Repository:
    """Data access layer for turn logs and cached summaries.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see docwindow.db.schema.initialize).
        """
        self._conn = conn
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Conversation turns
    # ------------------------------------------------------------------

    def get_turns(self, conversation_id: str) -> list[ConversationTurn]:
        """Return every turn of *conversation_id* in chronological order."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT role, content FROM conversation_turns "
                "WHERE conversation_id = ? ORDER BY seq",
                (conversation_id,),
            ).fetchall()
        return [ConversationTurn(Role(r["role"]), r["content"]) for r in rows]

    def append_turns(self, conversation_id: str, turns: Sequence[ConversationTurn]) -> None:
        """Append *turns* after the last stored turn of *conversation_id*."""
        if not turns:
            return
        with self._lock:
            row = self._conn.execute(
                "SELECT COALESCE(MAX(seq), -1) FROM conversation_turns WHERE conversation_id = ?",
                (conversation_id,),
            ).fetchone()
            start = row[0] + 1
            self._conn.executemany(
                "INSERT INTO conversation_turns (conversation_id, seq, role, content) "
                "VALUES (?, ?, ?, ?)",
                [
                    (conversation_id, start + i, turn.role.value, turn.text)
                    for i, turn in enumerate(turns)
                ],
            )
            self._conn.commit()

    def delete_turns(self, conversation_id: str) -> int:
        """Delete the turn log of *conversation_id*. Returns rows removed."""
        with self._lock:
            cur = self._conn.execute(
                "DELETE FROM conversation_turns WHERE conversation_id = ?",
                (conversation_id,),
            )
            self._conn.commit()
        return cur.rowcount

    def list_conversations(self) -> list[tuple[str, int]]:
        """Return ``(conversation_id, turn_count)`` pairs, ordered by id."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT conversation_id, COUNT(*) AS n FROM conversation_turns "
                "GROUP BY conversation_id ORDER BY conversation_id"
            ).fetchall()
        return [(r["conversation_id"], r["n"]) for r in rows]

    # ------------------------------------------------------------------
    # Summary cache
    # ------------------------------------------------------------------

    def find_summary(self, conversation_id: str, range_hash: str) -> CachedSummary | None:
        """Return the cached summary for the key, or None."""
        with self._lock:
            row = self._conn.execute(
                """
                SELECT id, conversation_id, range_hash, summary_text, message_count,
                       token_estimate, created_at, last_accessed_at
                FROM summary_cache WHERE conversation_id = ? AND range_hash = ?
                """,
                (conversation_id, range_hash),
            ).fetchone()
        return _row_to_summary(row) if row else None

    def save_summary(self, summary: CachedSummary) -> None:
        """Upsert *summary* on ``(conversation_id, range_hash)``; last write wins."""
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO summary_cache (conversation_id, range_hash, summary_text,
                    message_count, token_estimate, created_at, last_accessed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (conversation_id, range_hash) DO UPDATE SET
                    summary_text = excluded.summary_text,
                    message_count = excluded.message_count,
                    token_estimate = excluded.token_estimate,
                    created_at = excluded.created_at,
                    last_accessed_at = excluded.last_accessed_at
                """,
                (
                    summary.conversation_id,
                    summary.range_hash,
                    summary.summary_text,
                    summary.message_count,
                    summary.token_estimate,
                    to_db_timestamp(summary.created_at),
                    to_db_timestamp(summary.last_accessed_at),
                ),
            )
            self._conn.commit()

    def touch_summary(self, conversation_id: str, range_hash: str, accessed_at: datetime) -> None:
        """Set ``last_accessed_at`` of one cache row."""
        with self._lock:
            self._conn.execute(
                "UPDATE summary_cache SET last_accessed_at = ? "
                "WHERE conversation_id = ? AND range_hash = ?",
                (to_db_timestamp(accessed_at), conversation_id, range_hash),
            )
            self._conn.commit()

    def delete_summaries_before(self, cutoff: datetime) -> int:
        """Delete rows whose ``last_accessed_at`` is strictly before *cutoff*.

        Returns:
            Number of rows deleted.
        """
        with self._lock:
            cur = self._conn.execute(
                "DELETE FROM summary_cache WHERE last_accessed_at < ?",
                (to_db_timestamp(cutoff),),
            )
            self._conn.commit()
        return cur.rowcount

    def delete_summaries_by_conversation(self, conversation_id: str) -> int:
        with self._lock:
            cur = self._conn.execute(
                "DELETE FROM summary_cache WHERE conversation_id = ?", (conversation_id,)
            )
            self._conn.commit()
        return cur.rowcount

    def count_summaries(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM summary_cache").fetchone()[0]

    def oldest_summary_access(self) -> datetime | None:
        """Return the least recent ``last_accessed_at`` in the cache, or None."""
        with self._lock:
            row = self._conn.execute(
                "SELECT MIN(last_accessed_at) FROM summary_cache"
            ).fetchone()
        return from_db_timestamp(row[0]) if row and row[0] else None


# ------------------------------------------------------------------
# Row mappers
# ------------------------------------------------------------------


def _row_to_summary(row: sqlite3.Row) -> CachedSummary:
    return CachedSummary(
        id=row["id"],
        conversation_id=row["conversation_id"],
        range_hash=row["range_hash"],
        summary_text=row["summary_text"],
        message_count=row["message_count"],
        token_estimate=row["token_estimate"],
        created_at=from_db_timestamp(row["created_at"]),
        last_accessed_at=from_db_timestamp(row["last_accessed_at"]),
    )
