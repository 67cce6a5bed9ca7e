"""Summary cache: content-addressed summaries keyed by conversation and range hash."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from docwindow.db.models import CachedSummary
from docwindow.db.repository import Repository
from docwindow.observability import get_logger

logger = get_logger(__name__)

# Rough chars-per-token used for the stored estimate of a summary.
SUMMARY_CHARS_PER_TOKEN = 4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SummaryCache:
    """Lookup, store and evict cached summaries through the Repository.

    Args:
        repo: Open Repository (shared with the memory and the janitor).
        clock: Returns the current aware UTC time; injectable for tests.
    """

    def __init__(self, repo: Repository, clock: Callable[[], datetime] = utc_now) -> None:
        self._repo = repo
        self._clock = clock

    def lookup(self, conversation_id: str, range_hash: str) -> CachedSummary | None:
        """Return the cached summary and refresh its access time, or None on a miss."""
        cached = self._repo.find_summary(conversation_id, range_hash)
        if cached is None:
            return None
        now = self._clock()
        self._repo.touch_summary(conversation_id, range_hash, now)
        cached.last_accessed_at = now
        return cached

    def store(
        self,
        conversation_id: str,
        range_hash: str,
        summary_text: str,
        message_count: int,
    ) -> CachedSummary:
        now = self._clock()
        entry = CachedSummary(
            conversation_id=conversation_id,
            range_hash=range_hash,
            summary_text=summary_text,
            message_count=message_count,
            token_estimate=len(summary_text) // SUMMARY_CHARS_PER_TOKEN,
            created_at=now,
            last_accessed_at=now,
        )
        self._repo.save_summary(entry)
        return entry

    def evict_older_than(self, max_age: timedelta) -> int:
        """Delete entries not accessed within *max_age*. Returns rows deleted."""
        cutoff = self._clock() - max_age
        deleted = self._repo.delete_summaries_before(cutoff)
        logger.debug("summary_cache_evicted", cutoff=cutoff.isoformat(), deleted=deleted)
        return deleted

    def forget_conversation(self, conversation_id: str) -> int:
        return self._repo.delete_summaries_by_conversation(conversation_id)

    def count(self) -> int:
        return self._repo.count_summaries()

    def oldest_access(self) -> datetime | None:
        return self._repo.oldest_summary_access()
