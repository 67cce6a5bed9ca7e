"""Cache janitor: daily eviction of summaries that have not been read recently.

Entries whose ``last_accessed_at`` is older than ``max_age_days`` are
deleted. The scheduled sweep runs once a day at ``cleanup_hour`` (local
time) on a daemon thread and honours ``cleanup_enabled``; the manual
trigger always runs.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from docwindow.config import CacheCfg
from docwindow.memory.cache import SummaryCache
from docwindow.observability import get_logger

logger = get_logger(__name__)


class CacheJanitor:
    """Evict stale cached summaries, on demand or on a daily schedule.

    Args:
        cache: Summary cache sharing the application's store.
        config: Age limit, enable flag and hour of the daily sweep.
        local_now: Returns the current local time; drives the schedule only.
    """

    def __init__(
        self,
        cache: SummaryCache,
        config: CacheCfg | None = None,
        *,
        local_now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._cache = cache
        self.config = config or CacheCfg()
        self._local_now = local_now
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        logger.info(
            "janitor_initialized",
            enabled=self.config.cleanup_enabled,
            max_age_days=self.config.max_age_days,
            cleanup_hour=self.config.cleanup_hour,
        )

    @property
    def max_age(self) -> timedelta:
        return timedelta(days=self.config.max_age_days)

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    def cleanup_stale_cache(self) -> int:
        """Scheduled sweep. Does nothing (returns 0) when cleanup is disabled."""
        if not self.config.cleanup_enabled:
            logger.debug("cache_cleanup_disabled")
            return 0
        deleted = self._cache.evict_older_than(self.max_age)
        logger.info("cache_cleanup_complete", deleted=deleted, trigger="schedule")
        return deleted

    def trigger_manual_cleanup(self) -> int:
        """Run a sweep now, regardless of ``cleanup_enabled``. Returns rows deleted."""
        deleted = self._cache.evict_older_than(self.max_age)
        logger.info("cache_cleanup_complete", deleted=deleted, trigger="manual")
        return deleted

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def next_run_at(self) -> datetime:
        """Next local ``cleanup_hour:00`` strictly after now."""
        now = self._local_now()
        run = now.replace(hour=self.config.cleanup_hour, minute=0, second=0, microsecond=0)
        if run <= now:
            run += timedelta(days=1)
        return run

    def seconds_until_next_run(self) -> float:
        return max((self.next_run_at() - self._local_now()).total_seconds(), 0.0)

    def run_forever(self) -> None:
        """Block, sweeping once a day, until ``stop()`` is called."""
        while not self._stop.wait(self.seconds_until_next_run()):
            try:
                self.cleanup_stale_cache()
            except sqlite3.Error:
                logger.exception("cache_cleanup_failed")

    def start(self) -> None:
        """Run the daily schedule on a daemon thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever, name="cache-janitor", daemon=True
        )
        self._thread.start()
        logger.info("janitor_started", next_run=self.next_run_at().isoformat())

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
