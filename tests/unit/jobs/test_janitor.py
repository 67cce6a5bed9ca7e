"""Tests for CacheJanitor sweeps and scheduling."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from docwindow.config import CacheCfg
from docwindow.jobs.janitor import CacheJanitor
from docwindow.memory.cache import SummaryCache

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def cache(repo):
    now = [T0]
    cache = SummaryCache(repo, clock=lambda: now[0])
    cache.store("c1", "stale", "old summary", message_count=4)
    now[0] = T0 + timedelta(days=10)
    cache.store("c1", "fresh", "new summary", message_count=4)
    return cache


def _fixed(moment: datetime):
    return lambda: moment


class _ScriptedCache:
    """Stand-in cache whose sweeps follow a script, stopping the janitor at the end."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = 0
        self.janitor = None

    def evict_older_than(self, max_age):
        self.calls += 1
        step = self.script.pop(0)
        if not self.script:
            self.janitor.stop()
        if isinstance(step, Exception):
            raise step
        return step


# ------------------------------------------------------------------
# Sweeps
# ------------------------------------------------------------------


def test_max_age_from_config(cache):
    assert CacheJanitor(cache, CacheCfg(max_age_days=3)).max_age == timedelta(days=3)


def test_scheduled_sweep_evicts_stale_entries(cache):
    assert CacheJanitor(cache).cleanup_stale_cache() == 1
    assert cache.count() == 1
    assert cache.lookup("c1", "fresh") is not None


def test_scheduled_sweep_disabled(cache):
    janitor = CacheJanitor(cache, CacheCfg(cleanup_enabled=False))
    assert janitor.cleanup_stale_cache() == 0
    assert cache.count() == 2


def test_manual_trigger_runs_even_when_disabled(cache):
    janitor = CacheJanitor(cache, CacheCfg(cleanup_enabled=False))
    assert janitor.trigger_manual_cleanup() == 1
    assert cache.count() == 1


def test_second_sweep_finds_nothing(cache):
    janitor = CacheJanitor(cache)
    janitor.trigger_manual_cleanup()
    assert janitor.trigger_manual_cleanup() == 0


# ------------------------------------------------------------------
# Scheduling
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "now,expected",
    [
        (datetime(2026, 3, 1, 1, 30), datetime(2026, 3, 1, 2, 0)),
        (datetime(2026, 3, 1, 2, 0), datetime(2026, 3, 2, 2, 0)),
        (datetime(2026, 3, 1, 23, 59), datetime(2026, 3, 2, 2, 0)),
        (datetime(2026, 12, 31, 3, 0), datetime(2027, 1, 1, 2, 0)),
    ],
)
def test_next_run_at(cache, now, expected):
    janitor = CacheJanitor(cache, CacheCfg(cleanup_hour=2), local_now=_fixed(now))
    assert janitor.next_run_at() == expected


def test_seconds_until_next_run(cache):
    janitor = CacheJanitor(cache, local_now=_fixed(datetime(2026, 3, 1, 1, 30)))
    assert janitor.seconds_until_next_run() == 1800.0


def test_run_forever_sweeps_when_hour_arrives():
    scripted = _ScriptedCache([3])
    almost = datetime(2026, 3, 1, 1, 59, 59, 999_000)
    janitor = CacheJanitor(scripted, local_now=_fixed(almost))
    scripted.janitor = janitor

    janitor.run_forever()

    assert scripted.calls == 1


def test_run_forever_survives_database_errors():
    scripted = _ScriptedCache([sqlite3.OperationalError("database is locked"), 0])
    almost = datetime(2026, 3, 1, 1, 59, 59, 999_000)
    janitor = CacheJanitor(scripted, local_now=_fixed(almost))
    scripted.janitor = janitor

    janitor.run_forever()

    assert scripted.calls == 2


def test_start_and_stop_background_thread(cache):
    janitor = CacheJanitor(cache, local_now=_fixed(datetime(2026, 3, 1, 1, 0)))

    janitor.start()
    assert janitor.is_running
    janitor.start()  # second start is a no-op

    janitor.stop(timeout=2.0)
    assert not janitor.is_running
    assert cache.count() == 2  # the hour never arrived
