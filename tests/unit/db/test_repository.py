"""Tests for Repository: turn log and summary cache operations."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from docwindow.db.models import CachedSummary, ConversationTurn, Role
from docwindow.db.repository import from_db_timestamp, to_db_timestamp

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _summary(conv: str = "c1", h: str = "hash-a", text: str = "summary", at: datetime = T0):
    return CachedSummary(
        conversation_id=conv,
        range_hash=h,
        summary_text=text,
        message_count=4,
        token_estimate=len(text) // 4,
        created_at=at,
        last_accessed_at=at,
    )


# ------------------------------------------------------------------
# Timestamps
# ------------------------------------------------------------------


def test_timestamp_roundtrip_is_utc():
    stamp = to_db_timestamp(T0)
    assert stamp == "2026-03-01T12:00:00.000000+00:00"
    assert from_db_timestamp(stamp) == T0


def test_naive_timestamp_treated_as_utc():
    assert to_db_timestamp(datetime(2026, 3, 1, 12, 0)) == to_db_timestamp(T0)


def test_timestamps_sort_lexicographically():
    earlier = to_db_timestamp(T0)
    later = to_db_timestamp(T0 + timedelta(microseconds=1))
    assert earlier < later


# ------------------------------------------------------------------
# Conversation turns
# ------------------------------------------------------------------


def test_append_and_get_turns_in_order(repo):
    repo.append_turns("c1", [ConversationTurn.user("hi"), ConversationTurn.assistant("hello")])
    repo.append_turns("c1", [ConversationTurn.user("again")])

    turns = repo.get_turns("c1")

    assert [t.text for t in turns] == ["hi", "hello", "again"]
    assert [t.role for t in turns] == [Role.USER, Role.ASSISTANT, Role.USER]


def test_get_turns_unknown_conversation_is_empty(repo):
    assert repo.get_turns("nope") == []


def test_append_empty_is_noop(repo):
    repo.append_turns("c1", [])
    assert repo.list_conversations() == []


def test_conversations_are_isolated(repo):
    repo.append_turns("a", [ConversationTurn.user("for a")])
    repo.append_turns("b", [ConversationTurn.user("for b"), ConversationTurn.user("b2")])

    assert [t.text for t in repo.get_turns("a")] == ["for a"]
    assert repo.list_conversations() == [("a", 1), ("b", 2)]


def test_delete_turns_returns_count(repo):
    repo.append_turns("c1", [ConversationTurn.user("x"), ConversationTurn.user("y")])

    assert repo.delete_turns("c1") == 2
    assert repo.get_turns("c1") == []


# ------------------------------------------------------------------
# Summary cache
# ------------------------------------------------------------------


def test_save_and_find_summary(repo):
    repo.save_summary(_summary())

    found = repo.find_summary("c1", "hash-a")

    assert found is not None
    assert found.id is not None
    assert found.summary_text == "summary"
    assert found.message_count == 4
    assert found.last_accessed_at == T0


def test_find_summary_miss(repo):
    assert repo.find_summary("c1", "missing") is None


def test_find_summary_is_scoped_to_conversation(repo):
    repo.save_summary(_summary(conv="c1"))
    assert repo.find_summary("c2", "hash-a") is None


def test_save_summary_upserts_last_write_wins(repo):
    repo.save_summary(_summary(text="first"))
    repo.save_summary(_summary(text="second"))

    assert repo.count_summaries() == 1
    assert repo.find_summary("c1", "hash-a").summary_text == "second"


def test_touch_summary_updates_access_time(repo):
    repo.save_summary(_summary())
    later = T0 + timedelta(days=2)

    repo.touch_summary("c1", "hash-a", later)

    assert repo.find_summary("c1", "hash-a").last_accessed_at == later


def test_delete_summaries_before_is_strict(repo):
    repo.save_summary(_summary(h="old", at=T0 - timedelta(days=8)))
    repo.save_summary(_summary(h="edge", at=T0))
    repo.save_summary(_summary(h="new", at=T0 + timedelta(days=1)))

    deleted = repo.delete_summaries_before(T0)

    assert deleted == 1
    assert repo.find_summary("c1", "old") is None
    assert repo.find_summary("c1", "edge") is not None
    assert repo.find_summary("c1", "new") is not None


def test_delete_summaries_by_conversation(repo):
    repo.save_summary(_summary(conv="c1", h="a"))
    repo.save_summary(_summary(conv="c1", h="b"))
    repo.save_summary(_summary(conv="c2", h="a"))

    assert repo.delete_summaries_by_conversation("c1") == 2
    assert repo.count_summaries() == 1


def test_oldest_summary_access(repo):
    assert repo.oldest_summary_access() is None
    repo.save_summary(_summary(h="a", at=T0 + timedelta(hours=1)))
    repo.save_summary(_summary(h="b", at=T0))

    assert repo.oldest_summary_access() == T0


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("user", Role.USER),
        ("Human", Role.USER),
        ("assistant", Role.ASSISTANT),
        ("AI", Role.ASSISTANT),
        ("SYSTEM", Role.SYSTEM),
        ("tool", Role.UNKNOWN),
        (None, Role.UNKNOWN),
    ],
)
def test_role_parse(raw, expected):
    assert Role.parse(raw) is expected
