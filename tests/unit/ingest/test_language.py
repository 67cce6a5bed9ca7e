"""Tests for dominant-language detection."""

from __future__ import annotations

import pytest

from docwindow.ingest.language import detect_language, hebrew_ratio, is_hebrew


@pytest.mark.parametrize(
    "text,expected",
    [
        ("The quick brown fox.", "en"),
        ("שלום עולם", "he"),
        ("שלום hello world", "en"),
        ("מסמך טכני על PDF", "he"),
        ("12345 !!!", "he"),  # no letters at all: tie favours Hebrew
        ("", "en"),
        (None, "en"),
    ],
)
def test_detect_language(text, expected):
    assert detect_language(text) == expected


def test_is_hebrew_block_bounds():
    assert is_hebrew("\u0590")
    assert is_hebrew("\u05ff")
    assert not is_hebrew("\u0600")
    assert not is_hebrew("a")


def test_hebrew_ratio():
    assert hebrew_ratio("") == 0.0
    assert hebrew_ratio("שש ab") == pytest.approx(0.4)
