"""Dominant-language detection: Hebrew block vs Latin letters."""

from __future__ import annotations

HEBREW_START = "\u0590"
HEBREW_END = "\u05ff"


def is_hebrew(ch: str) -> bool:
    return HEBREW_START <= ch <= HEBREW_END


def detect_language(text: str | None) -> str:
    """Return ``"he"`` or ``"en"`` by majority of Hebrew vs ASCII letters.

    Ties (including text with no letters at all) favour Hebrew; empty or
    missing text is ``"en"``.
    """
    if not text:
        return "en"
    hebrew = 0
    latin = 0
    for ch in text:
        if is_hebrew(ch):
            hebrew += 1
        elif ("a" <= ch <= "z") or ("A" <= ch <= "Z"):
            latin += 1
    return "he" if hebrew >= latin else "en"


def hebrew_ratio(text: str) -> float:
    """Fraction of characters of *text* in U+0590–U+05FF (0.0 for empty text)."""
    if not text:
        return 0.0
    return sum(1 for ch in text if is_hebrew(ch)) / len(text)
