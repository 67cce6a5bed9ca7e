"""Language-aware token estimate for conversation turns.

Hebrew text packs fewer characters per token than English, so the density
is blended by the share of Hebrew characters:

    chars_per_token = r * 2.5 + (1 - r) * 4.0      r = Hebrew ratio
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from docwindow.db.models import ConversationTurn
from docwindow.ingest.language import hebrew_ratio

HEBREW_CHARS_PER_TOKEN = 2.5
ENGLISH_CHARS_PER_TOKEN = 4.0


def estimate_text_tokens(text: str | None) -> int:
    if not text:
        return 0
    ratio = hebrew_ratio(text)
    density = ratio * HEBREW_CHARS_PER_TOKEN + (1 - ratio) * ENGLISH_CHARS_PER_TOKEN
    return math.ceil(len(text) / density)


def estimate_turn_tokens(turns: Iterable[ConversationTurn]) -> int:
    """Sum of ``estimate_text_tokens`` over the turn texts."""
    return sum(estimate_text_tokens(turn.text) for turn in turns)
