"""Token-windowed conversation memory with summarization of older turns.

``get()`` returns, in order of preference:

1. every stored turn, when the whole log fits ``max_tokens``;
2. the newest turns that fit, when the log is over budget but holds no more
   than ``recent_message_count`` turns;
3. ``[summary of older turns] + last recent_message_count turns``, truncated
   again from the oldest end if it still does not fit.
"""

from __future__ import annotations

from collections.abc import Sequence

from docwindow.config import MemoryCfg
from docwindow.db.models import ConversationTurn
from docwindow.db.repository import Repository
from docwindow.memory.summarizer import ConversationSummarizer
from docwindow.memory.tokens import estimate_text_tokens, estimate_turn_tokens
from docwindow.observability import get_logger

logger = get_logger(__name__)


def split_for_summary(
    turns: Sequence[ConversationTurn], recent_message_count: int
) -> tuple[list[ConversationTurn], list[ConversationTurn]]:
    """Split *turns* into ``(older, recent)``; ``older`` is empty for short logs."""
    if len(turns) <= recent_message_count:
        return [], list(turns)
    split = len(turns) - recent_message_count
    return list(turns[:split]), list(turns[split:])


def truncate_to_budget(
    turns: Sequence[ConversationTurn], max_tokens: int
) -> list[ConversationTurn]:
    """Keep the longest newest suffix of *turns* whose estimate fits *max_tokens*.

    Walking stops at the first turn (from the newest) that does not fit;
    chronological order is preserved.
    """
    kept: list[ConversationTurn] = []
    used = 0
    for turn in reversed(turns):
        cost = estimate_text_tokens(turn.text)
        if used + cost > max_tokens:
            break
        kept.append(turn)
        used += cost
    kept.reverse()
    return kept


class ConversationMemory:
    """Per-conversation turn log with a token-budgeted read view.

    Args:
        repo: Open Repository holding the turn log and summary cache.
        summarizer: Used to collapse older turns when over budget.
        config: ``max_tokens`` (default 8000) and ``recent_message_count``
            (default 6).
    """

    def __init__(
        self,
        repo: Repository,
        summarizer: ConversationSummarizer,
        config: MemoryCfg | None = None,
    ) -> None:
        self._repo = repo
        self._summarizer = summarizer
        self.config = config or MemoryCfg()
        logger.debug(
            "memory_initialized",
            max_tokens=self.config.max_tokens,
            recent_message_count=self.config.recent_message_count,
        )

    def add(self, conversation_id: str, turns: Sequence[ConversationTurn]) -> None:
        self._repo.append_turns(conversation_id, turns)
        logger.debug("turns_added", conversation_id=conversation_id, count=len(turns))

    def get(self, conversation_id: str) -> list[ConversationTurn]:
        turns = self._repo.get_turns(conversation_id)
        if not turns:
            return []

        max_tokens = self.config.max_tokens
        total = estimate_turn_tokens(turns)
        if total <= max_tokens:
            return turns

        logger.info(
            "token_limit_exceeded",
            conversation_id=conversation_id,
            tokens=total,
            limit=max_tokens,
        )
        older, recent = split_for_summary(turns, self.config.recent_message_count)
        if not older:
            return truncate_to_budget(turns, max_tokens)

        summary = self._summarizer.summarize(conversation_id, older)
        result = [summary, *recent]
        result_tokens = estimate_turn_tokens(result)
        logger.info(
            "older_turns_summarized",
            conversation_id=conversation_id,
            summarized=len(older),
            messages=len(result),
            tokens=result_tokens,
        )
        if result_tokens > max_tokens:
            logger.warning("still_over_limit_truncating", conversation_id=conversation_id)
            return truncate_to_budget(result, max_tokens)
        return result

    def clear(self, conversation_id: str) -> None:
        """Delete the turn log and every cached summary of *conversation_id*."""
        turns = self._repo.delete_turns(conversation_id)
        summaries = self._repo.delete_summaries_by_conversation(conversation_id)
        logger.info(
            "conversation_cleared",
            conversation_id=conversation_id,
            turns=turns,
            summaries=summaries,
        )
