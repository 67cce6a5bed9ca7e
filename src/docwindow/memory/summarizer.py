"""Conversation summarizer: collapse older turns into one cached system turn.

A range of turns is keyed by ``range_hash``; a cached summary for the same
conversation and range is reused without a remote call. On a miss the
transcript is sent through the ``ResilientInvoker``. If generation fails
(or the circuit is open) a generic fallback text is returned and nothing is
cached, so the next request tries again.
"""

from __future__ import annotations

from collections.abc import Sequence

from docwindow.db.models import ConversationTurn
from docwindow.llm.client import Generator
from docwindow.llm.resilience import ResilientInvoker
from docwindow.memory.cache import SummaryCache
from docwindow.memory.hashing import range_hash
from docwindow.observability import get_logger

logger = get_logger(__name__)

SUMMARY_PREFIX = "Previous conversation summary: "
EMPTY_CONTEXT = "No previous conversation context."

_SUMMARY_PROMPT = """\
Please create a concise summary of the following conversation history.
Focus on:
1. Key topics and questions discussed
2. Important facts, decisions, or conclusions reached
3. Any context that would be relevant for continuing the conversation
4. User preferences or requirements mentioned

Keep the summary brief but informative (aim for 200-300 tokens).
Format it as a coherent narrative, not bullet points.

Conversation to summarize:
---
{transcript}
---

Summary:"""


def fallback_text(message_count: int) -> str:
    return f"Previous conversation covered {message_count} messages about various topics."


def build_transcript(turns: Sequence[ConversationTurn]) -> str:
    """Render turns as ``"<Role>: <text>"`` blocks separated by blank lines."""
    return "".join(f"{turn.role.value}: {turn.text}\n\n" for turn in turns)


class ConversationSummarizer:
    """Summarize a range of turns, reusing cached summaries where possible.

    Args:
        cache: Summary cache backed by the shared store.
        generator: Remote text generation.
        invoker: Retry/circuit-breaker wrapper; share one invoker (or one
            breaker) across all summarizers in a process.
    """

    def __init__(
        self,
        cache: SummaryCache,
        generator: Generator,
        invoker: ResilientInvoker | None = None,
    ) -> None:
        self._cache = cache
        self._generator = generator
        self._invoker = invoker or ResilientInvoker()

    def summarize(
        self, conversation_id: str, turns: Sequence[ConversationTurn]
    ) -> ConversationTurn:
        """Return a SYSTEM turn summarizing *turns* (chronological order)."""
        if not turns:
            return ConversationTurn.system(EMPTY_CONTEXT)

        key = range_hash(turns)
        cached = self._cache.lookup(conversation_id, key)
        if cached is not None:
            logger.info(
                "summary_cache_hit",
                conversation_id=conversation_id,
                messages=len(turns),
                hash=key[:8],
            )
            return ConversationTurn.system(SUMMARY_PREFIX + cached.summary_text)

        logger.info(
            "summary_cache_miss", conversation_id=conversation_id, messages=len(turns)
        )
        prompt = _SUMMARY_PROMPT.format(transcript=build_transcript(turns))
        fallback = fallback_text(len(turns))
        summary = self._invoker.call_with_retry(
            "message_summarization",
            lambda: self._generator.generate(prompt).strip(),
            fallback,
        )

        if summary == fallback or not summary:
            logger.warning("summary_fallback_used", conversation_id=conversation_id)
            return ConversationTurn.system(fallback)

        entry = self._cache.store(conversation_id, key, summary, len(turns))
        logger.info(
            "summary_cached",
            conversation_id=conversation_id,
            hash=key[:8],
            tokens=entry.token_estimate,
        )
        return ConversationTurn.system(SUMMARY_PREFIX + summary)
