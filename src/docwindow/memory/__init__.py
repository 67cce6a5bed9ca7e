"""Conversation memory: token-budgeted windowing over a summarized turn log."""

from docwindow.memory.cache import SummaryCache
from docwindow.memory.hashing import range_hash
from docwindow.memory.summarizer import ConversationSummarizer
from docwindow.memory.tokens import estimate_text_tokens, estimate_turn_tokens
from docwindow.memory.window import ConversationMemory

__all__ = [
    "ConversationMemory",
    "ConversationSummarizer",
    "SummaryCache",
    "range_hash",
    "estimate_text_tokens",
    "estimate_turn_tokens",
]
