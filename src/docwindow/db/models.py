"""Domain models for the docwindow persistence layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Speaker of a conversation turn; the value is the transcript label."""

    USER = "User"
    ASSISTANT = "Assistant"
    SYSTEM = "System"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: str | None) -> Role:
        """Map a free-form role name ("user", "ai", "System", ...) to a Role."""
        value = (raw or "").strip().lower()
        if "user" in value or value == "human":
            return cls.USER
        if "assistant" in value or value == "ai":
            return cls.ASSISTANT
        if "system" in value:
            return cls.SYSTEM
        return cls.UNKNOWN


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    text: str

    @classmethod
    def user(cls, text: str) -> ConversationTurn:
        return cls(Role.USER, text)

    @classmethod
    def assistant(cls, text: str) -> ConversationTurn:
        return cls(Role.ASSISTANT, text)

    @classmethod
    def system(cls, text: str) -> ConversationTurn:
        return cls(Role.SYSTEM, text)


@dataclass
class CachedSummary:
    conversation_id: str
    range_hash: str
    summary_text: str
    message_count: int
    token_estimate: int
    created_at: datetime
    last_accessed_at: datetime
    id: int | None = None  # set after insert; None for unsaved rows
