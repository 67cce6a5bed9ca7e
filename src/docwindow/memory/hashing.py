"""Content-addressed keys for ranges of conversation turns."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

from docwindow.db.models import ConversationTurn


def range_hash(turns: Sequence[ConversationTurn]) -> str:
    """Return the SHA-256 hex digest identifying the ordered *turns*.

    Each field is length-prefixed, so moving characters between adjacent
    texts (or between a role and a text) changes the digest.
    """
    digest = hashlib.sha256()
    for turn in turns:
        for part in (turn.role.value, turn.text or ""):
            encoded = part.encode("utf-8")
            digest.update(len(encoded).to_bytes(8, "big"))
            digest.update(encoded)
    return digest.hexdigest()
