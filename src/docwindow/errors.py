"""Exception taxonomy for the context-window core.

Token-budget overruns are resolved by truncation and never raised; cache key
collisions are not modelled (full-content SHA-256).
"""

from __future__ import annotations


class DocwindowError(Exception):
    """Base class for all docwindow errors."""


class ExtractionError(DocwindowError):
    """A source document could not be read or yielded no usable text.

    Reported per file by the ingest pipeline; never aborts the batch.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to extract '{path}': {reason}")
        self.path = path
        self.reason = reason


class GenerationError(DocwindowError):
    """A remote generation call failed after every retry attempt."""


class CircuitOpenError(GenerationError):
    """Fast-fail signal: the circuit breaker is open, no attempt was made."""
