"""Retry, exponential backoff and circuit breaking around remote generation calls.

One ``CircuitBreaker`` is shared by reference among all callers of the same
category of remote call (e.g. every summarizer in the process), so repeated
exhaustion anywhere fast-fails everywhere until the open period elapses.

Backoff between attempts is ``base_delay * 2 ** (attempt - 1)``: with the
defaults (3 attempts, 1 s) a failing call waits 1 s, then 2 s, and gives up
without waiting after the last attempt.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from docwindow.config import ResilienceCfg
from docwindow.errors import CircuitOpenError, GenerationError
from docwindow.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitStatus(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class CircuitBreaker:
    """Consecutive-failure counter with a timed open state.

    Args:
        threshold: Exhausted calls in a row that open the circuit.
        open_duration: Seconds the circuit stays open.
        clock: Monotonic seconds; injectable for tests.
    """

    def __init__(
        self,
        threshold: int = 5,
        open_duration: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.threshold = threshold
        self.open_duration = open_duration
        self._clock = clock
        self._lock = threading.Lock()
        self.consecutive_failures = 0
        self.open_until = 0.0

    @property
    def state(self) -> CircuitStatus:
        return CircuitStatus.OPEN if self.open_until > self._clock() else CircuitStatus.CLOSED

    def is_open(self) -> bool:
        """Return True while open; an elapsed open period is closed lazily here."""
        if self.open_until > self._clock():
            return True
        if self.open_until > 0:
            with self._lock:
                if 0 < self.open_until <= self._clock():
                    self.open_until = 0.0
                    logger.info("circuit_closed", failures=self.consecutive_failures)
        return False

    def record_success(self) -> None:
        with self._lock:
            self.consecutive_failures = 0

    def record_failure(self) -> None:
        with self._lock:
            self.consecutive_failures += 1
            if self.consecutive_failures >= self.threshold:
                self.open_until = self._clock() + self.open_duration
                logger.error(
                    "circuit_opened",
                    failures=self.consecutive_failures,
                    open_seconds=self.open_duration,
                )


class ResilientInvoker:
    """Run a zero-argument remote call with retries behind a circuit breaker.

    Every ``Exception`` raised by the call is treated as retryable.

    Args:
        max_retries: Total attempts per invocation (not additional retries).
        base_delay: Seconds to wait after the first failed attempt.
        breaker: Shared breaker; a private one is created when omitted.
        sleep: Called with the backoff in seconds; injectable for tests.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        breaker: CircuitBreaker | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.breaker = breaker or CircuitBreaker()
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        cfg: ResilienceCfg,
        *,
        breaker: CircuitBreaker | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> ResilientInvoker:
        breaker = breaker or CircuitBreaker(cfg.failure_threshold, cfg.open_duration_seconds)
        return cls(cfg.max_retries, cfg.retry_delay_ms / 1000, breaker, sleep)

    def backoff(self, attempt: int) -> float:
        return self.base_delay * 2 ** (attempt - 1)

    def call_with_retry(self, operation: str, call: Callable[[], T], fallback: T) -> T:
        """Return ``call()``, or *fallback* when the circuit is open or every attempt fails."""
        if self.breaker.is_open():
            logger.warning("circuit_open_fallback", operation=operation)
            return fallback
        try:
            return self._attempt(operation, call)
        except CircuitOpenError:
            logger.warning("circuit_open_fallback", operation=operation)
            return fallback
        except GenerationError as exc:
            logger.error("call_failed_fallback", operation=operation, error=str(exc.__cause__))
            return fallback

    def call_with_retry_or_raise(self, operation: str, call: Callable[[], T]) -> T:
        """Return ``call()``.

        Raises:
            CircuitOpenError: The circuit is open; no attempt was made.
            GenerationError: Every attempt failed (chained to the last error).
        """
        if self.breaker.is_open():
            raise CircuitOpenError(f"Circuit breaker is open; '{operation}' not attempted")
        return self._attempt(operation, call)

    def _attempt(self, operation: str, call: Callable[[], T]) -> T:
        last_exc: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                result = call()
            except CircuitOpenError:
                # fast-fail signal; not retried and not counted as a failure
                raise
            except Exception as exc:  # every other failure is retryable
                last_exc = exc
                logger.warning(
                    "call_attempt_failed",
                    operation=operation,
                    attempt=attempt,
                    max_attempts=self.max_retries,
                    error=str(exc),
                )
                if attempt < self.max_retries:
                    self._sleep(self.backoff(attempt))
                continue
            self.breaker.record_success()
            logger.debug("call_succeeded", operation=operation, attempt=attempt)
            return result

        self.breaker.record_failure()
        raise GenerationError(
            f"All {self.max_retries} attempts failed for: {operation}"
        ) from last_exc
