"""Deadline and cancellation carried through blocking external calls."""

from __future__ import annotations

import threading
import time
from typing import Callable

from .errors import CallCancelledError


class CallContext:
    """Carries an optional deadline and a cancellation flag.

    Blocking calls cannot be interrupted mid-flight from another thread, so
    every external call checks the context first and bounds its socket
    timeout by the time remaining.
    """

    def __init__(
        self,
        *,
        deadline: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._deadline = deadline
        self._clock = clock
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(
        cls, seconds: float, *, clock: Callable[[], float] = time.monotonic
    ) -> "CallContext":
        return cls(deadline=clock() + seconds, clock=clock)

    @classmethod
    def background(cls) -> "CallContext":
        return cls()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, operation: str = "call") -> None:
        """Raise when the caller gave up on ``operation``."""
        if self.cancelled:
            raise CallCancelledError(f"{operation} cancelled by caller")
        if self.expired():
            raise CallCancelledError(f"{operation} deadline exceeded")

    def timeout_for(self, per_call: float) -> float:
        """Socket timeout for the next call: per-call cap bounded by the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return per_call
        return min(per_call, remaining)


def ensure_context(context: CallContext | None) -> CallContext:
    return context if context is not None else CallContext.background()


__all__ = ["CallContext", "ensure_context"]
