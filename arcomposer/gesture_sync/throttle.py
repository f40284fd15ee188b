"""Emission gate: at most one emission per interval, with a trailing flush."""
from __future__ import annotations

import time
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ThrottledEmitter(Generic[T]):
    """Gate calls to emit.

    submit() emits immediately when the interval has passed since the last
    emission, otherwise keeps the value as pending (latest wins). poll()
    emits a pending value once the interval has passed. flush() emits the
    terminal value unconditionally.
    """

    def __init__(
        self,
        emit: Callable[[T], None],
        interval_ms: float,
        clock: Optional[Callable[[], float]] = None,
    ):
        if interval_ms < 0:
            raise ValueError("interval_ms must be >= 0")
        self._emit = emit
        self.interval_ms = interval_ms
        self._clock = clock or _monotonic_ms
        self._last_emit_ms: Optional[float] = None
        self._pending: Optional[T] = None
        self._has_pending = False

    @property
    def has_pending(self) -> bool:
        return self._has_pending

    def _due(self, now: float) -> bool:
        return self._last_emit_ms is None or now - self._last_emit_ms >= self.interval_ms

    def _fire(self, value: T, now: float) -> None:
        self._pending = None
        self._has_pending = False
        self._last_emit_ms = now
        self._emit(value)

    def submit(self, value: T) -> bool:
        now = self._clock()
        if self._due(now):
            self._fire(value, now)
            return True
        self._pending = value
        self._has_pending = True
        return False

    def poll(self) -> bool:
        if not self._has_pending:
            return False
        now = self._clock()
        if not self._due(now):
            return False
        self._fire(self._pending, now)
        return True

    def flush(self, value: Optional[T] = None) -> bool:
        """Emit value (or the pending one) regardless of the interval."""
        if value is None:
            if not self._has_pending:
                return False
            value = self._pending
        self._fire(value, self._clock())
        return True

    def reset(self) -> None:
        self._pending = None
        self._has_pending = False
        self._last_emit_ms = None
