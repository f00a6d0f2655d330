"""Cancellation and progress primitives owned by a single scan."""

from __future__ import annotations

import threading


class CancelToken:
    """Cooperative cancellation flag shared between a scan and its caller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProgressCounter:
    """Thread-safe, monotonically increasing count of visited entries."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, n: int = 1) -> int:
        """Add ``n`` to the counter and return the new value."""
        with self._lock:
            self._value += n
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
