from __future__ import annotations

import threading
import time
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class LatestValue(Generic[T]):
    """
    Last-published value of one message type.

    One writer (the session listener) calls set(), one reader (the loop)
    calls get(). The lock only covers the swap, never the work on the value.
    """

    def __init__(self, initial: T):
        self._lock = threading.Lock()
        self._value = initial
        self._ts = 0.0
        self._updates = 0

    def set(self, value: T) -> None:
        now = time.time()
        with self._lock:
            self._value = value
            self._ts = now
            self._updates += 1

    def get(self) -> T:
        with self._lock:
            return self._value

    def get_with_age(self) -> Tuple[T, Optional[float]]:
        """Value plus seconds since it was published (None if never)."""
        with self._lock:
            value, ts = self._value, self._ts
        return value, (time.time() - ts) if ts > 0 else None

    @property
    def updates(self) -> int:
        with self._lock:
            return self._updates
