"""In-process expiring cache for upstream responses."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Key/value cache whose entries expire *ttl_seconds* after being set.

    Expired entries are evicted lazily on read. Lives only as long as the
    process; nothing is persisted.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: dict[str, tuple[float, V]] = {}

    def get(self, key: str) -> V | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: V) -> None:
        self._data[key] = (self._clock(), value)

    def clear(self) -> None:
        self._data.clear()

    def stats(self) -> dict[str, int]:
        """Counts of total, fresh and stale entries (stale = expired, not yet evicted)."""
        now = self._clock()
        fresh = sum(1 for stored_at, _ in self._data.values() if now - stored_at <= self.ttl_seconds)
        return {"total": len(self._data), "fresh": fresh, "stale": len(self._data) - fresh}
