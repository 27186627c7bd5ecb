"""Tests for the in-process TTL cache."""

from __future__ import annotations

from macro_risk.common.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestTTLCache:
    def test_get_fresh(self):
        clock = FakeClock()
        cache = TTLCache[float](60, clock=clock)
        cache.set("DGS10", 4.5)
        clock.now = 59.0
        assert cache.get("DGS10") == 4.5

    def test_expired_entry_evicted(self):
        clock = FakeClock()
        cache = TTLCache[float](60, clock=clock)
        cache.set("DGS10", 4.5)
        clock.now = 61.0
        assert cache.get("DGS10") is None
        assert cache.stats()["total"] == 0

    def test_missing_key(self):
        assert TTLCache[float](60).get("nope") is None

    def test_set_refreshes_timestamp(self):
        clock = FakeClock()
        cache = TTLCache[float](60, clock=clock)
        cache.set("DGS10", 4.5)
        clock.now = 50.0
        cache.set("DGS10", 4.6)
        clock.now = 100.0
        assert cache.get("DGS10") == 4.6

    def test_stats_fresh_and_stale(self):
        clock = FakeClock()
        cache = TTLCache[int](60, clock=clock)
        cache.set("a", 1)
        clock.now = 30.0
        cache.set("b", 2)
        clock.now = 70.0
        assert cache.stats() == {"total": 2, "fresh": 1, "stale": 1}

    def test_clear(self):
        cache = TTLCache[int](60)
        cache.set("a", 1)
        cache.clear()
        assert cache.get("a") is None
        assert cache.stats()["total"] == 0
