"""Data sources that produce indicator snapshots and histories.

FredDataSource fetches live values concurrently, falling back per series to
the catalog value when a fetch fails, and caches results for
``cache_ttl_seconds``. MockDataSource serves the catalog values only.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Protocol

import httpx

from macro_risk.common.cache import TTLCache
from macro_risk.common.types import IndicatorId
from macro_risk.config import get_settings
from macro_risk.indicators.catalog import INDICATORS, fetched_indicator_ids, format_value
from macro_risk.indicators.derived import with_derived
from macro_risk.indicators.fred import fetch_history, fetch_latest
from macro_risk.indicators.models import (
    HistoricalSeries,
    IndicatorReading,
    IndicatorSnapshot,
    Observation,
    SourceLabel,
)
from macro_risk.indicators.treasury import DeficitRatio, fetch_deficit_gdp

logger = logging.getLogger(__name__)

# Errors that mean "this one value is unavailable" rather than a bug
_FETCH_ERRORS = (httpx.HTTPError, ValueError, KeyError)


class HistoryProvider(Protocol):
    """Anything that can supply a historical series for an indicator."""

    async def get_history(self, indicator_id: IndicatorId, periods: int) -> HistoricalSeries | None:
        """Return up to *periods* newest-first observations, or None if unavailable."""
        ...


class DataSource(HistoryProvider, Protocol):
    """Protocol for snapshot + history providers consumed by the pipeline."""

    async def get_snapshot(self) -> IndicatorSnapshot:
        """Return current values for every catalog indicator, derived entries included."""
        ...


def live_reading(indicator_id: IndicatorId, obs: Observation) -> IndicatorReading:
    spec = INDICATORS[indicator_id]
    return IndicatorReading(
        raw=obs.value,
        display_value=format_value(indicator_id, obs.value),
        threshold=spec.threshold,
        source=SourceLabel.LIVE,
        name=spec.name,
        as_of=obs.date,
    )


def fallback_reading(indicator_id: IndicatorId, note: str | None = None) -> IndicatorReading:
    spec = INDICATORS[indicator_id]
    return IndicatorReading(
        raw=spec.fallback_value,
        display_value=format_value(indicator_id, spec.fallback_value),
        threshold=spec.threshold,
        source=SourceLabel.MOCK,
        name=spec.name,
        as_of=date.today(),
        note=note,
    )


def connection_status(snapshot: IndicatorSnapshot) -> dict[str, object]:
    """Summarize how much of *snapshot* is live data."""
    counts = snapshot.count_by_source()
    live = counts[SourceLabel.LIVE]
    mock = counts[SourceLabel.MOCK]
    total = len(snapshot)
    return {
        "live_count": live,
        "mock_count": mock,
        "total_count": total,
        "is_fully_live": total > 0 and mock == 0,
        "is_partial_live": live > 0 and mock > 0,
    }


class MockDataSource:
    """Serves catalog fallback values; has no history."""

    async def get_snapshot(self) -> IndicatorSnapshot:
        readings = {i: fallback_reading(i) for i in fetched_indicator_ids()}
        snapshot = with_derived(IndicatorSnapshot(readings), None)
        logger.info("Loaded %d mock indicator(s)", len(snapshot))
        return snapshot

    async def get_history(self, indicator_id: IndicatorId, periods: int) -> HistoricalSeries | None:
        return None


class FredDataSource:
    """Live FRED + Treasury data source with per-series fallback and TTL caching."""

    def __init__(self, cache_ttl_seconds: float | None = None) -> None:
        settings = get_settings()
        ttl = settings.cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        self._max_concurrency = settings.max_concurrency
        self._latest_cache: TTLCache[Observation] = TTLCache(ttl)
        self._history_cache: TTLCache[HistoricalSeries] = TTLCache(ttl)
        self._deficit_cache: TTLCache[DeficitRatio] = TTLCache(ttl)

    async def _latest(self, indicator_id: IndicatorId) -> Observation:
        cached = self._latest_cache.get(indicator_id)
        if cached is not None:
            logger.debug("Cache hit: %s", indicator_id)
            return cached
        obs = await fetch_latest(indicator_id)
        self._latest_cache.set(indicator_id, obs)
        return obs

    async def _deficit(self) -> DeficitRatio | None:
        cached = self._deficit_cache.get("deficit_gdp")
        if cached is not None:
            return cached
        try:
            deficit = await fetch_deficit_gdp()
        except _FETCH_ERRORS as exc:
            logger.warning("Failed to fetch deficit data: %s", exc)
            return None
        self._deficit_cache.set("deficit_gdp", deficit)
        return deficit

    async def get_snapshot(self) -> IndicatorSnapshot:
        """Fetch the latest value of every FRED indicator concurrently.

        A failed series is replaced by its catalog value (source Mock), so the
        snapshot always covers the whole catalog.
        """
        ids = fetched_indicator_ids()
        sem = asyncio.Semaphore(self._max_concurrency)

        async def _throttled(indicator_id: IndicatorId) -> Observation:
            async with sem:
                return await self._latest(indicator_id)

        fetched = await asyncio.gather(*(_throttled(i) for i in ids), return_exceptions=True)

        readings: dict[IndicatorId, IndicatorReading] = {}
        failed = 0
        for indicator_id, result in zip(ids, fetched):
            if isinstance(result, BaseException):
                failed += 1
                logger.warning("Failed to fetch %s, using fallback value: %s", indicator_id, result)
                readings[indicator_id] = fallback_reading(indicator_id, note=f"Live fetch failed: {result}")
            else:
                readings[indicator_id] = live_reading(indicator_id, result)

        logger.info("Snapshot fetch: %d live, %d fallback", len(ids) - failed, failed)
        deficit = await self._deficit()
        return with_derived(IndicatorSnapshot(readings), deficit)

    async def get_history(self, indicator_id: IndicatorId, periods: int) -> HistoricalSeries | None:
        """Newest-first history, or None for derived indicators and empty series.

        Fetch errors are logged and re-raised so callers can report them.
        """
        spec = INDICATORS.get(indicator_id)
        if spec is not None and spec.derived:
            return None

        key = f"{indicator_id}:{periods}"
        cached = self._history_cache.get(key)
        if cached is not None:
            return cached

        try:
            series = await fetch_history(indicator_id, periods)
        except _FETCH_ERRORS as exc:
            logger.warning("Failed to fetch history for %s: %s", indicator_id, exc)
            raise

        if not series:
            return None
        self._history_cache.set(key, series)
        return series

    def clear_cache(self) -> None:
        self._latest_cache.clear()
        self._history_cache.clear()
        self._deficit_cache.clear()

    def cache_stats(self) -> dict[str, dict[str, int]]:
        return {
            "latest": self._latest_cache.stats(),
            "history": self._history_cache.stats(),
            "deficit": self._deficit_cache.stats(),
        }
