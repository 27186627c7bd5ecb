"""FRED (Federal Reserve Economic Data) API client.

Endpoint: /series/observations
Docs: https://fred.stlouisfed.org/docs/api/fred/
"""

from __future__ import annotations

import logging
from datetime import date

from macro_risk.common.http import HttpClient
from macro_risk.common.types import IndicatorId, MalformedValueError, parse_number
from macro_risk.config import get_settings
from macro_risk.indicators.models import HistoricalSeries, Observation

logger = logging.getLogger(__name__)

# FRED uses "." for observations that are not yet published
_MISSING_VALUE = "."


def parse_observations(series_id: IndicatorId, payload: dict) -> HistoricalSeries:
    """Convert a FRED observations payload into a newest-first series.

    Missing (".") and malformed values are dropped. Raises ValueError if the
    payload has no observations array.
    """
    records = payload.get("observations")
    if not isinstance(records, list):
        raise ValueError(f"FRED response for {series_id} missing 'observations' array")

    series: HistoricalSeries = []
    dropped = 0
    for record in records:
        raw = record.get("value", _MISSING_VALUE)
        if raw == _MISSING_VALUE:
            dropped += 1
            continue
        try:
            value = parse_number(raw, f"{series_id} value")
            obs_date = date.fromisoformat(record["date"])
        except (MalformedValueError, KeyError, TypeError, ValueError):
            dropped += 1
            continue
        series.append(Observation(date=obs_date, value=value))

    if dropped:
        logger.debug("FRED %s: dropped %d missing/malformed observation(s)", series_id, dropped)

    # Callers rely on newest-first ordering regardless of what the API returned
    series.sort(key=lambda o: o.date, reverse=True)
    return series


async def fetch_observations(series_id: IndicatorId, limit: int) -> HistoricalSeries:
    """Fetch the *limit* most recent observations for a FRED series.

    Raises:
        ValueError: no API key configured or malformed response
        httpx.HTTPStatusError / httpx.TimeoutException: after retries
    """
    settings = get_settings()
    if not settings.fred_api_key:
        raise ValueError("FRED_API_KEY is not configured")

    params = {
        "series_id": series_id,
        "api_key": settings.fred_api_key,
        "file_type": "json",
        "sort_order": "desc",
        "limit": limit,
    }

    async with HttpClient(base_url=settings.fred_api_url) as client:
        payload = await client.get_json("/series/observations", params=params)

    series = parse_observations(series_id, payload)
    logger.info("FRED: %s -> %d observation(s)", series_id, len(series))
    return series


async def fetch_latest(series_id: IndicatorId) -> Observation:
    """Fetch the most recent valid observation for a FRED series.

    Asks for a few extra points so a trailing "." does not leave us empty.
    """
    series = await fetch_observations(series_id, limit=5)
    if not series:
        raise ValueError(f"No valid observations available for {series_id}")
    return series[0]


async def fetch_history(series_id: IndicatorId, periods: int) -> HistoricalSeries:
    """Fetch up to *periods* most recent observations, newest first."""
    series = await fetch_observations(series_id, limit=periods)
    return series[:periods]
