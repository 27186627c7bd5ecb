"""Trend statistics over an indicator's recent history.

Direction comes from an OLS fit over the whole window; velocity and
acceleration use series endpoints only. Direction is polarity-corrected so
+1 always means improving and -1 worsening. The resulting multiplier scales
a rule's base factor: worsening trends raise the probability, improving
trends lower it.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Mapping, Sequence

import numpy as np
from scipy import stats

from macro_risk.common.types import IndicatorId, clamp
from macro_risk.config import Settings, get_settings
from macro_risk.indicators.models import Observation
from macro_risk.indicators.source import HistoryProvider
from macro_risk.risk.models import TrendAnalysis, TrendReport

logger = logging.getLogger(__name__)

MIN_POINTS_DIRECTION = 3
MIN_POINTS_VELOCITY = 2
MIN_POINTS_ACCELERATION = 6

# direction -> base multiplier
_DIRECTION_MULTIPLIERS = {-1: 1.3, 0: 1.0, 1: 0.7}

# Applied when |velocity| exceeds the high-velocity threshold
_WORSENING_AMPLIFIER = 1.2
_IMPROVING_AMPLIFIER = 0.8


def clean_series(series: Sequence[Observation]) -> list[Observation]:
    """Drop observations whose value is NaN or infinite."""
    return [o for o in series if isinstance(o.value, (int, float)) and math.isfinite(o.value)]


def normalized_slope(series: Sequence[Observation]) -> float:
    """OLS slope over the series (oldest→newest, x = 0..n-1) as percent of mean per period.

    Raises ValueError for fewer than two points or a zero mean.
    """
    if len(series) < 2:
        raise ValueError("need at least two points for a regression")
    y = np.array([o.value for o in reversed(series)], dtype=np.float64)
    x = np.arange(len(y), dtype=np.float64)
    slope = stats.linregress(x, y).slope
    mean = float(np.mean(y))
    if mean == 0:
        raise ValueError("mean value is zero, slope cannot be normalized")
    return (float(slope) / mean) * 100


def trend_direction(
    series: Sequence[Observation],
    inverted: bool = False,
    stable_threshold: float = 0.5,
) -> int:
    """Classify the trend as +1 improving, 0 stable, -1 worsening.

    ``|normalized slope| < stable_threshold`` is stable (the boundary itself is
    not). Rising raw values are improving unless *inverted*. Fewer than three
    points is stable.
    """
    if len(series) < MIN_POINTS_DIRECTION:
        return 0
    slope = normalized_slope(series)
    return _direction_from_slope(slope, inverted, stable_threshold)


def _direction_from_slope(slope: float, inverted: bool, stable_threshold: float) -> int:
    if abs(slope) < stable_threshold:
        return 0
    rising = 1 if slope > 0 else -1
    return -rising if inverted else rising


def _endpoint_velocity(series: Sequence[Observation], indicator_id: IndicatorId = "") -> float:
    if len(series) < MIN_POINTS_VELOCITY:
        return 0.0
    newest = series[0].value
    oldest = series[-1].value
    if oldest == 0:
        logger.warning("Velocity undefined for %s: oldest value is zero", indicator_id or "series")
        return 0.0
    return ((newest - oldest) / oldest) * 100 / (len(series) - 1)


def velocity(series: Sequence[Observation], indicator_id: IndicatorId = "") -> float:
    """Average percent change per period between the oldest and newest points."""
    return _endpoint_velocity(series, indicator_id)


def acceleration(series: Sequence[Observation], indicator_id: IndicatorId = "") -> float:
    """Velocity of the recent half minus velocity of the older half (needs six points)."""
    if len(series) < MIN_POINTS_ACCELERATION:
        return 0.0
    mid = len(series) // 2
    recent, older = series[:mid], series[mid:]
    return _endpoint_velocity(recent, indicator_id) - _endpoint_velocity(older, indicator_id)


def trend_multiplier(
    direction: int,
    velocity_pct: float,
    high_velocity_threshold: float = 2.0,
    multiplier_min: float = 0.5,
    multiplier_max: float = 1.5,
) -> float:
    """Map direction and velocity to a multiplier in [multiplier_min, multiplier_max]."""
    multiplier = _DIRECTION_MULTIPLIERS[direction]
    if abs(velocity_pct) > high_velocity_threshold:
        if direction == -1:
            multiplier = min(multiplier * _WORSENING_AMPLIFIER, multiplier_max)
        elif direction == 1:
            multiplier = max(multiplier * _IMPROVING_AMPLIFIER, multiplier_min)
    return clamp(multiplier, multiplier_min, multiplier_max)


def analyze_trend(
    indicator_id: IndicatorId,
    series: Sequence[Observation],
    inverted: bool = False,
    settings: Settings | None = None,
) -> TrendAnalysis:
    """Compute direction, velocity, acceleration and multiplier for one indicator.

    Any numerical problem degrades to a neutral analysis (direction 0,
    multiplier 1.0) for this indicator only.
    """
    if settings is None:
        settings = get_settings()

    points = clean_series(series)
    if len(points) != len(series):
        logger.warning("%s: dropped %d non-finite value(s)", indicator_id, len(series) - len(points))

    try:
        direction = trend_direction(points, inverted, settings.stable_slope_threshold)
        slope = normalized_slope(points) if len(points) >= MIN_POINTS_DIRECTION else 0.0
        vel = velocity(points, indicator_id)
        accel = acceleration(points, indicator_id)
        multiplier = trend_multiplier(
            direction,
            vel,
            high_velocity_threshold=settings.high_velocity_threshold,
            multiplier_min=settings.multiplier_min,
            multiplier_max=settings.multiplier_max,
        )
    except (ValueError, ArithmeticError) as exc:
        logger.warning("Trend analysis failed for %s, treating as stable: %s", indicator_id, exc)
        return TrendAnalysis.neutral(data_points=len(points))

    logger.info(
        "Trend for %s: slope=%.2f%% direction=%+d velocity=%.2f%%/period multiplier=%.2f",
        indicator_id, slope, direction, vel, multiplier,
    )
    return TrendAnalysis(
        direction=direction,
        velocity=vel,
        acceleration=accel,
        multiplier=multiplier,
        normalized_slope=slope,
        data_points=len(points),
    )


async def analyze_all_trends(
    provider: HistoryProvider,
    polarity: Mapping[IndicatorId, bool],
    settings: Settings | None = None,
) -> TrendReport:
    """Fetch every indicator's history concurrently and analyze each one.

    A retrieval that raises is recorded in ``failures`` and does not affect
    the other indicators. Missing or empty histories go to ``unavailable``.
    """
    if settings is None:
        settings = get_settings()

    ids = list(polarity)
    periods = settings.trend_window
    sem = asyncio.Semaphore(settings.max_concurrency)

    async def _throttled_fetch(indicator_id: IndicatorId):
        async with sem:
            return await provider.get_history(indicator_id, periods)

    fetched = await asyncio.gather(*(_throttled_fetch(i) for i in ids), return_exceptions=True)

    report = TrendReport()
    for indicator_id, result in zip(ids, fetched):
        if isinstance(result, BaseException):
            logger.warning("History fetch failed for %s: %s", indicator_id, result)
            report.failures[indicator_id] = str(result) or type(result).__name__
            continue
        if not result:
            report.unavailable.append(indicator_id)
            continue
        report.analyses[indicator_id] = analyze_trend(
            indicator_id, list(result)[:periods], polarity[indicator_id], settings
        )

    logger.info(
        "Trend analysis: %d analyzed, %d unavailable, %d failed",
        len(report.analyses), len(report.unavailable), len(report.failures),
    )
    return report
