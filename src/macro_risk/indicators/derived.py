"""Derived snapshot entries: DXY proxy and deficit/GDP."""

from __future__ import annotations

import logging

from macro_risk.common.types import MalformedValueError, parse_number
from macro_risk.indicators.catalog import INDICATORS, format_value
from macro_risk.indicators.models import IndicatorReading, IndicatorSnapshot, SourceLabel
from macro_risk.indicators.treasury import DeficitRatio

logger = logging.getLogger(__name__)

# DXY approximation from EUR/USD: DXY ~= 120 - 20 * EURUSD
_DXY_INTERCEPT = 120.0
_DXY_EURUSD_SLOPE = 20.0


def dxy_from_eurusd(eur_usd: float) -> float:
    return _DXY_INTERCEPT - eur_usd * _DXY_EURUSD_SLOPE


def derive_dxy(snapshot: IndicatorSnapshot) -> IndicatorReading | None:
    """Compute the DXY proxy from the snapshot's EUR/USD reading.

    Returns None when EUR/USD is missing or malformed.
    """
    eur = snapshot.get("DEXUSEU")
    if eur is None:
        logger.warning("Cannot calculate DXY: EUR/USD data not available")
        return None
    try:
        eur_usd = parse_number(eur.raw, "EUR/USD")
    except MalformedValueError as exc:
        logger.warning("Cannot calculate DXY: %s", exc)
        return None

    dxy = dxy_from_eurusd(eur_usd)
    spec = INDICATORS["DXY"]
    return IndicatorReading(
        raw=dxy,
        display_value=format_value("DXY", dxy),
        threshold=spec.threshold,
        source=SourceLabel.CALCULATED,
        name=spec.name,
        as_of=eur.as_of,
    )


def deficit_reading(deficit: DeficitRatio | None) -> IndicatorReading:
    """Reading for DeficitGDP: live Treasury ratio, or the static estimate."""
    spec = INDICATORS["DeficitGDP"]
    if deficit is None:
        logger.info("Using estimated deficit/GDP: %.1f%%", spec.fallback_value)
        return IndicatorReading(
            raw=spec.fallback_value,
            display_value=format_value("DeficitGDP", spec.fallback_value),
            threshold=spec.threshold,
            source=SourceLabel.ESTIMATED,
            name=spec.name,
            note="Current fiscal year estimate",
        )
    return IndicatorReading(
        raw=deficit.ratio_pct,
        display_value=format_value("DeficitGDP", deficit.ratio_pct),
        threshold=spec.threshold,
        source=SourceLabel.LIVE,
        name=spec.name,
        as_of=deficit.record_date,
        note="US Treasury MTS & FRED GDP",
    )


def with_derived(snapshot: IndicatorSnapshot, deficit: DeficitRatio | None) -> IndicatorSnapshot:
    """Return *snapshot* with DXY and DeficitGDP entries computed."""
    extra = {"DeficitGDP": deficit_reading(deficit)}
    dxy = derive_dxy(snapshot)
    if dxy is not None:
        extra["DXY"] = dxy
    return snapshot.with_readings(extra)
