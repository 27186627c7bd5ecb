"""Static catalog of tracked indicators.

Each entry carries the fallback value used when live data is unavailable,
the display formatter, and whether a rising value means worsening conditions
(``inverted``) for trend analysis.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from macro_risk.common.types import IndicatorId


@dataclass(frozen=True)
class IndicatorSpec:
    """Definition of one tracked indicator."""

    indicator_id: IndicatorId
    name: str
    threshold: str
    fallback_value: float
    formatter: Callable[[float], str]
    inverted: bool = False
    derived: bool = False


def _pct(decimals: int) -> Callable[[float], str]:
    return lambda v: f"{v:.{decimals}f}%"


def _trillions(v: float) -> str:
    return f"${v / 1000:.1f}T"


INDICATORS: dict[IndicatorId, IndicatorSpec] = {
    spec.indicator_id: spec
    for spec in (
        IndicatorSpec("DGS10", "10-Year Treasury Yield", "> 5%", 4.75, _pct(2)),
        IndicatorSpec("DFF", "Fed Funds Rate", "< 0.5%", 4.33, _pct(2)),
        IndicatorSpec("GFDGDPA188S", "Federal Debt/GDP", "> 125%", 123.0, _pct(1), inverted=True),
        IndicatorSpec(
            "BAA10Y", "Credit Spreads (IG)", "> 4%", 2.15,
            lambda v: f"{v * 100:.0f} bps", inverted=True,
        ),
        IndicatorSpec("UNRATE", "Unemployment Rate", "> 7%", 4.2, _pct(1), inverted=True),
        IndicatorSpec("T10Y2Y", "Yield Curve (10Y-2Y)", "< 0%", 0.20, _pct(2)),
        IndicatorSpec("VIXCLS", "VIX Volatility Index", "> 30", 15.2, lambda v: f"{v:.1f}", inverted=True),
        IndicatorSpec("DEXUSEU", "EUR/USD Exchange Rate", "< 1.20", 1.03, lambda v: f"{v:.3f}"),
        IndicatorSpec(
            "GOLDAMGBD228NLBM", "Gold Price (USD/oz)", "50% rise = warning", 2650.0,
            lambda v: f"${v:,.2f}",
        ),
        IndicatorSpec("M2SL", "M2 Money Supply (Bil)", "High growth = warning", 21400.0, _trillions),
        IndicatorSpec("BOGMBASE", "Monetary Base (Bil)", "Rapid expansion", 5800.0, _trillions),
        IndicatorSpec(
            "A091RC1Q027SBEA", "Interest Payments/GDP", "> 4%", 3.8, _pct(1), inverted=True,
        ),
        # Derived entries: computed from other readings or a non-FRED source
        IndicatorSpec(
            "DXY", "Dollar Index (DXY proxy)", "< 80", 99.4, lambda v: f"{v:.1f}", derived=True,
        ),
        IndicatorSpec(
            "DeficitGDP", "Budget Deficit/GDP", "> 3%", 7.2, _pct(1), inverted=True, derived=True,
        ),
    )
}

DISPLAY_ORDER: list[IndicatorId] = [
    "DGS10", "DFF", "T10Y2Y", "GFDGDPA188S",
    "DeficitGDP", "A091RC1Q027SBEA", "BAA10Y", "VIXCLS",
    "DXY", "GOLDAMGBD228NLBM", "UNRATE", "M2SL", "BOGMBASE",
]


def fetched_indicator_ids() -> list[IndicatorId]:
    """Indicators fetched directly from FRED (excludes derived entries)."""
    return [i for i, spec in INDICATORS.items() if not spec.derived]


def format_value(indicator_id: IndicatorId, value: float) -> str:
    """Format *value* for display using the indicator's formatter."""
    spec = INDICATORS.get(indicator_id)
    if spec is None:
        return f"{value:g}"
    return spec.formatter(value)
