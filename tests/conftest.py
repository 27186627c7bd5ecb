"""Shared test fixtures."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from macro_risk.config import Settings
from macro_risk.indicators.catalog import INDICATORS, fetched_indicator_ids, format_value
from macro_risk.indicators.models import (
    IndicatorReading,
    IndicatorSnapshot,
    Observation,
    SourceLabel,
)


def make_reading(indicator_id: str, value: float, source: SourceLabel = SourceLabel.LIVE) -> IndicatorReading:
    spec = INDICATORS.get(indicator_id)
    return IndicatorReading(
        raw=value,
        display_value=format_value(indicator_id, value),
        threshold=spec.threshold if spec else "",
        source=source,
        name=spec.name if spec else indicator_id,
        as_of=date(2025, 1, 1),
    )


def make_snapshot(**values: float) -> IndicatorSnapshot:
    return IndicatorSnapshot({i: make_reading(i, v) for i, v in values.items()})


def make_series(*values: float, end: date = date(2025, 1, 1)) -> list[Observation]:
    """Newest-first monthly series from newest-first values."""
    return [Observation(date=end - timedelta(days=30 * k), value=v) for k, v in enumerate(values)]


class FakeHistory:
    """History provider backed by a dict; ids mapped to an exception raise it."""

    def __init__(self, histories: dict | None = None) -> None:
        self.histories = histories or {}
        self.calls: list[tuple[str, int]] = []

    async def get_history(self, indicator_id, periods):
        self.calls.append((indicator_id, periods))
        result = self.histories.get(indicator_id)
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def settings():
    """Default settings, isolated from any local .env file."""
    return Settings(_env_file=None, fred_api_key="")


@pytest.fixture
def calm_snapshot():
    """Every catalog indicator at a value that triggers no rule."""
    values = {i: INDICATORS[i].fallback_value for i in fetched_indicator_ids()}
    values.update(DXY=105.0, DeficitGDP=2.0)
    return make_snapshot(**values)


@pytest.fixture
def stressed_snapshot(calm_snapshot):
    """Calm snapshot with deficit > 5%, credit spreads > 4% and an inverted curve."""
    return calm_snapshot.with_readings({
        "DeficitGDP": make_reading("DeficitGDP", 6.0),
        "BAA10Y": make_reading("BAA10Y", 4.5),
        "T10Y2Y": make_reading("T10Y2Y", -0.3),
    })


@pytest.fixture
def fred_observations_response():
    """FRED /series/observations payload, newest first, with one missing value."""
    return {
        "realtime_start": "2025-01-15",
        "realtime_end": "2025-01-15",
        "observation_start": "1776-07-04",
        "observation_end": "9999-12-31",
        "units": "lin",
        "order_by": "observation_date",
        "sort_order": "desc",
        "count": 4,
        "observations": [
            {"realtime_start": "2025-01-15", "realtime_end": "2025-01-15", "date": "2025-01-14", "value": "."},
            {"realtime_start": "2025-01-15", "realtime_end": "2025-01-15", "date": "2025-01-13", "value": "4.78"},
            {"realtime_start": "2025-01-15", "realtime_end": "2025-01-15", "date": "2025-01-10", "value": "4.76"},
            {"realtime_start": "2025-01-15", "realtime_end": "2025-01-15", "date": "2025-01-09", "value": "4.69"},
        ],
    }


@pytest.fixture
def mts_table_5_response():
    """Treasury MTS table 5 payload for the total deficit line."""
    return {
        "data": [
            {
                "record_date": "2024-12-31",
                "line_code_nbr": "5694",
                "classification_desc": "Total -- Surplus (+) or Deficit (-)",
                "current_fytd_net_outly_amt": "-1827000.00",
            }
        ],
        "meta": {"count": 1},
    }
