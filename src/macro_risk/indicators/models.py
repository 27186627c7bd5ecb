"""Indicator data models."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType

from macro_risk.common.types import IndicatorId


class SourceLabel(Enum):
    """Where an indicator value came from."""

    LIVE = "Live"
    ESTIMATED = "Estimated"
    MOCK = "Mock"
    CALCULATED = "Calculated"


@dataclass(frozen=True)
class IndicatorReading:
    """Current value of one indicator.

    Attributes:
        raw: numeric value used for scoring
        display_value: formatted value for presentation, e.g. "4.75%"
        threshold: human-readable warning threshold, e.g. "> 5%"
        source: provenance of the value
        name: human-readable indicator name
        as_of: observation date (None for estimates without one)
        note: optional free-text remark
    """

    raw: float
    display_value: str
    threshold: str
    source: SourceLabel
    name: str = ""
    as_of: date | None = None
    note: str | None = None


@dataclass(frozen=True)
class Observation:
    """A single dated historical value."""

    date: date
    value: float


# Newest-first sequence of observations for one indicator
HistoricalSeries = list[Observation]


class IndicatorSnapshot(Mapping[IndicatorId, IndicatorReading]):
    """Read-only mapping of indicator id to its current reading for one refresh cycle."""

    def __init__(self, readings: Mapping[IndicatorId, IndicatorReading] | None = None) -> None:
        self._readings = MappingProxyType(dict(readings or {}))

    def __getitem__(self, key: IndicatorId) -> IndicatorReading:
        return self._readings[key]

    def __iter__(self) -> Iterator[IndicatorId]:
        return iter(self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def __repr__(self) -> str:
        return f"IndicatorSnapshot({dict(self._readings)!r})"

    def with_readings(self, extra: Mapping[IndicatorId, IndicatorReading]) -> IndicatorSnapshot:
        """Return a new snapshot with *extra* readings added or replaced."""
        merged = dict(self._readings)
        merged.update(extra)
        return IndicatorSnapshot(merged)

    def count_by_source(self) -> dict[SourceLabel, int]:
        counts = {label: 0 for label in SourceLabel}
        for reading in self._readings.values():
            counts[reading.source] += 1
        return counts
