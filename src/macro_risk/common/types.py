"""Shared type aliases and numeric parsing."""

from __future__ import annotations

import math
from typing import TypeAlias

# FRED series code or derived indicator name, e.g. "DGS10", "DXY"
IndicatorId: TypeAlias = str

# JSON-like dict
JsonDict: TypeAlias = dict[str, object]


class MalformedValueError(ValueError):
    """A value that should be numeric is missing, non-numeric, NaN or infinite."""


def parse_number(value: object, field_name: str = "value") -> float:
    """Parse *value* as a finite float.

    Accepts numbers and numeric strings (FRED returns strings, with "."
    for missing observations). Raises MalformedValueError otherwise.
    """
    if isinstance(value, bool) or value is None:
        raise MalformedValueError(f"{field_name} must be a number, got {value!r}")
    try:
        num = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise MalformedValueError(f"{field_name} must be a number, got {value!r}") from None
    if not math.isfinite(num):
        raise MalformedValueError(f"{field_name} must be finite, got {value!r}")
    return num


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* into [lo, hi]."""
    return min(max(value, lo), hi)
