"""Combine contributing factors into a bounded event probability."""

from __future__ import annotations

import math
from collections.abc import Sequence

from macro_risk.common.types import clamp
from macro_risk.risk.models import ContributingFactor, EventThresholds, RiskLevel

DISCOUNT_TWO_FACTORS = 0.7
DISCOUNT_MANY_FACTORS = 0.5


def combined_factor(factors: Sequence[ContributingFactor]) -> float:
    """Product of effective factors (1.0 for no factors), before any discount."""
    return math.prod(f.effective_factor for f in factors)


def correlation_discount(
    n_factors: int,
    two_factors: float = DISCOUNT_TWO_FACTORS,
    many_factors: float = DISCOUNT_MANY_FACTORS,
) -> float:
    """Deflation for co-triggered factors: 2 factors vs. 3 or more (same constant for any count >= 3)."""
    if n_factors == 2:
        return two_factors
    if n_factors >= 3:
        return many_factors
    return 1.0


def aggregate(
    factors: Sequence[ContributingFactor],
    base_prior: float,
    two_factors: float = DISCOUNT_TWO_FACTORS,
    many_factors: float = DISCOUNT_MANY_FACTORS,
) -> float:
    """Final probability: prior x product x discount, clamped to [0, 1].

    With no factors this is exactly the base prior.
    """
    if not factors:
        return base_prior
    combined = combined_factor(factors) * correlation_discount(len(factors), two_factors, many_factors)
    return clamp(base_prior * combined, 0.0, 1.0)


def classify_risk(probability: float, thresholds: EventThresholds) -> RiskLevel:
    """Label a probability against the event's critical/high/moderate cut-offs."""
    if probability >= thresholds.critical:
        return RiskLevel.CRITICAL
    if probability >= thresholds.high:
        return RiskLevel.HIGH
    if probability >= thresholds.moderate:
        return RiskLevel.MODERATE
    return RiskLevel.LOW
