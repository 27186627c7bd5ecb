"""Threshold evaluation: turn crossed rules into contributing factors."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping

from macro_risk.common.types import IndicatorId, MalformedValueError, parse_number
from macro_risk.indicators.models import IndicatorSnapshot
from macro_risk.risk.models import ContributingFactor, Operator, RiskEvent
from macro_risk.risk.rules import CompositeKind, RiskRule

logger = logging.getLogger(__name__)


def compare(value: float, operator: Operator, comparison_value: float) -> bool:
    """Apply *operator* with IEEE double semantics. NaN never satisfies a comparison."""
    if math.isnan(value) or math.isnan(comparison_value):
        return False
    if operator is Operator.GT:
        return value > comparison_value
    if operator is Operator.LT:
        return value < comparison_value
    if operator is Operator.GE:
        return value >= comparison_value
    if operator is Operator.LE:
        return value <= comparison_value
    if operator is Operator.EQ:
        return value == comparison_value
    raise ValueError(f"Unknown operator: {operator!r}")


def rule_value(rule: RiskRule, snapshot: IndicatorSnapshot) -> float | None:
    """Scalar a rule compares: the indicator's raw value, or the composite of two.

    Returns None when any input is missing, malformed or the ratio's
    denominator is zero.
    """
    values: list[float] = []
    for input_id in rule.input_ids:
        reading = snapshot.get(input_id)
        if reading is None:
            logger.debug("Skipping rule %r: %s not in snapshot", rule.description, input_id)
            return None
        try:
            values.append(parse_number(reading.raw, input_id))
        except MalformedValueError as exc:
            logger.warning("Skipping rule %r: %s", rule.description, exc)
            return None

    if rule.composite is None:
        return values[0]

    left, right = values
    if rule.composite.kind is CompositeKind.SPREAD:
        return left - right
    if right == 0:
        logger.warning("Skipping rule %r: %s is zero", rule.description, rule.composite.right)
        return None
    return left / right


def evaluate_rules(
    snapshot: IndicatorSnapshot,
    rules: Iterable[RiskRule],
    trend_multipliers: Mapping[IndicatorId, float] | None = None,
) -> dict[RiskEvent, list[ContributingFactor]]:
    """Evaluate every rule against *snapshot*.

    Returns a factor list for every RiskEvent (empty when nothing triggered),
    each in rule declaration order. Missing indicators are skipped silently.
    """
    multipliers = trend_multipliers or {}
    factors: dict[RiskEvent, list[ContributingFactor]] = {event: [] for event in RiskEvent}

    for rule in rules:
        value = rule_value(rule, snapshot)
        if value is None:
            continue
        if not math.isfinite(value):
            logger.warning("Skipping rule %r: non-finite value %r", rule.description, value)
            continue
        if not compare(value, rule.operator, rule.comparison_value):
            continue

        multiplier = multipliers.get(rule.indicator_id, 1.0)
        factor = ContributingFactor(
            event=rule.event,
            indicator_id=rule.indicator_id,
            base_factor=rule.base_factor,
            trend_multiplier=multiplier,
            reason=rule.description,
        )
        if factor.trend_adjusted:
            logger.info(
                "Trend adjustment for %s: %.2f x %.2f = %.2f",
                rule.indicator_id, factor.base_factor, multiplier, factor.effective_factor,
            )
        factors[rule.event].append(factor)

    return factors
