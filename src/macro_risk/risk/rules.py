"""Static risk configuration: base priors, classification thresholds, rule table.

The rule table is validated once at import time. A malformed rule raises
RuleConfigError before any scoring cycle can run.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from macro_risk.common.types import IndicatorId
from macro_risk.indicators.catalog import INDICATORS
from macro_risk.risk.models import EventThresholds, Operator, RiskEvent


class RuleConfigError(ValueError):
    """Static risk configuration is malformed or out of range."""


class CompositeKind(Enum):
    """How a composite rule combines its two input indicators."""

    SPREAD = "spread"  # left - right
    RATIO = "ratio"  # left / right


class Composite(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: CompositeKind
    left: IndicatorId = Field(min_length=1)
    right: IndicatorId = Field(min_length=1)


class RiskRule(BaseModel):
    """One threshold rule: ``indicator <operator> comparison_value`` raises *event*.

    For composite rules ``indicator_id`` is a label for the derived scalar and
    the inputs are named by ``composite``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    event: RiskEvent
    indicator_id: IndicatorId = Field(min_length=1)
    operator: Operator
    comparison_value: float = Field(allow_inf_nan=False)
    base_factor: float = Field(gt=1.0, allow_inf_nan=False)
    description: str = Field(min_length=1)
    inverted_for_trend: bool = False
    composite: Composite | None = None

    @property
    def input_ids(self) -> tuple[IndicatorId, ...]:
        if self.composite is None:
            return (self.indicator_id,)
        return (self.composite.left, self.composite.right)


BASE_PRIORS: dict[RiskEvent, float] = {
    RiskEvent.RECESSION: 0.15,
    RiskEvent.DEPRESSION: 0.03,
    RiskEvent.RESERVE_STATUS_LOSS: 0.05,
    RiskEvent.SOVEREIGN_DEFAULT: 0.01,
    RiskEvent.CURRENCY_DEVALUATION: 0.20,
}

# high = 0.7 x critical, moderate = 0.4 x critical
EVENT_THRESHOLDS: dict[RiskEvent, EventThresholds] = {
    RiskEvent.RECESSION: EventThresholds(critical=0.60, high=0.42, moderate=0.24),
    RiskEvent.DEPRESSION: EventThresholds(critical=0.20, high=0.14, moderate=0.08),
    RiskEvent.RESERVE_STATUS_LOSS: EventThresholds(critical=0.30, high=0.21, moderate=0.12),
    RiskEvent.SOVEREIGN_DEFAULT: EventThresholds(critical=0.10, high=0.07, moderate=0.04),
    RiskEvent.CURRENCY_DEVALUATION: EventThresholds(critical=0.50, high=0.35, moderate=0.20),
}

RULE_TABLE: list[dict[str, object]] = [
    # Recession
    {"event": "recessionLike", "indicator_id": "DeficitGDP", "operator": ">",
     "comparison_value": 5, "base_factor": 1.8, "description": "Deficit > 5% GDP",
     "inverted_for_trend": True},
    {"event": "recessionLike", "indicator_id": "BAA10Y", "operator": ">",
     "comparison_value": 4, "base_factor": 2.0, "description": "Credit spreads > 400bps",
     "inverted_for_trend": True},
    {"event": "recessionLike", "indicator_id": "T10Y2Y", "operator": "<",
     "comparison_value": 0, "base_factor": 1.7, "description": "Yield curve inverted"},
    # Depression
    {"event": "depressionLike", "indicator_id": "DFF", "operator": "<",
     "comparison_value": 0.5, "base_factor": 3.0, "description": "Fed Funds < 0.5%"},
    {"event": "depressionLike", "indicator_id": "GFDGDPA188S", "operator": ">",
     "comparison_value": 150, "base_factor": 2.0, "description": "Debt/GDP > 150%",
     "inverted_for_trend": True},
    {"event": "depressionLike", "indicator_id": "BOGMBASE/M2SL", "operator": ">",
     "comparison_value": 0.3, "base_factor": 1.5, "description": "Extreme QE conditions",
     "composite": {"kind": "ratio", "left": "BOGMBASE", "right": "M2SL"}},
    # Reserve status
    {"event": "reserveStatusLoss", "indicator_id": "DXY", "operator": "<",
     "comparison_value": 90, "base_factor": 1.5, "description": "Dollar weakness"},
    # Sovereign default
    {"event": "sovereignDefault", "indicator_id": "DeficitGDP", "operator": ">",
     "comparison_value": 7, "base_factor": 3.0, "description": "Deficit > 7% GDP",
     "inverted_for_trend": True},
    {"event": "sovereignDefault", "indicator_id": "A091RC1Q027SBEA", "operator": ">",
     "comparison_value": 4, "base_factor": 2.5, "description": "Interest payments > 4% GDP",
     "inverted_for_trend": True},
    {"event": "sovereignDefault", "indicator_id": "DGS10-DFF", "operator": ">",
     "comparison_value": 2, "base_factor": 1.5, "description": "Rising long-term rates",
     "composite": {"kind": "spread", "left": "DGS10", "right": "DFF"}},
    # Currency devaluation
    {"event": "currencyDevaluation", "indicator_id": "DXY", "operator": "<",
     "comparison_value": 100, "base_factor": 1.5, "description": "DXY < 100"},
    {"event": "currencyDevaluation", "indicator_id": "DeficitGDP", "operator": ">",
     "comparison_value": 7, "base_factor": 1.8, "description": "High deficit monetization risk",
     "inverted_for_trend": True},
]


def load_rules(raw_rules: Iterable[Mapping[str, object]]) -> tuple[RiskRule, ...]:
    """Validate a raw rule table.

    Checks the record schema, that every referenced indicator is in the
    catalog, and that each plain rule's ``inverted_for_trend`` matches the
    catalog polarity of its indicator.

    Raises:
        RuleConfigError: on the first invalid rule
    """
    rules: list[RiskRule] = []
    for idx, raw in enumerate(raw_rules):
        try:
            rule = RiskRule.model_validate(dict(raw))
        except ValidationError as exc:
            raise RuleConfigError(f"Rule #{idx} is invalid: {exc}") from exc

        for input_id in rule.input_ids:
            if input_id not in INDICATORS:
                raise RuleConfigError(f"Rule #{idx} references unknown indicator {input_id!r}")

        if rule.composite is None and rule.inverted_for_trend != INDICATORS[rule.indicator_id].inverted:
            raise RuleConfigError(
                f"Rule #{idx} inverted_for_trend={rule.inverted_for_trend} disagrees with "
                f"catalog polarity of {rule.indicator_id}"
            )
        rules.append(rule)

    if not rules:
        raise RuleConfigError("Rule table is empty")
    return tuple(rules)


def validate_event_config(
    priors: Mapping[RiskEvent, float],
    thresholds: Mapping[RiskEvent, EventThresholds],
) -> None:
    """Check priors and classification thresholds cover every event and are in range."""
    for event in RiskEvent:
        if event not in priors:
            raise RuleConfigError(f"Missing base prior for {event.value}")
        if event not in thresholds:
            raise RuleConfigError(f"Missing classification thresholds for {event.value}")

        prior = priors[event]
        if not 0.0 < prior < 1.0:
            raise RuleConfigError(f"Base prior for {event.value} must be in (0, 1), got {prior}")

        t = thresholds[event]
        if not 0.0 < t.moderate <= t.high <= t.critical <= 1.0:
            raise RuleConfigError(
                f"Thresholds for {event.value} must satisfy 0 < moderate <= high <= critical <= 1, "
                f"got {t}"
            )


validate_event_config(BASE_PRIORS, EVENT_THRESHOLDS)
RULES: tuple[RiskRule, ...] = load_rules(RULE_TABLE)


def trend_polarity(rules: Iterable[RiskRule] = RULES) -> dict[IndicatorId, bool]:
    """Indicator -> inverted flag, from the catalog overlaid with the rule table."""
    polarity = {i: spec.inverted for i, spec in INDICATORS.items() if not spec.derived}
    for rule in rules:
        if rule.composite is None:
            polarity[rule.indicator_id] = rule.inverted_for_trend
    return polarity
