"""Risk scoring data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from macro_risk.common.types import IndicatorId


class RiskEvent(Enum):
    """Macroeconomic risk events scored every refresh cycle."""

    RECESSION = "recessionLike"
    DEPRESSION = "depressionLike"
    RESERVE_STATUS_LOSS = "reserveStatusLoss"
    SOVEREIGN_DEFAULT = "sovereignDefault"
    CURRENCY_DEVALUATION = "currencyDevaluation"


class RiskLevel(Enum):
    """Classification label for a final probability."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class Operator(Enum):
    """Threshold comparison operator."""

    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    EQ = "=="


class TrendStatus(Enum):
    """Whether trend adjustment took part in a scoring cycle."""

    APPLIED = "applied"
    DISABLED = "disabled"  # switched off by configuration
    UNAVAILABLE = "unavailable"  # no history provider or no usable history
    FAILED = "failed"  # trend subsystem raised; scored on thresholds only


class EngineStage(Enum):
    """Scoring engine stages, in order."""

    IDLE = "idle"
    ANALYZING_TRENDS = "analyzing-trends"
    EVALUATING_THRESHOLDS = "evaluating-thresholds"
    AGGREGATING = "aggregating"
    DONE = "done"


@dataclass(frozen=True)
class EventThresholds:
    """Probability cut-offs used only for risk-level labelling."""

    critical: float
    high: float
    moderate: float


@dataclass(frozen=True)
class ContributingFactor:
    """A triggered rule's multiplicative adjustment to an event probability.

    Attributes:
        event: risk event the factor applies to
        indicator_id: indicator (or composite label) that crossed its threshold
        base_factor: configured factor, always > 1
        trend_multiplier: trend adjustment in [0.5, 1.5], 1.0 when unavailable
        reason: human-readable description of the triggered rule
    """

    event: RiskEvent
    indicator_id: IndicatorId
    base_factor: float
    trend_multiplier: float
    reason: str

    @property
    def effective_factor(self) -> float:
        return self.base_factor * self.trend_multiplier

    @property
    def trend_adjusted(self) -> bool:
        return self.trend_multiplier != 1.0


@dataclass(frozen=True)
class TrendAnalysis:
    """Trend statistics for one indicator's recent history.

    Attributes:
        direction: +1 improving, 0 stable, -1 worsening (polarity-corrected)
        velocity: average percent change per period between the endpoints
        acceleration: recent-half velocity minus older-half velocity
        multiplier: bounded probability multiplier derived from the above
        normalized_slope: regression slope as percent of mean per period (raw polarity)
        data_points: number of observations analyzed
    """

    direction: int
    velocity: float
    acceleration: float
    multiplier: float
    normalized_slope: float = 0.0
    data_points: int = 0

    @classmethod
    def neutral(cls, data_points: int = 0) -> TrendAnalysis:
        return cls(direction=0, velocity=0.0, acceleration=0.0, multiplier=1.0, data_points=data_points)


@dataclass
class TrendReport:
    """Outcome of analyzing every indicator's history in one cycle.

    Attributes:
        analyses: per-indicator trend analysis (only indicators with history)
        unavailable: indicators whose history was missing or empty
        failures: indicator -> error message for retrievals that raised
    """

    analyses: dict[IndicatorId, TrendAnalysis] = field(default_factory=dict)
    unavailable: list[IndicatorId] = field(default_factory=list)
    failures: dict[IndicatorId, str] = field(default_factory=dict)

    @property
    def multipliers(self) -> dict[IndicatorId, float]:
        return {i: a.multiplier for i, a in self.analyses.items()}


@dataclass
class RiskAssessment:
    """Result of one scoring cycle.

    Every RiskEvent is present in probabilities, factors and risk_levels.
    """

    probabilities: dict[RiskEvent, float]
    factors: dict[RiskEvent, list[ContributingFactor]]
    risk_levels: dict[RiskEvent, RiskLevel]
    critical_events: list[RiskEvent]
    trend_status: TrendStatus = TrendStatus.DISABLED
    trends: dict[IndicatorId, TrendAnalysis] = field(default_factory=dict)
    trend_failures: dict[IndicatorId, str] = field(default_factory=dict)

    @property
    def trend_applied(self) -> bool:
        return self.trend_status is TrendStatus.APPLIED
