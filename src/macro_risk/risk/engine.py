"""Scoring engine: snapshot (+ history) -> risk assessment.

Stages run in order: analyzing trends, evaluating thresholds, aggregating.
Trend analysis is best-effort. If it fails the cycle still completes on
threshold scoring alone and the result's ``trend_status`` says so. All
working state is local to one call, so overlapping cycles cannot share
factor lists.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping

from macro_risk.common.types import IndicatorId
from macro_risk.config import Settings, get_settings
from macro_risk.indicators.models import IndicatorSnapshot
from macro_risk.indicators.source import HistoryProvider
from macro_risk.risk.aggregator import aggregate, classify_risk
from macro_risk.risk.models import (
    EngineStage,
    EventThresholds,
    RiskAssessment,
    RiskEvent,
    RiskLevel,
    TrendReport,
    TrendStatus,
)
from macro_risk.risk.rules import BASE_PRIORS, EVENT_THRESHOLDS, RULES, RiskRule, trend_polarity
from macro_risk.risk.thresholds import evaluate_rules
from macro_risk.risk.trend import analyze_all_trends

logger = logging.getLogger(__name__)


def _enter(stage: EngineStage) -> None:
    logger.debug("Scoring engine stage: %s", stage.value)


def score_snapshot(
    snapshot: IndicatorSnapshot,
    trend_multipliers: Mapping[IndicatorId, float] | None = None,
    *,
    rules: Iterable[RiskRule] = RULES,
    settings: Settings | None = None,
    priors: Mapping[RiskEvent, float] = BASE_PRIORS,
    thresholds: Mapping[RiskEvent, EventThresholds] = EVENT_THRESHOLDS,
) -> RiskAssessment:
    """Threshold evaluation + aggregation with precomputed trend multipliers.

    Pure function of its arguments. Returns an entry for every RiskEvent.
    """
    if settings is None:
        settings = get_settings()

    _enter(EngineStage.EVALUATING_THRESHOLDS)
    factors = evaluate_rules(snapshot, rules, trend_multipliers)

    _enter(EngineStage.AGGREGATING)
    probabilities: dict[RiskEvent, float] = {}
    risk_levels: dict[RiskEvent, RiskLevel] = {}
    for event in RiskEvent:
        probabilities[event] = aggregate(
            factors[event],
            priors[event],
            two_factors=settings.discount_two_factors,
            many_factors=settings.discount_many_factors,
        )
        risk_levels[event] = classify_risk(probabilities[event], thresholds[event])
        if any(f.trend_adjusted for f in factors[event]):
            logger.info("%s probability includes trend adjustments", event.value)

    critical = [e for e in RiskEvent if probabilities[e] >= thresholds[e].critical]

    return RiskAssessment(
        probabilities=probabilities,
        factors=factors,
        risk_levels=risk_levels,
        critical_events=critical,
        trend_status=TrendStatus.DISABLED if not trend_multipliers else TrendStatus.APPLIED,
    )


async def _run_trends(
    snapshot: IndicatorSnapshot,
    history_provider: HistoryProvider,
    rules: Iterable[RiskRule],
    settings: Settings,
) -> tuple[TrendReport | None, TrendStatus]:
    polarity = {i: inv for i, inv in trend_polarity(rules).items() if i in snapshot}
    try:
        report = await analyze_all_trends(history_provider, polarity, settings)
    except Exception as exc:
        logger.warning("Trend analysis failed, using threshold scoring only: %s", exc)
        return None, TrendStatus.FAILED

    if report.analyses:
        return report, TrendStatus.APPLIED
    if report.failures:
        return report, TrendStatus.FAILED
    return report, TrendStatus.UNAVAILABLE


async def compute_risk_assessment(
    snapshot: IndicatorSnapshot,
    history_provider: HistoryProvider | None = None,
    *,
    settings: Settings | None = None,
    rules: Iterable[RiskRule] | None = None,
) -> RiskAssessment:
    """Score one refresh cycle.

    Args:
        snapshot: current indicator values, derived entries included
        history_provider: source of historical series; None skips trend adjustment
        settings: trend/discount configuration (default: environment settings)
        rules: rule table (default: the validated built-in table)

    Returns:
        RiskAssessment for all five events. Data problems degrade precision
        but never raise.
    """
    if settings is None:
        settings = get_settings()
    rules = RULES if rules is None else tuple(rules)

    _enter(EngineStage.IDLE)
    report: TrendReport | None = None
    if not settings.trend_enabled:
        status = TrendStatus.DISABLED
    elif history_provider is None:
        status = TrendStatus.UNAVAILABLE
    else:
        _enter(EngineStage.ANALYZING_TRENDS)
        report, status = await _run_trends(snapshot, history_provider, rules, settings)

    multipliers = report.multipliers if report is not None and status is TrendStatus.APPLIED else {}
    assessment = score_snapshot(snapshot, multipliers, rules=rules, settings=settings)
    _enter(EngineStage.DONE)

    return dataclasses.replace(
        assessment,
        trend_status=status,
        trends=dict(report.analyses) if report is not None else {},
        trend_failures=dict(report.failures) if report is not None else {},
    )
