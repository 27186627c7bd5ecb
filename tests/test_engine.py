"""Tests for the scoring engine: end-to-end scoring of one refresh cycle."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from conftest import FakeHistory, make_reading, make_series

from macro_risk.config import Settings
from macro_risk.indicators.models import IndicatorSnapshot
from macro_risk.indicators.source import FredDataSource
from macro_risk.risk.engine import compute_risk_assessment, score_snapshot
from macro_risk.risk.models import RiskEvent, RiskLevel, TrendStatus
from macro_risk.risk.rules import BASE_PRIORS


class TestScoreSnapshot:
    def test_calm_snapshot_returns_priors(self, calm_snapshot, settings):
        assessment = score_snapshot(calm_snapshot, settings=settings)
        assert assessment.probabilities == BASE_PRIORS
        assert all(f == [] for f in assessment.factors.values())
        assert assessment.critical_events == []
        assert assessment.trend_status is TrendStatus.DISABLED

    def test_all_events_present_for_empty_snapshot(self, settings):
        assessment = score_snapshot(IndicatorSnapshot(), settings=settings)
        assert set(assessment.probabilities) == set(RiskEvent)
        assert set(assessment.risk_levels) == set(RiskEvent)
        assert set(assessment.factors) == set(RiskEvent)

    def test_three_recession_factors(self, stressed_snapshot, settings):
        assessment = score_snapshot(stressed_snapshot, settings=settings)
        expected = 0.15 * 1.8 * 2.0 * 1.7 * 0.5
        assert assessment.probabilities[RiskEvent.RECESSION] == pytest.approx(expected)
        assert assessment.risk_levels[RiskEvent.RECESSION] is RiskLevel.HIGH

    def test_two_factor_example(self, stressed_snapshot, settings):
        snapshot = stressed_snapshot.with_readings({"T10Y2Y": make_reading("T10Y2Y", 0.5)})
        assessment = score_snapshot(snapshot, settings=settings)
        assert assessment.probabilities[RiskEvent.RECESSION] == pytest.approx(0.378)

    def test_trend_adjustment_example(self, stressed_snapshot, settings):
        snapshot = stressed_snapshot.with_readings({"T10Y2Y": make_reading("T10Y2Y", 0.5)})
        assessment = score_snapshot(snapshot, {"DeficitGDP": 1.3}, settings=settings)
        assert assessment.probabilities[RiskEvent.RECESSION] == pytest.approx(0.4914)
        assert assessment.risk_levels[RiskEvent.RECESSION] is RiskLevel.HIGH
        assert assessment.trend_status is TrendStatus.APPLIED

    def test_critical_events(self, calm_snapshot, settings):
        snapshot = calm_snapshot.with_readings({
            "DeficitGDP": make_reading("DeficitGDP", 8.0),
            "A091RC1Q027SBEA": make_reading("A091RC1Q027SBEA", 4.5),
        })
        assessment = score_snapshot(snapshot, settings=settings)
        # 0.01 x 3.0 x 2.5 x 0.7
        assert assessment.probabilities[RiskEvent.SOVEREIGN_DEFAULT] == pytest.approx(0.0525)
        assert assessment.risk_levels[RiskEvent.SOVEREIGN_DEFAULT] is RiskLevel.MODERATE
        assert assessment.critical_events == []

        worse = snapshot.with_readings({
            "DGS10": make_reading("DGS10", 7.0),
            "DFF": make_reading("DFF", 0.25),
        })
        assessment = score_snapshot(worse, {"DeficitGDP": 1.5, "A091RC1Q027SBEA": 1.5}, settings=settings)
        assert RiskEvent.SOVEREIGN_DEFAULT in assessment.critical_events

    def test_configured_discounts(self, stressed_snapshot):
        custom = Settings(_env_file=None, discount_many_factors=1.0)
        assessment = score_snapshot(stressed_snapshot, settings=custom)
        assert assessment.probabilities[RiskEvent.RECESSION] == pytest.approx(0.15 * 1.8 * 2.0 * 1.7)

    def test_probabilities_bounded(self, calm_snapshot, settings):
        snapshot = calm_snapshot.with_readings({
            "DFF": make_reading("DFF", 0.1),
            "GFDGDPA188S": make_reading("GFDGDPA188S", 180.0),
            "BOGMBASE": make_reading("BOGMBASE", 9000.0),
            "M2SL": make_reading("M2SL", 10000.0),
            "DeficitGDP": make_reading("DeficitGDP", 12.0),
            "DXY": make_reading("DXY", 70.0),
        })
        multipliers = {i: 1.5 for i in snapshot}
        assessment = score_snapshot(snapshot, multipliers, settings=settings)
        assert all(0.0 <= p <= 1.0 for p in assessment.probabilities.values())


class TestComputeRiskAssessment:
    @pytest.mark.asyncio
    async def test_trend_applied(self, stressed_snapshot, settings):
        snapshot = stressed_snapshot.with_readings({"T10Y2Y": make_reading("T10Y2Y", 0.5)})
        # Rising credit spreads: worsening for an inverted indicator
        provider = FakeHistory({"BAA10Y": make_series(4.5, 4.45, 4.4, 4.35)})

        assessment = await compute_risk_assessment(snapshot, provider, settings=settings)

        assert assessment.trend_status is TrendStatus.APPLIED
        assert assessment.trend_applied
        assert assessment.trends["BAA10Y"].direction == -1
        baa = assessment.factors[RiskEvent.RECESSION][1]
        assert baa.indicator_id == "BAA10Y"
        assert baa.trend_multiplier == 1.3
        assert assessment.probabilities[RiskEvent.RECESSION] == pytest.approx(0.15 * 1.8 * 2.6 * 0.7)

    @pytest.mark.asyncio
    async def test_disabled_skips_history(self, stressed_snapshot):
        provider = FakeHistory({"BAA10Y": make_series(4.5, 4.4, 4.3)})
        off = Settings(_env_file=None, trend_enabled=False)

        assessment = await compute_risk_assessment(stressed_snapshot, provider, settings=off)

        assert assessment.trend_status is TrendStatus.DISABLED
        assert provider.calls == []
        assert all(f.trend_multiplier == 1.0 for f in assessment.factors[RiskEvent.RECESSION])

    @pytest.mark.asyncio
    async def test_no_provider_unavailable(self, stressed_snapshot, settings):
        assessment = await compute_risk_assessment(stressed_snapshot, None, settings=settings)
        assert assessment.trend_status is TrendStatus.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_empty_histories_unavailable(self, stressed_snapshot, settings):
        assessment = await compute_risk_assessment(stressed_snapshot, FakeHistory(), settings=settings)
        assert assessment.trend_status is TrendStatus.UNAVAILABLE
        assert assessment.trends == {}

    @pytest.mark.asyncio
    async def test_history_provider_down(self, stressed_snapshot, settings):
        class DownProvider:
            async def get_history(self, indicator_id, periods):
                raise ConnectionError("history service down")

        baseline = score_snapshot(stressed_snapshot, settings=settings)
        assessment = await compute_risk_assessment(stressed_snapshot, DownProvider(), settings=settings)

        assert assessment.trend_status is TrendStatus.FAILED
        assert assessment.probabilities == baseline.probabilities
        assert "BAA10Y" in assessment.trend_failures

    @pytest.mark.asyncio
    async def test_fred_outage_reported_as_failed(self, stressed_snapshot, settings):
        outage = AsyncMock(side_effect=httpx.ConnectError("FRED down"))
        baseline = score_snapshot(stressed_snapshot, settings=settings)
        with patch("macro_risk.indicators.source.fetch_history", outage):
            assessment = await compute_risk_assessment(stressed_snapshot, FredDataSource(), settings=settings)

        assert assessment.trend_status is TrendStatus.FAILED
        assert assessment.probabilities == baseline.probabilities
        assert set(assessment.trend_failures) >= {"BAA10Y", "T10Y2Y", "UNRATE"}
        assert all(msg == "FRED down" for msg in assessment.trend_failures.values())
        assert "DXY" not in assessment.trend_failures

    @pytest.mark.asyncio
    async def test_trend_subsystem_crash(self, stressed_snapshot, settings):
        baseline = score_snapshot(stressed_snapshot, settings=settings)
        with patch("macro_risk.risk.engine.analyze_all_trends", side_effect=RuntimeError("boom")):
            assessment = await compute_risk_assessment(stressed_snapshot, FakeHistory(), settings=settings)

        assert assessment.trend_status is TrendStatus.FAILED
        assert assessment.probabilities == baseline.probabilities

    @pytest.mark.asyncio
    async def test_partial_history_failure(self, stressed_snapshot, settings):
        provider = FakeHistory({
            "BAA10Y": make_series(4.5, 4.45, 4.4, 4.35),
            "T10Y2Y": TimeoutError("slow"),
        })
        assessment = await compute_risk_assessment(stressed_snapshot, provider, settings=settings)

        assert assessment.trend_status is TrendStatus.APPLIED
        assert set(assessment.trend_failures) == {"T10Y2Y"}
        recession = {f.indicator_id: f for f in assessment.factors[RiskEvent.RECESSION]}
        assert recession["BAA10Y"].trend_multiplier == 1.3
        assert recession["T10Y2Y"].trend_multiplier == 1.0

    @pytest.mark.asyncio
    async def test_overlapping_cycles_independent(self, calm_snapshot, stressed_snapshot, settings):
        provider = FakeHistory({"BAA10Y": make_series(4.5, 4.45, 4.4, 4.35)})

        calm, stressed = await asyncio.gather(
            compute_risk_assessment(calm_snapshot, provider, settings=settings),
            compute_risk_assessment(stressed_snapshot, provider, settings=settings),
        )

        assert calm.probabilities == BASE_PRIORS
        assert len(stressed.factors[RiskEvent.RECESSION]) == 3
        assert calm.factors[RiskEvent.RECESSION] == []

    @pytest.mark.asyncio
    async def test_repeat_cycles_do_not_accumulate(self, stressed_snapshot, settings):
        first = await compute_risk_assessment(stressed_snapshot, None, settings=settings)
        second = await compute_risk_assessment(stressed_snapshot, None, settings=settings)
        assert first.probabilities == second.probabilities
        assert first.factors is not second.factors
