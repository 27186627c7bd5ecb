"""Top-level refresh pipeline.

Wires together: snapshot fetch → trend analysis → threshold scoring → aggregation.
History retrieval fans out concurrently inside the scoring engine.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from rich.console import Console

from macro_risk.common.types import IndicatorId
from macro_risk.config import Settings, get_settings
from macro_risk.indicators.models import IndicatorSnapshot
from macro_risk.indicators.source import DataSource, FredDataSource, MockDataSource, connection_status
from macro_risk.risk.engine import compute_risk_assessment
from macro_risk.risk.models import RiskAssessment, TrendAnalysis, TrendStatus
from macro_risk.risk.rules import trend_polarity
from macro_risk.risk.trend import analyze_all_trends, analyze_trend

logger = logging.getLogger(__name__)
console = Console(stderr=True)

RefreshCallback = Callable[[IndicatorSnapshot, RiskAssessment], Awaitable[None] | None]


def make_source(use_mock: bool | None = None, settings: Settings | None = None) -> DataSource:
    """Pick the live FRED source, or the mock source when asked or no API key is set."""
    if settings is None:
        settings = get_settings()
    if use_mock is None:
        use_mock = settings.use_mock_data
    if use_mock:
        return MockDataSource()
    if not settings.fred_api_key:
        logger.warning("FRED_API_KEY not set, using mock data")
        console.print("[yellow]FRED_API_KEY not set, using mock data[/yellow]")
        return MockDataSource()
    return FredDataSource()


async def run_refresh(
    source: DataSource | None = None,
    settings: Settings | None = None,
) -> tuple[IndicatorSnapshot, RiskAssessment]:
    """Run one refresh cycle: fetch the snapshot, then score it.

    Returns the snapshot alongside the assessment so callers can show both.
    """
    if settings is None:
        settings = get_settings()
    if source is None:
        source = make_source(settings=settings)

    console.print("[bold]Fetching economic indicators...[/bold]")
    snapshot = await source.get_snapshot()
    status = connection_status(snapshot)
    console.print(
        f"  {status['total_count']} indicator(s): "
        f"[green]{status['live_count']} live[/green], {status['mock_count']} fallback"
    )

    console.print("[bold]Scoring risk events...[/bold]")
    assessment = await compute_risk_assessment(snapshot, source, settings=settings)

    if assessment.trend_status is TrendStatus.APPLIED:
        console.print(f"  Trend adjustment applied ({len(assessment.trends)} indicator(s))")
    else:
        console.print(f"  [yellow]Trend adjustment {assessment.trend_status.value}[/yellow]")
    if assessment.critical_events:
        names = ", ".join(e.value for e in assessment.critical_events)
        console.print(f"  [bold red]Critical: {names}[/bold red]")

    return snapshot, assessment


async def indicator_trends(
    snapshot: IndicatorSnapshot,
    source: DataSource,
    settings: Settings | None = None,
) -> dict[IndicatorId, TrendAnalysis]:
    """Trend analysis for every snapshot indicator that has history.

    Empty when trends are disabled. Failed retrievals are logged and left out.
    """
    if settings is None:
        settings = get_settings()
    if not settings.trend_enabled:
        return {}
    polarity = {i: inv for i, inv in trend_polarity().items() if i in snapshot}
    report = await analyze_all_trends(source, polarity, settings)
    return report.analyses


async def trend_report(
    indicator_id: IndicatorId,
    source: DataSource | None = None,
    settings: Settings | None = None,
) -> TrendAnalysis | None:
    """Detailed trend analysis for one indicator, or None if it has no history."""
    if settings is None:
        settings = get_settings()
    if source is None:
        source = make_source(settings=settings)

    series = await source.get_history(indicator_id, settings.trend_window)
    if not series:
        return None
    inverted = trend_polarity().get(indicator_id, False)
    return analyze_trend(indicator_id, series, inverted, settings)


async def watch(
    on_refresh: RefreshCallback,
    source: DataSource | None = None,
    settings: Settings | None = None,
    interval_minutes: float | None = None,
    cycles: int | None = None,
) -> int:
    """Refresh periodically, calling *on_refresh* after each cycle.

    Runs *cycles* times (forever when None). A cycle that raises is logged
    and the loop carries on with the next one. Returns the number of
    completed cycles.
    """
    if settings is None:
        settings = get_settings()
    if source is None:
        source = make_source(settings=settings)
    interval = settings.refresh_interval_minutes if interval_minutes is None else interval_minutes

    completed = 0
    attempted = 0
    while cycles is None or attempted < cycles:
        attempted += 1
        try:
            snapshot, assessment = await run_refresh(source, settings)
        except Exception as exc:
            logger.error("Refresh cycle %d failed: %s", attempted, exc)
            console.print(f"[red]Refresh failed: {exc}[/red]")
        else:
            completed += 1
            result = on_refresh(snapshot, assessment)
            if asyncio.iscoroutine(result):
                await result

        if cycles is not None and attempted >= cycles:
            break
        logger.info("Next refresh in %.1f minute(s)", interval)
        await asyncio.sleep(interval * 60)

    return completed
