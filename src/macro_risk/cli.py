"""Typer CLI: macro-risk assess, indicators, trend, watch."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console

app = typer.Typer(
    name="macro-risk",
    help="Trend-adjusted probability estimates for macroeconomic risk events",
    no_args_is_help=True,
)
console = Console()


def _settings(no_trend: bool = False):
    from macro_risk.common.logging import configure_logging
    from macro_risk.config import get_settings

    settings = get_settings()
    if no_trend:
        settings.trend_enabled = False
    configure_logging(settings.log_level)
    return settings


def _print_assessment(assessment, output: str) -> None:
    from macro_risk.reporting.formatters import format_csv, format_json, format_table

    if output == "json":
        console.print_json(format_json(assessment))
    elif output == "csv":
        console.print(format_csv(assessment), end="", soft_wrap=True, markup=False, highlight=False)
    else:
        format_table(assessment, console)


@app.command()
def assess(
    output: str = typer.Option(
        "table", "--output", "-o",
        help="Output format: table, json, csv",
    ),
    mock: bool = typer.Option(
        False, "--mock",
        help="Use built-in fallback values instead of live FRED data",
    ),
    no_trend: bool = typer.Option(
        False, "--no-trend",
        help="Disable trend adjustment (pure threshold scoring)",
    ),
) -> None:
    """Fetch indicators and score every risk event."""
    settings = _settings(no_trend)

    async def _run() -> None:
        from macro_risk.pipeline import make_source, run_refresh

        source = make_source(use_mock=mock or None, settings=settings)
        _, assessment = await run_refresh(source, settings)
        _print_assessment(assessment, output)

    asyncio.run(_run())


@app.command()
def indicators(
    mock: bool = typer.Option(False, "--mock", help="Use built-in fallback values"),
    no_trend: bool = typer.Option(False, "--no-trend", help="Skip the trend column"),
) -> None:
    """Show the current indicator snapshot with trend direction (no scoring)."""
    settings = _settings(no_trend)

    async def _run() -> None:
        from macro_risk.indicators.source import connection_status
        from macro_risk.pipeline import indicator_trends, make_source
        from macro_risk.reporting.formatters import format_indicators

        source = make_source(use_mock=mock or None, settings=settings)
        snapshot = await source.get_snapshot()
        trends = await indicator_trends(snapshot, source, settings)
        format_indicators(snapshot, console, trends)

        status = connection_status(snapshot)
        console.print(
            f"\n[dim]{status['live_count']} live / {status['total_count']} total indicator(s)[/dim]"
        )

    asyncio.run(_run())


@app.command()
def trend(
    series_id: str = typer.Argument(help="Indicator series id, e.g. UNRATE"),
    mock: bool = typer.Option(False, "--mock", help="Use built-in fallback values"),
) -> None:
    """Show trend direction, velocity and multiplier for one indicator."""
    settings = _settings()

    async def _run() -> None:
        import httpx

        from macro_risk.pipeline import make_source, trend_report
        from macro_risk.reporting.formatters import format_trend

        source = make_source(use_mock=mock or None, settings=settings)
        try:
            analysis = await trend_report(series_id, source, settings)
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            console.print(f"[red]History fetch failed for {series_id}: {exc}[/red]")
            raise typer.Exit(code=1)
        if analysis is None:
            console.print(f"[yellow]No history available for {series_id}[/yellow]")
            raise typer.Exit(code=1)
        format_trend(series_id, analysis, console)

    asyncio.run(_run())


@app.command()
def watch(
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i",
        help="Minutes between refreshes (default: REFRESH_INTERVAL_MINUTES)",
    ),
    cycles: Optional[int] = typer.Option(
        None, "--cycles", "-n",
        help="Stop after this many refreshes (default: run until interrupted)",
    ),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json, csv"),
    mock: bool = typer.Option(False, "--mock", help="Use built-in fallback values"),
    no_trend: bool = typer.Option(False, "--no-trend", help="Disable trend adjustment"),
) -> None:
    """Refresh and re-score periodically."""
    settings = _settings(no_trend)

    async def _run() -> None:
        from macro_risk.pipeline import make_source
        from macro_risk.pipeline import watch as watch_loop

        def _show(snapshot, assessment) -> None:
            _print_assessment(assessment, output)

        source = make_source(use_mock=mock or None, settings=settings)
        await watch_loop(_show, source, settings, interval_minutes=interval, cycles=cycles)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")


if __name__ == "__main__":
    app()
