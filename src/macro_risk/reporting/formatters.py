"""Assessment output formatters: Rich tables, JSON, CSV."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table

from macro_risk.common.types import IndicatorId
from macro_risk.indicators.catalog import DISPLAY_ORDER
from macro_risk.indicators.models import IndicatorSnapshot, SourceLabel
from macro_risk.risk.models import RiskAssessment, RiskEvent, RiskLevel, TrendAnalysis

_LEVEL_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MODERATE: "yellow",
    RiskLevel.HIGH: "dark_orange",
    RiskLevel.CRITICAL: "bold red",
}

_DIRECTION_LABELS = {-1: "↓ Worsening", 0: "→ Stable", 1: "↑ Improving"}

_EVENT_TITLES = {
    RiskEvent.RECESSION: "Recession",
    RiskEvent.DEPRESSION: "Depression",
    RiskEvent.RESERVE_STATUS_LOSS: "Reserve status loss",
    RiskEvent.SOVEREIGN_DEFAULT: "Sovereign default",
    RiskEvent.CURRENCY_DEVALUATION: "Currency devaluation",
}


def direction_label(direction: int) -> str:
    return _DIRECTION_LABELS.get(direction, "?")


def _factor_text(assessment: RiskAssessment, event: RiskEvent) -> str:
    parts = []
    for f in assessment.factors[event]:
        if f.trend_adjusted:
            parts.append(f"{f.reason} (×{f.base_factor:.2f}, trend ×{f.trend_multiplier:.2f})")
        else:
            parts.append(f"{f.reason} (×{f.base_factor:.2f})")
    return "\n".join(parts) or "-"


def format_table(assessment: RiskAssessment, console: Console | None = None) -> None:
    """Print the assessment as a Rich table in event order."""
    if console is None:
        console = Console()

    table = Table(
        title="Macro Risk Assessment",
        caption=(
            f"Generated at {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')} | "
            f"trend adjustment: {assessment.trend_status.value}"
        ),
        show_lines=True,
    )
    table.add_column("Event", style="bold", width=22)
    table.add_column("Probability", justify="right", width=11)
    table.add_column("Level", width=9)
    table.add_column("Contributing factors", width=60, no_wrap=False)

    for event in RiskEvent:
        level = assessment.risk_levels[event]
        style = _LEVEL_STYLES[level]
        table.add_row(
            _EVENT_TITLES[event],
            f"{assessment.probabilities[event]:.1%}",
            f"[{style}]{level.value}[/{style}]",
            _factor_text(assessment, event),
        )

    console.print(table)
    if assessment.critical_events:
        names = ", ".join(_EVENT_TITLES[e] for e in assessment.critical_events)
        console.print(f"\n[bold red]Critical: {names}[/bold red]")
    if assessment.trend_failures:
        console.print(f"[dim]History unavailable for: {', '.join(sorted(assessment.trend_failures))}[/dim]")


def format_indicators(
    snapshot: IndicatorSnapshot,
    console: Console | None = None,
    trends: dict[IndicatorId, TrendAnalysis] | None = None,
) -> None:
    """Print the indicator snapshot in display order, with trend columns when given."""
    if console is None:
        console = Console()
    trends = trends or {}

    table = Table(title="Economic Indicators", show_lines=False)
    table.add_column("Series", width=16)
    table.add_column("Indicator", width=26)
    table.add_column("Value", justify="right", width=10)
    table.add_column("Warning", width=20)
    table.add_column("Source", width=10)
    table.add_column("As of", width=10)
    table.add_column("Trend", width=13)

    ordered = [i for i in DISPLAY_ORDER if i in snapshot]
    ordered += [i for i in snapshot if i not in ordered]
    for indicator_id in ordered:
        reading = snapshot[indicator_id]
        source_style = "green" if reading.source is SourceLabel.LIVE else "yellow"
        trend = trends.get(indicator_id)
        table.add_row(
            indicator_id,
            reading.name,
            reading.display_value,
            reading.threshold,
            f"[{source_style}]{reading.source.value}[/{source_style}]",
            reading.as_of.isoformat() if reading.as_of else "",
            direction_label(trend.direction) if trend else "",
        )

    console.print(table)


def format_trend(indicator_id: IndicatorId, analysis: TrendAnalysis, console: Console | None = None) -> None:
    """Print one indicator's trend analysis."""
    if console is None:
        console = Console()
    console.print(f"[bold]Trend analysis: {indicator_id}[/bold]")
    console.print(f"  Direction:    {direction_label(analysis.direction)}")
    console.print(f"  Slope:        {analysis.normalized_slope:+.2f}% of mean/period")
    console.print(f"  Velocity:     {analysis.velocity:+.2f}%/period")
    console.print(f"  Acceleration: {analysis.acceleration:+.3f}")
    console.print(f"  Multiplier:   {analysis.multiplier:.2f}")
    console.print(f"  Data points:  {analysis.data_points}")


def assessment_to_dict(assessment: RiskAssessment) -> dict[str, object]:
    """JSON-ready representation of an assessment."""
    return {
        "probabilities": {e.value: round(p, 6) for e, p in assessment.probabilities.items()},
        "risk_levels": {e.value: level.value for e, level in assessment.risk_levels.items()},
        "critical_events": [e.value for e in assessment.critical_events],
        "factors": {
            e.value: [
                {
                    "indicator_id": f.indicator_id,
                    "reason": f.reason,
                    "base_factor": f.base_factor,
                    "trend_multiplier": f.trend_multiplier,
                    "effective_factor": round(f.effective_factor, 6),
                }
                for f in factors
            ]
            for e, factors in assessment.factors.items()
        },
        "trend_applied": assessment.trend_applied,
        "trend_status": assessment.trend_status.value,
        "trends": {
            i: {
                "direction": t.direction,
                "direction_label": direction_label(t.direction),
                "velocity": round(t.velocity, 2),
                "acceleration": round(t.acceleration, 3),
                "multiplier": round(t.multiplier, 2),
                "data_points": t.data_points,
            }
            for i, t in assessment.trends.items()
        },
        "trend_failures": dict(assessment.trend_failures),
    }


def format_json(assessment: RiskAssessment) -> str:
    """Format an assessment as a JSON string."""
    return json.dumps(assessment_to_dict(assessment), indent=2, ensure_ascii=False)


def format_csv(assessment: RiskAssessment) -> str:
    """Format an assessment as CSV, one row per event."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["event", "probability", "risk_level", "critical", "n_factors", "factors", "trend_status"])
    for event in RiskEvent:
        factors = assessment.factors[event]
        writer.writerow([
            event.value,
            round(assessment.probabilities[event], 6),
            assessment.risk_levels[event].value,
            event in assessment.critical_events,
            len(factors),
            "|".join(f.reason for f in factors),
            assessment.trend_status.value,
        ])
    return output.getvalue()
