"""Budget deficit to GDP ratio from the Treasury Monthly Treasury Statement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from macro_risk.common.http import HttpClient
from macro_risk.common.types import parse_number
from macro_risk.config import get_settings
from macro_risk.indicators.fred import fetch_latest

logger = logging.getLogger(__name__)

# MTS table 5 line for the total surplus/deficit
_DEFICIT_LINE_CODE = "5694"


@dataclass
class DeficitRatio:
    """Deficit/GDP ratio with its inputs.

    Attributes:
        ratio_pct: |fiscal-year-to-date deficit| as percent of nominal GDP
        deficit_billions: fiscal-year-to-date deficit in $ billions
        gdp_billions: latest nominal GDP (SAAR, $ billions)
        record_date: MTS record date
    """

    ratio_pct: float
    deficit_billions: float
    gdp_billions: float
    record_date: date | None


def deficit_gdp_ratio(fytd_millions: float, gdp_billions: float) -> float:
    """Deficit as an absolute percent of GDP (MTS reports millions, FRED GDP billions)."""
    if gdp_billions == 0:
        raise ValueError("GDP must be non-zero")
    return abs((fytd_millions / 1000) / gdp_billions * 100)


async def fetch_deficit_gdp() -> DeficitRatio:
    """Fetch the latest FYTD deficit from the MTS and divide by FRED GDP.

    Raises ValueError on empty/malformed responses; HTTP errors propagate.
    """
    settings = get_settings()
    params = {
        "filter": f"line_code_nbr:eq:{_DEFICIT_LINE_CODE}",
        "sort": "-record_date",
        "page[number]": 1,
        "page[size]": 1,
    }

    async with HttpClient(base_url=settings.treasury_api_url) as client:
        payload = await client.get_json("/v1/accounting/mts/mts_table_5", params=params)

    rows = payload.get("data") or []
    if not rows:
        raise ValueError("No deficit data available from Treasury")

    latest = rows[0]
    # FYTD amount is already cumulative for the fiscal year
    fytd_millions = parse_number(latest.get("current_fytd_net_outly_amt"), "FYTD deficit")
    record_date = date.fromisoformat(latest["record_date"]) if latest.get("record_date") else None

    gdp = await fetch_latest("GDP")
    ratio = deficit_gdp_ratio(fytd_millions, gdp.value)
    logger.info("Deficit/GDP: %.2f%% (FYTD %s, GDP %s)", ratio, record_date, gdp.date)

    return DeficitRatio(
        ratio_pct=round(ratio, 2),
        deficit_billions=round(fytd_millions / 1000, 2),
        gdp_billions=gdp.value,
        record_date=record_date,
    )
