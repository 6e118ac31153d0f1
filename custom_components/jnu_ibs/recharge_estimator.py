"""Recharge suggestion calculator for JNU IBS integration."""

from __future__ import annotations

from typing import Any
import logging
import math

from .const import RATES, EnergyType
from .helpers import parse_leading_float, round_money, to_float

_LOGGER = logging.getLogger(__name__)

RECENT_DAYS = 5
FALLBACK_BILLING_DAYS = 30
RECHARGE_STEP = 10


def _daily_cost_from_trends(trends: list[dict[str, Any]]) -> float:
    """Sum the recent average daily cost over all utility series.

    Each series contributes the mean of its last RECENT_DAYS values priced at
    the fixed rate for its utility type, or the electricity rate when the type
    is not a known utility.
    """
    total = 0.0
    for series in trends or []:
        if not isinstance(series, dict):
            continue
        points = series.get("datas")
        if not isinstance(points, list) or not points:
            continue

        type_id = parse_leading_float(series.get("energyType"))
        try:
            rate = RATES[EnergyType(int(type_id))]
        except (KeyError, TypeError, ValueError, OverflowError):
            _LOGGER.debug(
                "Pricing trend series type %s at the electricity rate",
                series.get("energyType"),
            )
            rate = RATES[EnergyType.ELEC]

        recent = points[-RECENT_DAYS:]
        values = [to_float(p.get("dataValue")) for p in recent if isinstance(p, dict)]
        if values:
            total += sum(values) / len(values) * rate
    return total


def estimate_recharge(
    overview: dict[str, Any],
    trends: list[dict[str, Any]],
    days_to_cover: int,
    roommates: int,
) -> dict[str, Any]:
    """Estimate how much to recharge to cover the next days.

    The daily burn comes from recent trend data; without trend data it falls
    back to this period's total cost spread over 30 days.

    Args:
        overview: Overview dict from reduce_overview
        trends: Trend series from fetch_trends
        days_to_cover: Number of days the balance should last
        roommates: Number of people sharing the bill

    Returns:
        Dict with 'daily_cost', 'days_to_cover', 'needed', 'balance',
        'to_recharge', 'suggested_recharge', 'roommates', 'per_person' and
        'from_trends'
    """
    if days_to_cover < 1:
        raise ValueError("days_to_cover must be at least 1")
    if roommates < 1:
        raise ValueError("roommates must be at least 1")

    daily_cost = _daily_cost_from_trends(trends)
    from_trends = daily_cost > 0
    if not from_trends:
        daily_cost = overview["costs"]["total"] / FALLBACK_BILLING_DAYS

    balance = overview["balance"]
    needed = daily_cost * days_to_cover
    to_recharge = max(0.0, needed - balance)

    return {
        "daily_cost": round_money(daily_cost),
        "days_to_cover": days_to_cover,
        "needed": round_money(needed),
        "balance": balance,
        "to_recharge": round_money(to_recharge),
        "suggested_recharge": math.ceil(round_money(to_recharge) / RECHARGE_STEP) * RECHARGE_STEP,
        "roommates": roommates,
        "per_person": round_money(to_recharge / roommates),
        "from_trends": from_trends,
    }
