"""Reduce raw IBS responses into a normalized overview."""

from __future__ import annotations

from typing import Any
import logging
import re

from .const import BALANCE_MARKER, MIN_UNIT_PRICE, RATES, UTILITY_KEYS, EnergyType
from .helpers import parse_leading_float, round_money, to_float

_LOGGER = logging.getLogger(__name__)

_NUMBER_AFTER_MARKER = re.compile(
    re.escape(BALANCE_MARKER) + r"\D*?([-+]?\d+(?:\.\d+)?)"
)


def _result_list(response: Any) -> list[Any]:
    """Extract d.ResultList from a response, tolerating any shape."""
    if not isinstance(response, dict):
        return []
    body = response.get("d")
    if not isinstance(body, dict):
        return []
    results = body.get("ResultList")
    return results if isinstance(results, list) else []


def _first(items: Any) -> Any:
    """Return the first element of a list, or None."""
    if isinstance(items, list) and items:
        return items[0]
    return None


def _find_by_type(items: list[Any], field: str, energy_type: EnergyType) -> dict[str, Any] | None:
    """Find the first record whose type field matches an energy type."""
    for item in items:
        if not isinstance(item, dict):
            continue
        if parse_leading_float(item.get(field)) == float(energy_type):
            return item
    return None


def extract_balance(info_response: Any) -> float:
    """Extract the account balance from a GetUserInfo response.

    The balance is the first roomInfo entry whose keyName contains the
    balance marker. Returns 0.0 when no usable value exists.
    """
    info = _first(_result_list(info_response))
    if not isinstance(info, dict):
        return 0.0
    room_info = info.get("roomInfo")
    if not isinstance(room_info, list):
        return 0.0

    for entry in room_info:
        if not isinstance(entry, dict):
            continue
        key_name = str(entry.get("keyName") or "")
        if BALANCE_MARKER not in key_name:
            continue

        value = parse_leading_float(entry.get("keyValue"))
        if value is None:
            # Some rooms report the amount inside the label, e.g. "余额: 124.50"
            match = _NUMBER_AFTER_MARKER.search(key_name)
            value = float(match.group(1)) if match else None
        if value is None:
            _LOGGER.debug("Balance entry %r has no numeric value", entry)
            return 0.0
        return round_money(value)

    return 0.0


def extract_subsidy(subsidy_list: list[Any], energy_type: EnergyType) -> tuple[float, float]:
    """Get the remaining allowance and its money value for a utility.

    Returns:
        Tuple of (allowance, money), both rounded to 2 decimals. The money value
        is computed from the unrounded allowance.
    """
    item = _find_by_type(subsidy_list, "itemType", energy_type)
    quantity = to_float(item.get("avalibleValue")) if item else 0.0
    return round_money(quantity), round_money(quantity * RATES[energy_type])


def extract_usage(bill_list: list[Any], energy_type: EnergyType) -> tuple[float, float]:
    """Get usage and unit price for a utility from GetBillCost results.

    A backend unit price at or below MIN_UNIT_PRICE is a placeholder and is
    replaced by the fixed rate. A utility missing from the bill gives (0, 0).

    Returns:
        Tuple of (usage, unit_price), unrounded
    """
    item = _find_by_type(bill_list, "energyType", energy_type)
    if item is None:
        return 0.0, 0.0

    usage = 0.0
    detail = _first(item.get("energyCostDetails"))
    if isinstance(detail, dict):
        value = _first(detail.get("billItemValues"))
        if isinstance(value, dict):
            usage = to_float(value.get("energyValue"))

    price = to_float(item.get("unitPrice"))
    if price <= MIN_UNIT_PRICE:
        price = RATES[energy_type]

    return usage, price


def reduce_overview(
    room: str | None,
    info_response: Any,
    subsidy_response: Any,
    bill_response: Any,
) -> dict[str, Any]:
    """Combine GetUserInfo, GetSubsidy and GetBillCost into one overview.

    This is a pure function. Missing or malformed fields degrade to zero for the
    affected value; the result always has every key.

    Rounding: each per-utility money value is rounded to 2 decimals on its own,
    and costs.total is the sum of the unrounded costs rounded once.

    Args:
        room: Room code of the logged-in session
        info_response: Raw GetUserInfo payload ({"d": {...}})
        subsidy_response: Raw GetSubsidy payload
        bill_response: Raw GetBillCost payload

    Returns:
        Dict with 'room', 'balance', 'costs', 'subsidy', 'subsidy_money' and
        'details' (usage, unit_price) per utility
    """
    subsidy_list = _result_list(subsidy_response)
    bill_list = _result_list(bill_response)

    costs: dict[str, float] = {}
    subsidy: dict[str, float] = {}
    subsidy_money: dict[str, float] = {}
    details: dict[str, tuple[float, float]] = {}
    raw_total = 0.0

    for energy_type, key in UTILITY_KEYS.items():
        subsidy[key], subsidy_money[key] = extract_subsidy(subsidy_list, energy_type)

        usage, price = extract_usage(bill_list, energy_type)
        cost = usage * price
        raw_total += cost
        costs[key] = round_money(cost)
        details[key] = (usage, price)

    costs["total"] = round_money(raw_total)

    return {
        "room": room or "Unknown",
        "balance": extract_balance(info_response),
        "costs": costs,
        "subsidy": subsidy,
        "subsidy_money": subsidy_money,
        "details": details,
    }
