"""Helper functions and utilities for JNU IBS integration."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
import math
import re

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")
_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round a value half-up to 2 decimals.

    The shortest repr of the float is rounded, so 0.125 becomes 0.13 rather
    than the 0.12 that round() gives for its binary approximation.
    """
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def parse_leading_float(value: Any) -> float | None:
    """Parse the number at the start of a value.

    Accepts numbers and strings such as "124.50" or "124.50元". Returns None
    if no number can be read.

    Args:
        value: Raw backend value

    Returns:
        Parsed float, or None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return None
    return float(match.group(1))


def to_float(value: Any, default: float = 0.0) -> float:
    """Parse a backend numeric field, falling back to a default."""
    parsed = parse_leading_float(value)
    return default if parsed is None else parsed


def format_date(day: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return day.strftime("%Y-%m-%d")


def get_month_bounds(year: int, month: int) -> tuple[date, date]:
    """Get the first and last day of a month.

    Args:
        year: Year
        month: Month (1-12)

    Returns:
        Tuple of (first_day, last_day)
    """
    first_day = date(year, month, 1)
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return first_day, next_month - timedelta(days=1)


def get_trend_date_range(year: int, month: int, today: date) -> tuple[date, date]:
    """Get the date range to request daily trend data for.

    Covers the whole calendar month, except that the current month stops at
    today so no future dates are requested.

    Args:
        year: Target year
        month: Target month (1-12)
        today: The current date

    Returns:
        Tuple of (start_date, end_date)
    """
    first_day, last_day = get_month_bounds(year, month)
    if first_day <= today <= last_day:
        return first_day, today
    return first_day, last_day
