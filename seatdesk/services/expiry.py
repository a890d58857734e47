"""
Subscription expiry projection from free-text plan durations.

Plan durations are entered by hand ("1 month", "2 Weeks", "30 days",
"6 MONTHS"). The first integer in the text is the quantity and the unit is
picked by case-insensitive substring match in a fixed priority order:
day, week, month, year. A text that names more than one unit resolves to
the first of those in that order.
"""
import math
import re
from calendar import monthrange
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from seatdesk.core.errors import ValidationError

UNIT_PRIORITY = ("day", "week", "month", "year")

# Quantity used when the text names a unit but carries no number
FALLBACK_QUANTITY = {"day": 30, "week": 4, "month": 1, "year": 1}

EXPIRED_OR_TODAY = "expired_or_today"

_INT_RE = re.compile(r"\d+")

DateLike = Union[date, datetime]


def _as_datetime(value: DateLike) -> datetime:
    """Bare dates become midnight; naive datetimes are taken as UTC."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def parse_duration(duration_text: str) -> tuple[int, str]:
    """Return ``(quantity, unit)`` for a plan duration such as ``"2 weeks"``."""
    lowered = (duration_text or "").lower()
    unit = next((u for u in UNIT_PRIORITY if u in lowered), None)
    if unit is None:
        raise ValidationError(
            f"Plan duration '{duration_text}' has no day/week/month/year unit",
            {"duration": duration_text},
        )
    match = _INT_RE.search(lowered)
    quantity = int(match.group()) if match else FALLBACK_QUANTITY[unit]
    return quantity, unit


def add_months(start: datetime, months: int) -> datetime:
    """
    Calendar month addition. The day of month is clamped to the last day of
    the target month, so Jan 31 + 1 month is Feb 28 (Feb 29 in leap years).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def compute_expiry(start: DateLike, duration_text: str) -> datetime:
    start_dt = _as_datetime(start)
    quantity, unit = parse_duration(duration_text)
    if unit == "day":
        return start_dt + timedelta(days=quantity)
    if unit == "week":
        return start_dt + timedelta(weeks=quantity)
    if unit == "month":
        return add_months(start_dt, quantity)
    return add_months(start_dt, quantity * 12)


def days_until(expiry: DateLike, reference: DateLike) -> int:
    """Whole days from ``reference`` to ``expiry``, rounded up (4.1 days -> 5)."""
    delta = _as_datetime(expiry) - _as_datetime(reference)
    return math.ceil(delta.total_seconds() / 86400)


def classify_bucket(days_left: int, window_days: int = 5) -> Optional[Union[str, int]]:
    """
    ``"expired_or_today"`` for ``days_left <= 0``, the exact day count for
    ``0 < days_left <= window_days``, otherwise None.
    """
    if days_left <= 0:
        return EXPIRED_OR_TODAY
    if days_left <= window_days:
        return days_left
    return None
