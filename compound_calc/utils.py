"""Utility functions for the compound interest calculator.

This module provides helpers for turning user input into ``Decimal`` values
and ``date`` objects, and for stepping calendar dates by one compounding
interval. Month and year steps use calendar arithmetic; a day that does not
exist in the target month is clamped to the last valid day of that month.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation, getcontext
from typing import Any, Optional

from .data_models import (
    ANNUALLY,
    CONTINUOUSLY,
    DAILY,
    MONTHLY,
    QUARTERLY,
    SEMI_ANNUALLY,
    WEEKLY,
)
from .errors import InvalidFrequency, InvalidInput

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

# Month-based intervals; annual steps use add_years, weekly and daily step in days
_MONTHS_PER_PERIOD = {
    SEMI_ANNUALLY: 6,
    QUARTERLY: 3,
    MONTHLY: 1,
}
_DAYS_PER_PERIOD = {
    WEEKLY: 7,
    DAILY: 1,
}


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date``.

    A trailing time component (``2024-01-31T00:00:00``) is ignored, which
    allows passing full ISO-8601 timestamps such as those produced by
    JavaScript's ``Date.toISOString``.

    Raises
    ------
    ValueError
        If the string is not a valid calendar date.
    """
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(dt: date, years: int) -> date:
    """Return ``dt`` moved by whole years; Feb 29 becomes Feb 28 when needed."""
    return add_months(dt, 12 * years)


def step_date(dt: date, frequency: str, count: int = 1) -> Optional[date]:
    """Return the date ``count`` compounding intervals after ``dt``.

    Stepping is always computed from ``dt`` itself, so callers that want the
    date of period ``i`` should pass the start date and ``count=i`` rather
    than stepping a running date. That keeps the day of month anchored:
    Jan 31 stepped monthly gives Feb 28, Mar 31, Apr 30 and so on.

    Continuous compounding has no interval, so ``None`` is returned.
    """
    if frequency == ANNUALLY:
        return add_years(dt, count)
    if frequency in _MONTHS_PER_PERIOD:
        return add_months(dt, _MONTHS_PER_PERIOD[frequency] * count)
    if frequency in _DAYS_PER_PERIOD:
        return dt + timedelta(days=_DAYS_PER_PERIOD[frequency] * count)
    if frequency == CONTINUOUSLY:
        return None
    raise InvalidFrequency(f"Unknown compounding frequency: {frequency!r}")


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Convert a number or numeric string into a finite ``Decimal``.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    instead of its binary expansion. Commas are stripped from strings.

    Raises
    ------
    InvalidInput
        If the value is missing, not numeric, NaN or infinite.
    """
    if value is None:
        raise InvalidInput(f"{name} is required")
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).replace(",", "").strip()
        try:
            result = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidInput(f"{name} must be a number, got {value!r}") from exc
    if not result.is_finite():
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    return result
