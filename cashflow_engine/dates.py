"""
Calendar helpers shared by the aggregator, paycheck detector and scheduler.

All month arithmetic clips to the last valid day of the target month, so
adding one month to January 31st lands on February 28th (or 29th).
"""

import calendar
from datetime import date, datetime
from typing import Union


DateLike = Union[date, datetime, str]


def parse_date(value: DateLike) -> date:
    """
    Coerce a date, datetime or ISO string into a ``date``.

    Args:
        value: ``date``, ``datetime`` or string in ``YYYY-MM-DD`` form
            (a trailing time component is ignored)

    Returns:
        The calendar date

    Raises:
        ValueError: If the string cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")
    return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clipping ``day`` to the month's last valid day."""
    return date(year, month, min(max(day, 1), last_day_of_month(year, month)))


def add_months(d: date, months: int) -> date:
    total = d.year * 12 + (d.month - 1) + months
    year, month = divmod(total, 12)
    return clamp_day(year, month + 1, d.day)


def month_start(d: date) -> date:
    return date(d.year, d.month, 1)


def whole_months_between(start: date, end: date) -> int:
    """
    Count complete calendar months elapsed from ``start`` to ``end``.

    March 15th to May 14th is one month; March 15th to May 15th is two.
    Returns 0 when ``end`` is not after ``start``.
    """
    if end <= start:
        return 0
    months = (end.year * 12 + end.month) - (start.year * 12 + start.month)
    if end.day < start.day and end != clamp_day(end.year, end.month, start.day):
        months -= 1
    return max(months, 0)
