"""
Period resolver.

Turns a quick-filter tag into the current date range and, for "vs previous
period" comparisons, into the range it is compared against.

Rolling windows (last 7 / last 30 days) compare against the same window
shifted back by a fixed number of days. Month-aligned windows (this month /
last month) compare against the full calendar month preceding the range's
first month, whatever its length. A custom range has no predecessor.
"""
from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Optional, Tuple

from models.record_models import DateRange, PeriodTag

ROLLING_SHIFT_DAYS = {
    PeriodTag.LAST_7_DAYS: 7,
    PeriodTag.LAST_30_DAYS: 30,
}


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last date of the calendar month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def week_bounds(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the ISO week containing ``day``."""
    monday = day - timedelta(days=day.isoweekday() - 1)
    return monday, monday + timedelta(days=6)


def preceding_month(day: date) -> DateRange:
    """Full span of the calendar month before the one containing ``day``."""
    first_of_month = day.replace(day=1)
    start, end = month_bounds(first_of_month - timedelta(days=1))
    return DateRange(date_from=start, date_to=end)


def resolve_quick_filter(tag, today: date) -> DateRange:
    """
    Current range for a quick-filter tag, relative to ``today``.

    Raises:
        ValueError: for the custom tag, which carries its own range.
    """
    tag = PeriodTag(tag)
    if tag in ROLLING_SHIFT_DAYS:
        return DateRange(
            date_from=today - timedelta(days=ROLLING_SHIFT_DAYS[tag]),
            date_to=today,
        )
    if tag == PeriodTag.THIS_MONTH:
        start, end = month_bounds(today)
        return DateRange(date_from=start, date_to=end)
    if tag == PeriodTag.LAST_MONTH:
        return preceding_month(today)
    raise ValueError("custom periods have no implied range; pass date_from/date_to")


def previous_period(tag, date_from: date, date_to: date) -> Optional[DateRange]:
    """
    The comparison range for ``tag`` given the current resolved range.

    Returns None for custom ranges (no comparison is shown).
    """
    tag = PeriodTag(tag)
    if tag in ROLLING_SHIFT_DAYS:
        shift = timedelta(days=ROLLING_SHIFT_DAYS[tag])
        return DateRange(date_from=date_from - shift, date_to=date_to - shift)
    if tag in (PeriodTag.THIS_MONTH, PeriodTag.LAST_MONTH):
        return preceding_month(date_from)
    return None
