"""
Working-day calendar.

A working day is any Monday-Friday date; public holidays are not modelled.
All functions compare at day granularity, so datetimes are truncated.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, TypeVar

T = TypeVar("T", date, datetime)


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def is_working_day(day) -> bool:
    return _as_date(day).isoweekday() <= 5


def iter_working_days(start, end) -> Iterator[date]:
    """Yield each Mon-Fri date in [start, end] inclusive, ascending."""
    current = _as_date(start)
    last = _as_date(end)
    while current <= last:
        if current.isoweekday() <= 5:
            yield current
        current += timedelta(days=1)


def count_working_days(start, end) -> int:
    """
    Count Mon-Fri dates in [start, end] inclusive.

    Returns 0 when start is after end. Computed arithmetically (whole weeks
    contribute five days each) so long campaign spans stay cheap.
    """
    first = _as_date(start)
    last = _as_date(end)
    if first > last:
        return 0

    span = (last - first).days + 1
    full_weeks, leftover = divmod(span, 7)
    count = full_weeks * 5

    weekday = first.isoweekday() + full_weeks * 7
    for offset in range(leftover):
        if (weekday + offset - 1) % 7 < 5:
            count += 1
    return count


def clamp_to_range(value: T, start: T, end: T) -> T:
    """Return start if value < start, end if value > end, else value."""
    if value < start:
        return start
    if value > end:
        return end
    return value
