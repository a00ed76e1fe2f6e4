"""
Historical slice resolver.

Expands an activity-monitor filter (date mode, anchor date, weekday set,
hour range) into the concrete calendar dates it covers and a pair of
inclusive timestamps for the store query.

The timestamp pair is a coarse bound: in week and month mode it spans days
and hours the filter excludes. ``HistoricalSlice.contains`` is the exact
predicate, and both aggregation and drill-down must use it so that a cell's
count and its drill-down rows agree.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import FrozenSet, Iterable, List, Union

from pydantic import BaseModel, ConfigDict

from models.record_models import DateMode, HistoricalSliceFilter
from scripts.analytics.periods import month_bounds, week_bounds


class TimeWindow(BaseModel):
    """Plain inclusive timestamp window (the live "today" view)."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts <= self.end


class HistoricalSlice(BaseModel):
    """Resolved filter: ascending dates plus per-day hour window."""
    model_config = ConfigDict(frozen=True)

    dates: List[date]
    start: datetime
    end: datetime
    start_time: time
    end_time: time

    def contains(self, ts: datetime) -> bool:
        return (
            ts.date() in self.dates
            and self.start_time <= ts.time() <= self.end_time
        )


Window = Union[TimeWindow, HistoricalSlice]


def day_window(day: date) -> TimeWindow:
    """00:00:00 to the last instant of ``day``."""
    return TimeWindow(
        start=datetime.combine(day, time.min),
        end=datetime.combine(day, time.max),
    )


def slice_dates(filters: HistoricalSliceFilter) -> List[date]:
    """Calendar dates covered by the filter, ascending."""
    anchor = filters.anchor_date
    if filters.date_mode == DateMode.DAY:
        return [anchor]

    if filters.date_mode == DateMode.WEEK:
        first, last = week_bounds(anchor)
    else:
        first, last = month_bounds(anchor)

    dates = []
    current = first
    while current <= last:
        if current.isoweekday() in filters.weekdays:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def resolve_slice(filters: HistoricalSliceFilter) -> HistoricalSlice:
    """
    Resolve ``filters`` into dates and inclusive bounds.

    ``start`` is the first date at hour_start; ``end`` is the last date at
    hour_end, where 24 maps to 23:59:59.999999 of that day.
    """
    dates = slice_dates(filters)
    start_time, end_time = filters.start_time, filters.end_time
    return HistoricalSlice(
        dates=dates,
        start=datetime.combine(dates[0], start_time),
        end=datetime.combine(dates[-1], end_time),
        start_time=start_time,
        end_time=end_time,
    )


def toggle_weekday(weekdays: Iterable[int], day: int) -> FrozenSet[int]:
    """
    Flip ``day`` in the weekday set.

    Turning off the last remaining day is a no-op, so the set is never empty.
    """
    current = frozenset(weekdays)
    if day in current:
        if len(current) == 1:
            return current
        return current - {day}
    if not 1 <= day <= 5:
        raise ValueError(f"weekday must be 1 (Mon) to 5 (Fri), got {day}")
    return current | {day}
