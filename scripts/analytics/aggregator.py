"""
Aggregator
==========

Reduces rows (daily snapshots or raw activity events) into summed counters,
scoped by an arbitrary predicate.

Sums are order independent, so a caller that fetches rows page by page can
aggregate each page and combine the partials with ``merge_totals``.

Functions:
  aggregate()       - Filter rows by predicate and sum numeric fields
  merge_totals()    - Combine partial aggregate results
  event_counters()  - Dials/answered/DM/SQL counts from raw events
  rollup_events()   - Re-derive per (performer, client, date) snapshots from events

Predicate builders:
  in_date_range(), for_client(), for_performer(), on_weekdays(),
  within_hours(), all_of()
"""
from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from models.record_models import ActivityEvent, DailySnapshot, DateRange

Predicate = Callable[[Any], bool]

SNAPSHOT_FIELDS = ("dials", "answered", "dms_reached", "mqls", "sqls")
EVENT_FIELDS = ("dials", "answered", "dms_reached", "sqls")


def _value(row: Any, field: str) -> Any:
    if isinstance(row, dict):
        return row.get(field)
    return getattr(row, field, None)


def _row_date(row: Any) -> Optional[date]:
    value = _value(row, "snapshot_date")
    if value is None:
        value = _value(row, "occurred_at")
    if value is None:
        value = _value(row, "booking_date")
    if isinstance(value, datetime):
        return value.date()
    return value


# ─── Aggregation ────────────────────────────────────────────

def aggregate(
    rows: Iterable[Any],
    predicate: Optional[Predicate] = None,
    fields: Sequence[str] = SNAPSHOT_FIELDS,
) -> Dict[str, int]:
    """
    Sum ``fields`` over the rows that satisfy ``predicate``.

    Missing and null values count as 0.
    """
    totals = {field: 0 for field in fields}
    for row in rows:
        if predicate is not None and not predicate(row):
            continue
        for field in fields:
            totals[field] += _value(row, field) or 0
    return totals


def merge_totals(*partials: Dict[str, int]) -> Dict[str, int]:
    """Combine aggregate() results computed over disjoint chunks."""
    merged: Dict[str, int] = {}
    for partial in partials:
        for field, value in partial.items():
            merged[field] = merged.get(field, 0) + (value or 0)
    return merged


def event_counters(
    events: Iterable[ActivityEvent],
    predicate: Optional[Predicate] = None,
) -> Dict[str, int]:
    """Dials, answered, DM conversations and SQLs for raw events."""
    totals = {field: 0 for field in EVENT_FIELDS}
    for event in events:
        if predicate is not None and not predicate(event):
            continue
        totals["dials"] += 1
        if event.is_answered:
            totals["answered"] += 1
        if event.is_dm_conversation:
            totals["dms_reached"] += 1
        if event.is_sql:
            totals["sqls"] += 1
    return totals


def rollup_events(events: Iterable[ActivityEvent]) -> List[DailySnapshot]:
    """
    Build the per (performer, client, date) snapshot rows implied by raw events.

    Groups appear in order of first occurrence. MQLs are not tracked per
    event and come out as 0.
    """
    groups: "OrderedDict[tuple, Dict[str, int]]" = OrderedDict()
    for event in events:
        key = (event.performer, event.client, event.occurred_at.date())
        counters = groups.setdefault(key, {field: 0 for field in EVENT_FIELDS})
        counters["dials"] += 1
        counters["answered"] += int(event.is_answered)
        counters["dms_reached"] += int(event.is_dm_conversation)
        counters["sqls"] += int(event.is_sql)

    return [
        DailySnapshot(performer=performer, client=client, snapshot_date=day, **counters)
        for (performer, client, day), counters in groups.items()
    ]


# ─── Predicates ─────────────────────────────────────────────

def in_date_range(date_range: DateRange) -> Predicate:
    def _pred(row) -> bool:
        day = _row_date(row)
        return day is not None and date_range.contains(day)
    return _pred


def for_client(client_id: Optional[str]) -> Predicate:
    """Rows for one client; ``None`` or "all" matches every row."""
    def _pred(row) -> bool:
        if client_id in (None, "", "all"):
            return True
        return _value(row, "client") == client_id
    return _pred


def for_performer(performer: str) -> Predicate:
    def _pred(row) -> bool:
        return _value(row, "performer") == performer
    return _pred


def on_weekdays(weekdays: Iterable[int]) -> Predicate:
    """Rows whose date falls on one of the ISO weekday numbers given."""
    allowed = frozenset(weekdays)

    def _pred(row) -> bool:
        day = _row_date(row)
        return day is not None and day.isoweekday() in allowed
    return _pred


def within_hours(hour_start: int, hour_end: int) -> Predicate:
    """Events whose time of day is within [hour_start:00, hour_end:00]; 24 means end of day."""
    start = time.max if hour_start == 24 else time(hour_start)
    end = time.max if hour_end == 24 else time(hour_end)

    def _pred(row) -> bool:
        ts = _value(row, "occurred_at")
        return ts is not None and start <= ts.time() <= end
    return _pred


def all_of(*predicates: Optional[Predicate]) -> Predicate:
    active = [p for p in predicates if p is not None]

    def _pred(row) -> bool:
        return all(p(row) for p in active)
    return _pred
