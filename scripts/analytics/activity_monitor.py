"""
Activity monitor.

Per-SDR rows for the "live today" and "historical" views. Both modes count
from raw activity events through the same predicates the drill-down uses, so
every number in the table can be drilled into and reconciled.
"""
from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from models.metric_models import MonitorRow, MonitorView
from models.record_models import ActivityEvent
from scripts.analytics.drilldown import DrillMetric, METRIC_PREDICATES
from scripts.analytics.historical import HistoricalSlice, Window
from scripts.analytics.rates import rate

SORT_KEYS = ("performer", "client", "dials", "answered", "answer_rate", "dms_reached", "sqls")

_ROW_METRICS = {
    "dials": METRIC_PREDICATES[DrillMetric.DIALS],
    "answered": METRIC_PREDICATES[DrillMetric.ANSWERED],
    "dms_reached": METRIC_PREDICATES[DrillMetric.DM_CONVERSATIONS],
    "sqls": METRIC_PREDICATES[DrillMetric.SQLS],
}


def monitor_rows(
    events: Iterable[ActivityEvent],
    window: Window,
    now: Optional[datetime] = None,
    recent_minutes: int = 5,
) -> List[MonitorRow]:
    """Aggregate events inside ``window`` into one row per performer (first-seen order)."""
    rows: "OrderedDict[str, Dict]" = OrderedDict()
    for event in events:
        if not event.performer or not window.contains(event.occurred_at):
            continue
        row = rows.get(event.performer)
        if row is None:
            row = {
                "performer": event.performer,
                "client": event.client or "",
                "last_activity": event.occurred_at,
                **{metric: 0 for metric in _ROW_METRICS},
            }
            rows[event.performer] = row
        for metric, predicate in _ROW_METRICS.items():
            if predicate(event):
                row[metric] += 1
        if event.occurred_at > row["last_activity"]:
            row["last_activity"] = event.occurred_at

    recent_cutoff = None
    if now is not None:
        recent_cutoff = now - timedelta(minutes=recent_minutes)

    return [
        MonitorRow(
            answer_rate=rate(row["answered"], row["dials"]),
            is_recent=recent_cutoff is not None and row["last_activity"] > recent_cutoff,
            **row,
        )
        for row in rows.values()
    ]


def sort_rows(rows: List[MonitorRow], key: str = "dials", order: str = "desc") -> List[MonitorRow]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}; choose one of {', '.join(SORT_KEYS)}")
    descending = order.lower() == "desc"
    if key in ("performer", "client"):
        return sorted(rows, key=lambda r: getattr(r, key).lower(), reverse=descending)
    return sorted(rows, key=lambda r: getattr(r, key), reverse=descending)


def totals_for(rows: Iterable[MonitorRow]) -> Dict[str, int]:
    totals = {metric: 0 for metric in _ROW_METRICS}
    for row in rows:
        for metric in _ROW_METRICS:
            totals[metric] += getattr(row, metric)
    return totals


def build_monitor(
    events: Iterable[ActivityEvent],
    window: Window,
    now: Optional[datetime] = None,
    sort: str = "dials",
    order: str = "desc",
    recent_minutes: int = 5,
) -> MonitorView:
    """Complete monitor view: KPI totals plus sorted per-SDR rows."""
    rows = monitor_rows(events, window, now=now, recent_minutes=recent_minutes)
    if isinstance(window, HistoricalSlice):
        mode, dates = "historical", list(window.dates)
    else:
        mode, dates = "live", [window.start.date()]
    return MonitorView(
        mode=mode,
        dates=dates,
        start=window.start,
        end=window.end,
        totals=totals_for(rows),
        rows=sort_rows(rows, sort, order),
    )
