"""
Drill-down record selector.

Recovers the raw activity rows behind one aggregate cell (performer × metric
× window). ``count_for`` and ``select_records`` share a single predicate, so
the number of rows returned always equals the number shown in the cell.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterable, List

from models.metric_models import DrillDownResult
from models.record_models import ActivityEvent
from scripts.analytics.historical import Window


class DrillMetric(str, Enum):
    DIALS = "dials"
    ANSWERED = "answered"
    DM_CONVERSATIONS = "dm_conversations"
    SQLS = "sqls"


METRIC_PREDICATES: Dict[DrillMetric, Callable[[ActivityEvent], bool]] = {
    DrillMetric.DIALS: lambda event: True,
    DrillMetric.ANSWERED: lambda event: event.is_answered,
    DrillMetric.DM_CONVERSATIONS: lambda event: event.is_dm_conversation,
    DrillMetric.SQLS: lambda event: event.is_sql,
}


def cell_predicate(performer: str, metric, window: Window) -> Callable[[ActivityEvent], bool]:
    """The exact membership test for one aggregate cell."""
    matches_metric = METRIC_PREDICATES[DrillMetric(metric)]

    def _pred(event: ActivityEvent) -> bool:
        return (
            event.performer == performer
            and window.contains(event.occurred_at)
            and matches_metric(event)
        )
    return _pred


def count_for(events: Iterable[ActivityEvent], performer: str, metric, window: Window) -> int:
    predicate = cell_predicate(performer, metric, window)
    return sum(1 for event in events if predicate(event))


def select_records(
    events: Iterable[ActivityEvent],
    performer: str,
    metric,
    window: Window,
) -> List[ActivityEvent]:
    """Matching events, most recent first (ties broken by id, descending)."""
    predicate = cell_predicate(performer, metric, window)
    matched = [event for event in events if predicate(event)]
    matched.sort(key=lambda event: (event.occurred_at, event.id), reverse=True)
    return matched


def drill_down(
    events: Iterable[ActivityEvent],
    performer: str,
    metric,
    window: Window,
) -> DrillDownResult:
    records = select_records(events, performer, metric, window)
    return DrillDownResult(
        performer=performer,
        metric=DrillMetric(metric).value,
        count=len(records),
        records=records,
    )
