"""
SDR leaderboard.

Groups snapshot rows by performer display name, sums their counters, derives
answer/conversion rates and ranks by SQLs. Two people sharing a display name
end up in one row; grouping is by name only.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from models.metric_models import LeaderboardEntry
from models.record_models import DailySnapshot
from scripts.analytics.rates import DELTA_OUTLIER_CAP, delta, rate

COUNTER_FIELDS = ("dials", "answered", "dms_reached", "mqls", "sqls")
RANKABLE = COUNTER_FIELDS + ("answer_rate", "conversion_rate")


def initials_for(name: str) -> str:
    """'Jane van Dyke' -> 'JV' (first letter of the first two words)."""
    parts = [p for p in (name or "").split() if p]
    return "".join(p[0] for p in parts).upper()[:2]


def group_by_performer(snapshots: Iterable[DailySnapshot]) -> "OrderedDict[str, Dict[str, int]]":
    """Per-performer counter sums, in order of first occurrence."""
    grouped: "OrderedDict[str, Dict[str, int]]" = OrderedDict()
    for snapshot in snapshots:
        totals = grouped.setdefault(
            snapshot.performer, {field: 0 for field in COUNTER_FIELDS}
        )
        for field in COUNTER_FIELDS:
            totals[field] += getattr(snapshot, field) or 0
    return grouped


def build_leaderboard(
    snapshots: Iterable[DailySnapshot],
    previous: Optional[Iterable[DailySnapshot]] = None,
    delta_cap: float = DELTA_OUTLIER_CAP,
) -> List[LeaderboardEntry]:
    """
    Rank performers by SQLs, descending.

    Ties keep the order in which performers first appeared. When
    ``previous`` snapshots are given, each entry's trend is the SQL delta
    against that period; otherwise trend is None.
    """
    grouped = group_by_performer(snapshots)
    previous_sqls = None
    if previous is not None:
        previous_sqls = {
            name: totals["sqls"] for name, totals in group_by_performer(previous).items()
        }

    # sorted() is stable, so equal SQL counts keep first-occurrence order
    ordered = sorted(grouped.items(), key=lambda item: item[1]["sqls"], reverse=True)

    entries = []
    for index, (name, totals) in enumerate(ordered, start=1):
        trend = None
        if previous_sqls is not None:
            trend = delta(totals["sqls"], previous_sqls.get(name), cap=delta_cap)
        entries.append(LeaderboardEntry(
            rank=index,
            performer=name,
            initials=initials_for(name),
            answer_rate=rate(totals["answered"], totals["dials"]),
            conversion_rate=rate(totals["sqls"], totals["dials"]),
            trend=trend,
            **totals,
        ))
    return entries


def rank_by(entries: List[LeaderboardEntry], metric: str, descending: bool = True) -> List[LeaderboardEntry]:
    """Re-rank an existing leaderboard by another metric (stable)."""
    if metric not in RANKABLE:
        raise ValueError(f"Cannot rank by {metric!r}; choose one of {', '.join(RANKABLE)}")
    ordered = sorted(entries, key=lambda e: getattr(e, metric), reverse=descending)
    return [
        entry.model_copy(update={"rank": index})
        for index, entry in enumerate(ordered, start=1)
    ]
