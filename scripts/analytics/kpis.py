"""
SDR Pulse — KPI Bundle
========================

Period KPIs, "vs previous period" deltas, week-over-week comparison, daily
chart series, and the single ``recompute`` entry point that a change
notification triggers.

Functions:
  build_kpis()              - Counter totals and derived rates for snapshots
  compare_periods()         - Current vs previous KPIs with per-counter deltas
  week_over_week()          - This week vs last week per metric
  campaign_week_activity()  - SQLs booked in the campaign, this week, last week
  daily_series()            - Per-date totals for charts
  recompute()               - Full dashboard bundle for one scope
"""
from __future__ import annotations

from collections import OrderedDict
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from models.metric_models import (
    DailyPoint,
    DashboardBundle,
    KpiComparison,
    KpiTotals,
    MetricChange,
    WeekActivity,
)
from models.record_models import (
    CampaignWindow,
    DailySnapshot,
    DateRange,
    MeetingRecord,
    PeriodFilter,
)
from scripts.analytics.aggregator import (
    SNAPSHOT_FIELDS,
    aggregate,
    all_of,
    for_client,
    in_date_range,
)
from scripts.analytics.campaign_pacer import pace_campaign
from scripts.analytics.funnel import funnel_from_totals
from scripts.analytics.leaderboard import build_leaderboard
from scripts.analytics.periods import previous_period, week_bounds
from scripts.analytics.rates import DELTA_OUTLIER_CAP, delta, rate
from scripts.lib.logger import setup_logger

logger = setup_logger("kpis")

WEEKLY_METRICS = (
    ("Dials", "dials"),
    ("Answered", "answered"),
    ("DMs", "dms_reached"),
    ("MQLs", "mqls"),
    ("SQLs", "sqls"),
)


def kpis_from_totals(totals: dict) -> KpiTotals:
    dials = totals.get("dials", 0)
    answered = totals.get("answered", 0)
    dms = totals.get("dms_reached", 0)
    mqls = totals.get("mqls", 0)
    sqls = totals.get("sqls", 0)
    return KpiTotals(
        dials=dials,
        answered=answered,
        dms_reached=dms,
        mqls=mqls,
        sqls=sqls,
        answer_rate=rate(answered, dials),
        sql_conversion_rate=rate(sqls, dms),
        mqls_on_dms_rate=rate(mqls, dms),
        mqls_on_dials_rate=rate(mqls, dials),
        sqls_on_dms_rate=rate(sqls, dms),
        sqls_on_dials_rate=rate(sqls, dials),
    )


def build_kpis(snapshots: Iterable[DailySnapshot], predicate=None) -> KpiTotals:
    """Totals and rates over the snapshots matching ``predicate``."""
    return kpis_from_totals(aggregate(snapshots, predicate, SNAPSHOT_FIELDS))


def compare_periods(
    current: KpiTotals,
    previous: Optional[KpiTotals],
    previous_range: Optional[DateRange] = None,
    cap: float = DELTA_OUTLIER_CAP,
) -> KpiComparison:
    """Deltas for every counter and rate; all None when there is no previous period."""
    keys = list(KpiTotals.model_fields)
    if previous is None:
        deltas = {key: None for key in keys}
    else:
        deltas = {
            key: delta(getattr(current, key), getattr(previous, key), cap=cap)
            for key in keys
        }
    return KpiComparison(
        current=current,
        previous=previous,
        previous_range=previous_range,
        deltas=deltas,
    )


def week_over_week(
    snapshots: Sequence[DailySnapshot],
    today: date,
    cap: float = DELTA_OUTLIER_CAP,
) -> List[MetricChange]:
    """Mon-Sun week containing ``today`` against the week before it."""
    this_start, this_end = week_bounds(today)
    last_start, last_end = this_start - timedelta(days=7), this_end - timedelta(days=7)

    this_week = aggregate(
        snapshots, in_date_range(DateRange(date_from=this_start, date_to=this_end))
    )
    last_week = aggregate(
        snapshots, in_date_range(DateRange(date_from=last_start, date_to=last_end))
    )
    return [
        MetricChange(
            metric=label,
            this_week=this_week[field],
            last_week=last_week[field],
            change=delta(this_week[field], last_week[field], cap=cap),
        )
        for label, field in WEEKLY_METRICS
    ]


def count_meetings(meetings: Iterable[MeetingRecord], date_range: DateRange, client_id=None) -> int:
    predicate = all_of(in_date_range(date_range), for_client(client_id))
    return sum(1 for meeting in meetings if predicate(meeting))


def campaign_week_activity(
    meetings: Sequence[MeetingRecord],
    window: CampaignWindow,
    today: date,
) -> WeekActivity:
    """SQL bookings across the whole campaign, this week and last week."""
    this_start, this_end = week_bounds(today)
    last_start, last_end = this_start - timedelta(days=7), this_end - timedelta(days=7)
    this_campaign = 0
    if window.start_date and window.end_date and window.start_date <= window.end_date:
        this_campaign = count_meetings(
            meetings, DateRange(date_from=window.start_date, date_to=window.end_date),
            window.client_id,
        )
    return WeekActivity(
        this_campaign=this_campaign,
        this_week=count_meetings(
            meetings, DateRange(date_from=this_start, date_to=this_end), window.client_id
        ),
        last_week=count_meetings(
            meetings, DateRange(date_from=last_start, date_to=last_end), window.client_id
        ),
    )


def daily_series(snapshots: Iterable[DailySnapshot]) -> List[DailyPoint]:
    """Per-date totals, ascending by date."""
    days: "OrderedDict[date, dict]" = OrderedDict()
    for snapshot in snapshots:
        point = days.setdefault(
            snapshot.snapshot_date,
            {"dials": 0, "answered": 0, "dms_reached": 0, "sqls": 0},
        )
        for field in point:
            point[field] += getattr(snapshot, field)
    return [
        DailyPoint(snapshot_date=day, **point)
        for day, point in sorted(days.items())
    ]


def recompute(
    period: PeriodFilter,
    snapshots: Sequence[DailySnapshot],
    previous_snapshots: Optional[Sequence[DailySnapshot]] = None,
    campaign: Optional[CampaignWindow] = None,
    campaign_meetings: Sequence[MeetingRecord] = (),
    today: Optional[date] = None,
    client_id: Optional[str] = None,
    delta_cap: float = DELTA_OUTLIER_CAP,
) -> DashboardBundle:
    """
    Re-derive every dashboard figure for one scope from a fresh input set.

    ``snapshots`` should cover ``period``; ``previous_snapshots`` should cover
    the previous period for ``period.tag`` (ignored when the tag has none).
    Both are re-filtered here by date range and client.
    """
    current_range = period.range
    scope = all_of(in_date_range(current_range), for_client(client_id))
    scoped = [s for s in snapshots if scope(s)]

    prev_range = previous_period(period.tag, period.date_from, period.date_to)
    previous_scoped = None
    previous_kpis = None
    if prev_range is not None and previous_snapshots is not None:
        prev_scope = all_of(in_date_range(prev_range), for_client(client_id))
        previous_scoped = [s for s in previous_snapshots if prev_scope(s)]
        previous_kpis = build_kpis(previous_scoped)

    totals = aggregate(scoped)
    current_kpis = kpis_from_totals(totals)

    pacing = None
    if campaign is not None and campaign.is_defined:
        achieved = count_meetings(
            campaign_meetings,
            DateRange(date_from=campaign.start_date, date_to=campaign.end_date),
            campaign.client_id,
        )
        pacing = pace_campaign(campaign, achieved, today or period.date_to)

    logger.debug(
        "Recomputed %s..%s client=%s: %d snapshots, previous=%s",
        period.date_from, period.date_to, client_id or "all", len(scoped),
        "none" if previous_scoped is None else len(previous_scoped),
    )

    return DashboardBundle(
        period=current_range,
        client_id=client_id,
        kpis=compare_periods(current_kpis, previous_kpis, prev_range, cap=delta_cap),
        funnel=funnel_from_totals(totals),
        leaderboard=build_leaderboard(scoped, previous_scoped, delta_cap=delta_cap),
        pacing=pacing,
        daily=daily_series(scoped),
    )
