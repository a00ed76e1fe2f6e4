"""
SDR Pulse — Metrics Router
============================
Period KPIs, funnel and leaderboard for the main dashboard. Every endpoint
fetches the period's snapshots (plus the previous period's, where the quick
filter has one) and runs them through ``recompute``.

Endpoints:
  GET /api/metrics/kpis         - KPI totals, rates and deltas vs previous period
  GET /api/metrics/funnel       - Dials -> Answered -> DM Conversations -> SQLs
  GET /api/metrics/leaderboard  - Ranked SDRs with trend vs previous period
  GET /api/metrics/weekly       - This week vs last week per metric
  GET /api/metrics/dashboard    - Full bundle (kpis, funnel, leaderboard, pacing, daily)
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from models.record_models import DateRange, PeriodTag
from scripts.analytics.kpis import recompute, week_over_week
from scripts.analytics.leaderboard import RANKABLE, rank_by
from scripts.analytics.periods import previous_period, week_bounds
from scripts.lib.config import get_settings
from scripts.lib.logger import setup_logger
from scripts.lib.supabase_client import fetch_client, fetch_meetings, fetch_snapshots

from dashboard.api.params import STORE_ERRORS, business_today, resolve_period, store_http_error

logger = setup_logger("metrics_router")

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


def _bundle(
    tag: PeriodTag,
    date_from: Optional[date],
    date_to: Optional[date],
    client_id: Optional[str],
    with_campaign: bool = False,
):
    today = business_today()
    period = resolve_period(tag, date_from, date_to, today)
    snapshots = fetch_snapshots(period.range, client_id)

    previous_snapshots = None
    prev_range = previous_period(period.tag, period.date_from, period.date_to)
    if prev_range is not None:
        previous_snapshots = fetch_snapshots(prev_range, client_id)

    campaign = None
    campaign_meetings = []
    if with_campaign and client_id and client_id != "all":
        campaign = fetch_client(client_id)
        if campaign is not None and campaign.is_defined:
            campaign_meetings = fetch_meetings(
                DateRange(date_from=campaign.start_date, date_to=campaign.end_date),
                client_id,
            )

    return recompute(
        period,
        snapshots,
        previous_snapshots=previous_snapshots,
        campaign=campaign,
        campaign_meetings=campaign_meetings,
        today=today,
        client_id=client_id,
        delta_cap=get_settings().delta_outlier_cap,
    )


@router.get("/kpis")
async def kpis(
    tag: PeriodTag = Query(PeriodTag.LAST_7_DAYS),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    client_id: Optional[str] = Query(None),
):
    """KPI totals and rates with deltas against the previous period."""
    try:
        bundle = _bundle(tag, date_from, date_to, client_id)
    except STORE_ERRORS as e:
        logger.error("KPI query failed: %s", e)
        raise store_http_error(e)
    return {"period": bundle.period, "client_id": client_id, **bundle.kpis.model_dump()}


@router.get("/funnel")
async def funnel(
    tag: PeriodTag = Query(PeriodTag.LAST_7_DAYS),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    client_id: Optional[str] = Query(None),
):
    """Conversion funnel for the period."""
    try:
        bundle = _bundle(tag, date_from, date_to, client_id)
    except STORE_ERRORS as e:
        logger.error("Funnel query failed: %s", e)
        raise store_http_error(e)
    return {"period": bundle.period, "client_id": client_id, "stages": bundle.funnel}


@router.get("/leaderboard")
async def leaderboard(
    tag: PeriodTag = Query(PeriodTag.LAST_7_DAYS),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    client_id: Optional[str] = Query(None),
    sort: str = Query("sqls"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """SDR leaderboard; default ranking is SQLs descending."""
    if sort not in RANKABLE:
        raise HTTPException(
            status_code=422, detail=f"sort must be one of: {', '.join(RANKABLE)}",
        )
    try:
        bundle = _bundle(tag, date_from, date_to, client_id)
    except STORE_ERRORS as e:
        logger.error("Leaderboard query failed: %s", e)
        raise store_http_error(e)

    entries = bundle.leaderboard
    if sort != "sqls" or order != "desc":
        entries = rank_by(entries, sort, descending=order == "desc")
    return {
        "period": bundle.period,
        "client_id": client_id,
        "entries": entries,
        "count": len(entries),
    }


@router.get("/weekly")
async def weekly(client_id: Optional[str] = Query(None)):
    """This Mon-Sun week against the previous one."""
    today = business_today()
    this_start, this_end = week_bounds(today)
    span = DateRange(date_from=this_start - timedelta(days=7), date_to=this_end)
    try:
        snapshots = fetch_snapshots(span, client_id)
    except STORE_ERRORS as e:
        logger.error("Weekly comparison query failed: %s", e)
        raise store_http_error(e)
    changes = week_over_week(snapshots, today, cap=get_settings().delta_outlier_cap)
    return {"week_start": this_start, "week_end": this_end, "metrics": changes}


@router.get("/dashboard")
async def dashboard(
    tag: PeriodTag = Query(PeriodTag.LAST_7_DAYS),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    client_id: Optional[str] = Query(None),
):
    """Everything the dashboard renders for one scope, in one recompute."""
    try:
        bundle = _bundle(tag, date_from, date_to, client_id, with_campaign=True)
    except STORE_ERRORS as e:
        logger.error("Dashboard bundle failed: %s", e)
        raise store_http_error(e)
    return bundle
