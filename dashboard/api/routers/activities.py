"""
SDR Pulse — Activities Router
===============================
Activity monitor and drill-down over raw activity_log events.

Both endpoints resolve the same window from the same parameters, so a cell
in the monitor table and its drill-down always agree.

Endpoints:
  GET /api/activities/monitor    - Per-SDR counters (live today or historical slice)
  GET /api/activities/drilldown  - Events behind one SDR x metric cell
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from models.record_models import DateMode
from scripts.analytics.activity_monitor import SORT_KEYS, build_monitor
from scripts.analytics.clock import local_now
from scripts.analytics.drilldown import DrillMetric, drill_down
from scripts.lib.config import get_settings
from scripts.lib.logger import setup_logger
from scripts.lib.supabase_client import fetch_activity

from dashboard.api.params import STORE_ERRORS, business_today, monitor_window, store_http_error

logger = setup_logger("activities_router")

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("/monitor")
async def activity_monitor(
    mode: str = Query("live", description="live or historical"),
    date_mode: DateMode = Query(DateMode.DAY),
    anchor_date: Optional[date] = Query(None, description="Defaults to today"),
    weekdays: Optional[str] = Query(None, description="Comma-separated 1 (Mon) to 5 (Fri)"),
    hour_start: int = Query(0, ge=0, le=24),
    hour_end: int = Query(24, ge=0, le=24),
    client_id: Optional[str] = Query(None),
    sort: str = Query("dials"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """Per-SDR dials, answered, DM conversations and SQLs for the window."""
    if sort not in SORT_KEYS:
        raise HTTPException(
            status_code=422, detail=f"sort must be one of: {', '.join(SORT_KEYS)}",
        )
    settings = get_settings()
    window = monitor_window(
        mode, business_today(), date_mode, anchor_date, weekdays, hour_start, hour_end,
    )
    try:
        events = fetch_activity(window.start, window.end, client_id=client_id)
    except STORE_ERRORS as e:
        logger.error("Activity monitor query failed: %s", e)
        raise store_http_error(e)

    now = local_now(settings.tz) if mode == "live" else None
    return build_monitor(
        events,
        window,
        now=now,
        sort=sort,
        order=order,
        recent_minutes=settings.recent_activity_minutes,
    )


@router.get("/drilldown")
async def activity_drilldown(
    performer: str = Query(..., min_length=1),
    metric: DrillMetric = Query(...),
    mode: str = Query("live"),
    date_mode: DateMode = Query(DateMode.DAY),
    anchor_date: Optional[date] = Query(None),
    weekdays: Optional[str] = Query(None),
    hour_start: int = Query(0, ge=0, le=24),
    hour_end: int = Query(24, ge=0, le=24),
    client_id: Optional[str] = Query(None),
):
    """Events behind one monitor cell, most recent first."""
    window = monitor_window(
        mode, business_today(), date_mode, anchor_date, weekdays, hour_start, hour_end,
    )
    try:
        events = fetch_activity(
            window.start, window.end, performer=performer, client_id=client_id,
        )
    except STORE_ERRORS as e:
        logger.error("Drill-down query failed for %s/%s: %s", performer, metric.value, e)
        raise store_http_error(e)
    return drill_down(events, performer, metric, window)
