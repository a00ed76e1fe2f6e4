"""
SDR Pulse — Campaigns Router
==============================
Per-client campaign view: SQL pacing against target, meeting outcomes, the
next (or last) meeting, SQLs booked this campaign/week/last week, and the
client's funnel rates over the campaign window.

Endpoints:
  GET /api/campaigns/{client_id}/pacing  - Pacing + outcomes + next meeting + KPIs
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException

from models.record_models import DateRange
from scripts.analytics.campaign_pacer import pace_campaign
from scripts.analytics.kpis import build_kpis, campaign_week_activity, count_meetings
from scripts.analytics.meetings import meeting_outcomes, next_meeting
from scripts.lib.logger import setup_logger
from scripts.lib.supabase_client import fetch_client, fetch_meetings, fetch_snapshots

from dashboard.api.params import STORE_ERRORS, business_today, store_http_error

logger = setup_logger("campaigns_router")

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.get("/{client_id}/pacing")
async def campaign_pacing(client_id: str):
    """Campaign health for one client; ``pacing`` is null without a full campaign."""
    today = business_today()
    try:
        window = fetch_client(client_id)
        if window is None:
            raise HTTPException(status_code=404, detail=f"Client {client_id} not found")

        meetings = fetch_meetings(client_id=client_id)
        campaign_range = None
        kpis = None
        if window.start_date and window.end_date and window.start_date <= window.end_date:
            campaign_range = DateRange(date_from=window.start_date, date_to=window.end_date)
            kpis = build_kpis(fetch_snapshots(campaign_range, client_id))
    except STORE_ERRORS as e:
        logger.error("Campaign query failed for %s: %s", client_id, e)
        raise store_http_error(e)

    campaign_meetings = meetings
    pacing = None
    if campaign_range is not None:
        campaign_meetings = [m for m in meetings if campaign_range.contains(m.booking_date)]
        if window.is_defined:
            achieved = count_meetings(meetings, campaign_range, client_id)
            pacing = pace_campaign(window, achieved, today)

    return {
        "client_id": client_id,
        "client_name": window.client_name,
        "pacing": pacing,
        "kpis": kpis,
        "outcomes": meeting_outcomes(campaign_meetings),
        "next_meeting": next_meeting(campaign_meetings, today),
        "week_activity": campaign_week_activity(meetings, window, today),
    }
