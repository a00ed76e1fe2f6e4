"""
SDR Pulse — Webhooks Router
=============================
Receives database change notifications (Supabase database webhooks) and fans
them out to dashboard WebSocket clients, which then re-fetch and recompute.
New rows in sql_meetings are also announced in Slack ("New SQL Booked!")
after the response is sent; a Slack failure never affects the broadcast.

Endpoints:
  POST /api/webhooks/db-change  - Row inserted/updated/deleted in a watched table
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel, Field, ValidationError

from models.record_models import MeetingRecord
from scripts.analytics.sql_notifications import SqlNotifier
from scripts.lib.config import get_settings
from scripts.lib.errors import NotificationError
from scripts.lib.logger import setup_logger
from scripts.lib.utils import post_to_slack

from dashboard.api.websocket import ws_manager

logger = setup_logger("webhooks_router")

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

WATCHED_TABLES = {"activity_log", "daily_snapshots", "sql_meetings", "clients", "team_members"}


class DbChangeEvent(BaseModel):
    """Supabase database webhook payload (the fields we use)."""
    type: str = Field(..., description="INSERT, UPDATE or DELETE")
    table: str
    schema_name: str = Field("public", alias="schema")
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None


# ─── Slack: new SQL booked ────────────────────────────────────

def _post_sql_message(payload: Dict[str, str]) -> None:
    post_to_slack(get_settings().slack_webhook_url, payload)


sql_notifier = SqlNotifier(send=_post_sql_message)


def notify_sql_booked(record: Dict[str, Any]) -> None:
    """Background task: announce one inserted sql_meetings row."""
    settings = get_settings()
    if not settings.sql_notifications or not settings.slack_webhook_url:
        logger.debug("SQL Slack notifications off or no webhook configured")
        return

    try:
        meeting = MeetingRecord.from_row(record)
    except ValidationError as e:
        logger.warning("Unreadable sql_meetings insert, not announced: %s", e)
        return

    try:
        sql_notifier.notify(meeting)
    except NotificationError as e:
        logger.error("SQL notification failed for meeting %s: %s", meeting.id, e)


# ─── Routes ───────────────────────────────────────────────────

@router.post("/db-change")
async def db_change(event: DbChangeEvent, background_tasks: BackgroundTasks):
    """Broadcast ``data_changed`` so open dashboards recompute."""
    if event.table not in WATCHED_TABLES:
        raise HTTPException(status_code=422, detail=f"Table {event.table} is not watched")

    change = event.type.upper()
    row = event.record or event.old_record or {}
    await ws_manager.broadcast({
        "event": "data_changed",
        "data": {
            "table": event.table,
            "type": change,
            "client_id": row.get("client_id"),
        },
    })
    logger.info(
        "%s on %s broadcast to %d clients",
        change, event.table, ws_manager.connection_count,
    )

    sql_booked = change == "INSERT" and event.table == "sql_meetings" and bool(event.record)
    if sql_booked:
        background_tasks.add_task(notify_sql_booked, event.record)

    return {
        "status": "ok",
        "clients": ws_manager.connection_count,
        "sql_notification": sql_booked,
    }
