"""
SDR Pulse — Meetings Router
=============================
Write endpoints for SQL meetings. Marking a meeting for reschedule books a
pending follow-up for the same contact; a failed follow-up rolls the status
back.

Endpoints:
  PATCH /api/meetings/{meeting_id}/status  - Change status (held/pending/no_show/reschedule)
  PATCH /api/meetings/{meeting_id}/notes   - Update client notes
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from models.record_models import MeetingRecord, MeetingStatus
from scripts.analytics.meetings import change_meeting_status, update_meeting_notes
from scripts.lib.logger import setup_logger
from scripts.lib.supabase_client import SupabaseMeetingStore, fetch_meeting

from dashboard.api.params import STORE_ERRORS, business_today, store_http_error
from dashboard.api.websocket import ws_manager

logger = setup_logger("meetings_router")

router = APIRouter(prefix="/api/meetings", tags=["meetings"])


# ─── Request Models ───────────────────────────────────────────

class StatusChangeRequest(BaseModel):
    status: MeetingStatus
    edited_by: Optional[str] = None


class NotesRequest(BaseModel):
    notes: str = Field("", max_length=10000)
    edited_by: Optional[str] = None


def _audit(edited_by: Optional[str]) -> dict:
    return {
        "edited_in_dashboard": True,
        "last_edited_by": edited_by,
        "last_edited_at": datetime.now(timezone.utc).isoformat(),
    }


def _load(meeting_id: str) -> MeetingRecord:
    try:
        meeting = fetch_meeting(meeting_id)
    except STORE_ERRORS as e:
        logger.error("Meeting lookup failed for %s: %s", meeting_id, e)
        raise store_http_error(e)
    if meeting is None:
        raise HTTPException(status_code=404, detail=f"Meeting {meeting_id} not found")
    return meeting


async def _respond(result, table_event: str):
    if not result.ok:
        # 409 for an uncompensated partial write, 502 for a clean failure
        status_code = 409 if result.inconsistent else 502
        return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))
    await ws_manager.broadcast({
        "event": "data_changed",
        "data": {
            "table": "sql_meetings",
            "type": table_event,
            "meeting_id": result.meeting.id,
            "client_id": result.meeting.client,
        },
    })
    return result


@router.patch("/{meeting_id}/status")
async def set_meeting_status(meeting_id: str, req: StatusChangeRequest):
    """Change a meeting's status; reschedule also books a follow-up."""
    meeting = _load(meeting_id)
    result = change_meeting_status(
        SupabaseMeetingStore(),
        meeting,
        req.status,
        business_today(),
        audit=_audit(req.edited_by),
    )
    return await _respond(result, "status_changed")


@router.patch("/{meeting_id}/notes")
async def set_meeting_notes(meeting_id: str, req: NotesRequest):
    """Replace a meeting's client notes."""
    meeting = _load(meeting_id)
    result = update_meeting_notes(
        SupabaseMeetingStore(), meeting, req.notes, audit=_audit(req.edited_by),
    )
    return await _respond(result, "notes_changed")
