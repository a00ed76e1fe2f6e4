"""
SDR Pulse — Meeting Commands
==============================

The only write path in the analytics layer. Changing a meeting's status to
``reschedule`` also books a fresh ``pending`` meeting for the same contact.
The store has no transaction spanning both writes, so the command
compensates: if the follow-up insert fails, the status change is reverted.
A failed revert is reported as ``inconsistent`` rather than hidden.

Callers must serialise status changes per meeting id; the command does no
optimistic locking of its own.

Functions:
  change_meeting_status()  - Status update (+ reschedule follow-up booking)
  update_meeting_notes()   - Client notes update
  meeting_outcomes()       - Counts per status
  next_meeting()           - Soonest upcoming meeting, else most recent one
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from models.metric_models import MeetingOutcomes, NextMeeting, StatusChangeResult
from models.record_models import MeetingRecord, MeetingStatus
from scripts.lib.errors import StoreError
from scripts.lib.logger import setup_logger

logger = setup_logger("meetings")


class MeetingStore(Protocol):
    """Write access to the sql_meetings table."""

    def update_meeting(self, meeting_id: str, fields: dict) -> None:
        """Apply column updates; raise StoreError on failure."""
        ...

    def insert_meeting(self, meeting: MeetingRecord) -> MeetingRecord:
        """Insert and return the stored record (with its id); raise StoreError on failure."""
        ...


def reschedule_follow_up(meeting: MeetingRecord, today: date) -> MeetingRecord:
    """The pending booking spawned when ``meeting`` is marked for reschedule."""
    return MeetingRecord(
        booking_date=today,
        meeting_date=None,
        client=meeting.client,
        performer=meeting.performer,
        contact=meeting.contact,
        company=meeting.company,
        status=MeetingStatus.PENDING,
        notes="",
    )


def change_meeting_status(
    store: MeetingStore,
    meeting: MeetingRecord,
    new_status,
    today: date,
    audit: Optional[dict] = None,
) -> StatusChangeResult:
    """
    Set ``meeting``'s status, spawning a follow-up booking on reschedule.

    Args:
        store: Meeting persistence.
        meeting: The record as currently displayed.
        new_status: Target MeetingStatus (or its string value).
        today: Booking date for a spawned follow-up.
        audit: Extra columns written with the status (edited_by, edited_at...).

    Returns:
        StatusChangeResult. On failure ``meeting`` is the original record.
    """
    new_status = MeetingStatus(new_status)
    old_status = meeting.status

    if new_status == old_status:
        return StatusChangeResult(ok=True, meeting=meeting)

    fields = {"meeting_status": new_status.value, **(audit or {})}
    try:
        store.update_meeting(meeting.id, fields)
    except StoreError as e:
        logger.error("Status update failed for meeting %s: %s", meeting.id, e)
        return StatusChangeResult(ok=False, meeting=meeting, error=str(e))

    updated = meeting.model_copy(update={"status": new_status})
    if new_status != MeetingStatus.RESCHEDULE:
        logger.info("Meeting %s: %s -> %s", meeting.id, old_status.value, new_status.value)
        return StatusChangeResult(ok=True, meeting=updated)

    try:
        spawned = store.insert_meeting(reschedule_follow_up(meeting, today))
    except StoreError as insert_error:
        logger.warning(
            "Follow-up booking failed for meeting %s, reverting status: %s",
            meeting.id, insert_error,
        )
        try:
            store.update_meeting(meeting.id, {"meeting_status": old_status.value})
        except StoreError as revert_error:
            logger.error(
                "Meeting %s left as reschedule without follow-up booking; "
                "revert failed: %s", meeting.id, revert_error,
            )
            return StatusChangeResult(
                ok=False,
                meeting=updated,
                error=str(insert_error),
                inconsistent=True,
            )
        return StatusChangeResult(ok=False, meeting=meeting, error=str(insert_error))

    logger.info(
        "Meeting %s rescheduled; follow-up booking %s created", meeting.id, spawned.id,
    )
    return StatusChangeResult(ok=True, meeting=updated, spawned=spawned)


def update_meeting_notes(
    store: MeetingStore,
    meeting: MeetingRecord,
    notes: str,
    audit: Optional[dict] = None,
) -> StatusChangeResult:
    """Save client notes; the original record comes back on failure."""
    notes = notes or ""
    if notes == meeting.notes:
        return StatusChangeResult(ok=True, meeting=meeting)
    try:
        store.update_meeting(meeting.id, {"client_notes": notes, **(audit or {})})
    except StoreError as e:
        logger.error("Notes update failed for meeting %s: %s", meeting.id, e)
        return StatusChangeResult(ok=False, meeting=meeting, error=str(e))
    return StatusChangeResult(ok=True, meeting=meeting.model_copy(update={"notes": notes}))


def meeting_outcomes(meetings: Iterable[MeetingRecord]) -> MeetingOutcomes:
    counts = {status.value: 0 for status in MeetingStatus}
    for meeting in meetings:
        counts[meeting.status.value] += 1
    return MeetingOutcomes(**counts)


def next_meeting(meetings: Iterable[MeetingRecord], today: date) -> Optional[NextMeeting]:
    """Soonest meeting on or after today ("Next Meeting"), else the latest past one."""
    dated = [m for m in meetings if m.meeting_date is not None]
    upcoming = sorted(
        (m for m in dated if m.meeting_date >= today), key=lambda m: m.meeting_date
    )
    if upcoming:
        chosen, label = upcoming[0], "Next Meeting"
    else:
        past = sorted(dated, key=lambda m: m.meeting_date, reverse=True)
        if not past:
            return None
        chosen, label = past[0], "Last Meeting"
    return NextMeeting(
        label=label,
        meeting_date=chosen.meeting_date,
        company=chosen.company,
        contact=chosen.contact,
    )
