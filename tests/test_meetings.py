"""Tests for meeting status/notes commands and meeting summaries."""

from datetime import date

import pytest

from models.record_models import MeetingRecord, MeetingStatus
from scripts.analytics.meetings import (
    change_meeting_status,
    meeting_outcomes,
    next_meeting,
    update_meeting_notes,
)
from scripts.lib.errors import DataWriteError

TODAY = date(2025, 10, 15)


class FakeMeetingStore:
    """In-memory sql_meetings table with switchable failures."""

    def __init__(self, meetings, fail_update=False, fail_insert=False, fail_revert=False):
        self.rows = {m.id: m for m in meetings}
        self.fail_update = fail_update
        self.fail_insert = fail_insert
        self.fail_revert = fail_revert
        self.updates = []
        self._next_id = 100

    def update_meeting(self, meeting_id, fields):
        is_revert = bool(self.updates) and "edited_in_dashboard" not in fields
        if self.fail_update or (is_revert and self.fail_revert):
            raise DataWriteError("Update failed", table="sql_meetings", row_id=meeting_id)
        self.updates.append((meeting_id, fields))
        row = self.rows[meeting_id]
        changes = {}
        if "meeting_status" in fields:
            changes["status"] = MeetingStatus(fields["meeting_status"])
        if "client_notes" in fields:
            changes["notes"] = fields["client_notes"]
        self.rows[meeting_id] = row.model_copy(update=changes)

    def insert_meeting(self, meeting):
        if self.fail_insert:
            raise DataWriteError("Insert failed", table="sql_meetings")
        self._next_id += 1
        stored = meeting.model_copy(update={"id": str(self._next_id)})
        self.rows[stored.id] = stored
        return stored


def _meeting(**overrides):
    fields = dict(
        id="42", booking_date=date(2025, 10, 1), meeting_date=date(2025, 10, 10),
        client="acme", performer="Jo Smith", contact="Pat Doe", company="Initech",
        status=MeetingStatus.PENDING, notes="Keen on Q4",
    )
    fields.update(overrides)
    return MeetingRecord(**fields)


AUDIT = {"edited_in_dashboard": True, "last_edited_by": "ops@example.com"}


class TestChangeMeetingStatus:
    def test_simple_status_change(self):
        store = FakeMeetingStore([_meeting()])
        result = change_meeting_status(store, _meeting(), "held", TODAY, audit=AUDIT)
        assert result.ok
        assert result.meeting.status == MeetingStatus.HELD
        assert result.spawned is None
        assert store.rows["42"].status == MeetingStatus.HELD
        assert store.updates[0][1]["last_edited_by"] == "ops@example.com"
        assert len(store.rows) == 1

    def test_reschedule_spawns_exactly_one_pending_meeting(self):
        store = FakeMeetingStore([_meeting()])
        result = change_meeting_status(store, _meeting(), MeetingStatus.RESCHEDULE, TODAY, audit=AUDIT)
        assert result.ok
        assert store.rows["42"].status == MeetingStatus.RESCHEDULE

        spawned = [m for m in store.rows.values() if m.id != "42"]
        assert len(spawned) == 1
        new = spawned[0]
        assert result.spawned == new
        assert new.status == MeetingStatus.PENDING
        assert (new.client, new.contact, new.company, new.performer) == (
            "acme", "Pat Doe", "Initech", "Jo Smith",
        )
        assert new.booking_date == TODAY
        assert new.meeting_date is None
        assert new.notes == ""

    def test_same_status_is_a_no_op(self):
        store = FakeMeetingStore([_meeting(status=MeetingStatus.RESCHEDULE)])
        result = change_meeting_status(
            store, _meeting(status=MeetingStatus.RESCHEDULE), "reschedule", TODAY,
        )
        assert result.ok
        assert store.updates == []
        assert len(store.rows) == 1

    def test_update_failure_changes_nothing(self):
        store = FakeMeetingStore([_meeting()], fail_update=True)
        result = change_meeting_status(store, _meeting(), "reschedule", TODAY, audit=AUDIT)
        assert not result.ok
        assert "Update failed" in result.error
        assert result.meeting.status == MeetingStatus.PENDING
        assert store.rows["42"].status == MeetingStatus.PENDING
        assert len(store.rows) == 1

    def test_insert_failure_restores_previous_status(self):
        store = FakeMeetingStore([_meeting()], fail_insert=True)
        result = change_meeting_status(store, _meeting(), "reschedule", TODAY, audit=AUDIT)
        assert not result.ok
        assert not result.inconsistent
        assert result.meeting.status == MeetingStatus.PENDING
        assert store.rows["42"].status == MeetingStatus.PENDING
        assert len(store.rows) == 1

    def test_failed_restore_is_flagged_inconsistent(self):
        store = FakeMeetingStore([_meeting()], fail_insert=True, fail_revert=True)
        result = change_meeting_status(store, _meeting(), "reschedule", TODAY, audit=AUDIT)
        assert not result.ok
        assert result.inconsistent
        assert result.meeting.status == MeetingStatus.RESCHEDULE
        assert store.rows["42"].status == MeetingStatus.RESCHEDULE

    def test_invalid_status(self):
        with pytest.raises(ValueError):
            change_meeting_status(FakeMeetingStore([_meeting()]), _meeting(), "cancelled", TODAY)


class TestUpdateMeetingNotes:
    def test_updates_notes(self):
        store = FakeMeetingStore([_meeting()])
        result = update_meeting_notes(store, _meeting(), "Moved to Friday", audit=AUDIT)
        assert result.ok
        assert result.meeting.notes == "Moved to Friday"
        assert store.rows["42"].notes == "Moved to Friday"

    def test_failure_returns_original(self):
        store = FakeMeetingStore([_meeting()], fail_update=True)
        result = update_meeting_notes(store, _meeting(), "Moved to Friday")
        assert not result.ok
        assert result.meeting.notes == "Keen on Q4"

    def test_unchanged_notes_skip_write(self):
        store = FakeMeetingStore([_meeting()])
        assert update_meeting_notes(store, _meeting(), "Keen on Q4").ok
        assert store.updates == []


class TestMeetingSummaries:
    def test_outcomes(self):
        meetings = [
            _meeting(id="1", status="held"),
            _meeting(id="2", status="held"),
            _meeting(id="3", status="no_show"),
            _meeting(id="4", status=None),
        ]
        outcomes = meeting_outcomes(meetings)
        assert (outcomes.held, outcomes.pending, outcomes.no_show, outcomes.reschedule) == (2, 1, 1, 0)

    def test_next_meeting_prefers_upcoming(self):
        meetings = [
            _meeting(id="1", meeting_date=date(2025, 10, 20), company="Later"),
            _meeting(id="2", meeting_date=date(2025, 10, 15), company="Today"),
            _meeting(id="3", meeting_date=date(2025, 10, 14), company="Past"),
        ]
        upcoming = next_meeting(meetings, TODAY)
        assert (upcoming.label, upcoming.company) == ("Next Meeting", "Today")

    def test_falls_back_to_last_meeting(self):
        meetings = [
            _meeting(id="1", meeting_date=date(2025, 10, 1), company="Older"),
            _meeting(id="2", meeting_date=date(2025, 10, 14), company="Recent"),
            _meeting(id="3", meeting_date=None),
        ]
        last = next_meeting(meetings, TODAY)
        assert (last.label, last.company) == ("Last Meeting", "Recent")

    def test_no_dated_meetings(self):
        assert next_meeting([_meeting(meeting_date=None)], TODAY) is None
