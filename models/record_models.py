"""
SDR Pulse — Input Record Models
=================================

Typed records for the rows the analytics engine consumes. Store rows arrive
with nullable columns; the validators below coerce them once, here, so the
engine never has to ask "is this field present".

Store table → model:
  activity_log     → ActivityEvent
  daily_snapshots  → DailySnapshot
  sql_meetings     → MeetingRecord
  clients          → CampaignWindow
  team_members     → TeamMember
"""
from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import Any, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


WORKING_WEEKDAYS: FrozenSet[int] = frozenset({1, 2, 3, 4, 5})  # ISO Mon..Fri


def _to_date(value: Any) -> Any:
    """Accept 'YYYY-MM-DD', full ISO timestamps and datetimes for date fields."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


def _zero_if_none(value: Any) -> Any:
    return 0 if value is None else value


def _blank_if_none(value: Any) -> Any:
    return "" if value is None else value


# ─── Enums ──────────────────────────────────────────────────

class MeetingStatus(str, Enum):
    PENDING = "pending"
    HELD = "held"
    NO_SHOW = "no_show"
    RESCHEDULE = "reschedule"


class PeriodTag(str, Enum):
    """Quick filters offered by the date range picker."""
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    CUSTOM = "custom"


class DateMode(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# ─── Activity ───────────────────────────────────────────────

class ActivityEvent(BaseModel):
    """One logged call/contact attempt (one dial)."""
    model_config = ConfigDict(frozen=True)

    id: str
    occurred_at: datetime
    performer: str = ""
    client: Optional[str] = None
    contact: Optional[str] = None
    company: Optional[str] = None
    outcome: str = ""
    duration_seconds: Optional[int] = Field(None, ge=0)
    is_decision_maker: bool = False
    is_sql: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value):
        return str(value) if value is not None else value

    @field_validator("performer", "outcome", mode="before")
    @classmethod
    def _blank(cls, value):
        return _blank_if_none(value)

    @field_validator("is_decision_maker", "is_sql", mode="before")
    @classmethod
    def _false_if_none(cls, value):
        return False if value is None else value

    @property
    def is_answered(self) -> bool:
        return self.outcome.strip().lower() == "connected"

    @property
    def is_dm_conversation(self) -> bool:
        return self.is_answered and self.is_decision_maker

    @classmethod
    def from_row(cls, row: dict) -> "ActivityEvent":
        """Build from an activity_log row."""
        return cls(
            id=row.get("id"),
            occurred_at=row.get("activity_date"),
            performer=row.get("sdr_name"),
            client=row.get("client_id"),
            contact=row.get("contact_name"),
            company=row.get("company_name"),
            outcome=row.get("call_outcome"),
            duration_seconds=row.get("call_duration"),
            is_decision_maker=row.get("is_decision_maker"),
            is_sql=row.get("is_sql"),
        )


class DailySnapshot(BaseModel):
    """Pre-aggregated per (performer, client, date) rollup."""
    model_config = ConfigDict(frozen=True)

    performer: str = ""
    client: Optional[str] = None
    snapshot_date: date
    dials: int = 0
    answered: int = 0
    dms_reached: int = 0
    mqls: int = 0
    sqls: int = 0

    @field_validator("performer", mode="before")
    @classmethod
    def _blank(cls, value):
        return _blank_if_none(value)

    @field_validator("snapshot_date", mode="before")
    @classmethod
    def _date(cls, value):
        return _to_date(value)

    @field_validator("dials", "answered", "dms_reached", "mqls", "sqls", mode="before")
    @classmethod
    def _zero(cls, value):
        return _zero_if_none(value)

    @classmethod
    def from_row(cls, row: dict) -> "DailySnapshot":
        """Build from a daily_snapshots row."""
        return cls(
            performer=row.get("sdr_name"),
            client=row.get("client_id"),
            snapshot_date=row.get("snapshot_date"),
            dials=row.get("dials"),
            answered=row.get("answered"),
            dms_reached=row.get("dms_reached"),
            mqls=row.get("mqls"),
            sqls=row.get("sqls"),
        )


# ─── Meetings ───────────────────────────────────────────────

class MeetingRecord(BaseModel):
    """One SQL booking."""

    id: Optional[str] = None
    booking_date: date
    meeting_date: Optional[date] = None
    client: str = ""
    performer: str = ""
    contact: str = ""
    company: str = ""
    status: MeetingStatus = MeetingStatus.PENDING
    notes: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value):
        return str(value) if value is not None else value

    @field_validator("booking_date", "meeting_date", mode="before")
    @classmethod
    def _date(cls, value):
        return _to_date(value)

    @field_validator("client", "performer", "contact", "company", "notes", mode="before")
    @classmethod
    def _blank(cls, value):
        return _blank_if_none(value)

    @field_validator("status", mode="before")
    @classmethod
    def _pending_if_none(cls, value):
        return MeetingStatus.PENDING if value is None else value

    @classmethod
    def from_row(cls, row: dict) -> "MeetingRecord":
        """Build from a sql_meetings row."""
        return cls(
            id=row.get("id"),
            booking_date=row.get("booking_date"),
            meeting_date=row.get("meeting_date"),
            client=row.get("client_id"),
            performer=row.get("sdr_name"),
            contact=row.get("contact_person"),
            company=row.get("company_name"),
            status=row.get("meeting_status"),
            notes=row.get("client_notes"),
        )

    def to_row(self) -> dict:
        """Column mapping for inserts into sql_meetings."""
        row = {
            "client_id": self.client,
            "sdr_name": self.performer,
            "contact_person": self.contact,
            "company_name": self.company,
            "booking_date": self.booking_date.isoformat(),
            "meeting_date": self.meeting_date.isoformat() if self.meeting_date else None,
            "meeting_status": self.status.value,
            "client_notes": self.notes,
        }
        if self.id is not None:
            row["id"] = self.id
        return row


# ─── Campaign ───────────────────────────────────────────────

class CampaignWindow(BaseModel):
    """Campaign dates and SQL target for one client."""

    client_id: Optional[str] = None
    client_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_sqls: Optional[int] = Field(None, ge=0)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _date(cls, value):
        return _to_date(value)

    @property
    def is_defined(self) -> bool:
        # A zero target is treated as "no target set"
        return bool(self.start_date and self.end_date and self.target_sqls)

    @classmethod
    def from_client_row(cls, row: dict) -> "CampaignWindow":
        """Build from a clients row."""
        return cls(
            client_id=row.get("client_id"),
            client_name=row.get("client_name"),
            start_date=row.get("campaign_start"),
            end_date=row.get("campaign_end"),
            target_sqls=row.get("target_sqls"),
        )


class TeamMember(BaseModel):
    sdr_name: str
    client_id: Optional[str] = None
    role: str = "SDR"
    status: str = "active"


# ─── Filters ────────────────────────────────────────────────

class DateRange(BaseModel):
    """Inclusive calendar date range."""
    model_config = ConfigDict(frozen=True)

    date_from: date
    date_to: date

    @model_validator(mode="after")
    def _ordered(self):
        if self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    def contains(self, day: date) -> bool:
        if isinstance(day, datetime):
            day = day.date()
        return self.date_from <= day <= self.date_to


class PeriodFilter(BaseModel):
    """A quick-filter tag plus the range it resolved to."""

    tag: PeriodTag = PeriodTag.CUSTOM
    date_from: date
    date_to: date

    @property
    def range(self) -> DateRange:
        return DateRange(date_from=self.date_from, date_to=self.date_to)


class HistoricalSliceFilter(BaseModel):
    """Activity monitor drill filter: date mode, anchor, weekdays, hours."""
    model_config = ConfigDict(frozen=True)

    date_mode: DateMode = DateMode.DAY
    anchor_date: date
    weekdays: FrozenSet[int] = WORKING_WEEKDAYS
    hour_start: int = Field(0, ge=0, le=24)
    hour_end: int = Field(24, ge=0, le=24)

    @field_validator("weekdays")
    @classmethod
    def _valid_weekdays(cls, value):
        if not value:
            raise ValueError("weekdays must contain at least one day")
        if not value <= WORKING_WEEKDAYS:
            raise ValueError("weekdays must be ISO weekday numbers 1 (Mon) to 5 (Fri)")
        return value

    @model_validator(mode="after")
    def _hours_ordered(self):
        if self.hour_start > self.hour_end:
            raise ValueError("hour_start must not be after hour_end")
        return self

    @property
    def start_time(self) -> time:
        return time.max if self.hour_start == 24 else time(self.hour_start)

    @property
    def end_time(self) -> time:
        return time.max if self.hour_end == 24 else time(self.hour_end)
