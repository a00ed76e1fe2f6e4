"""
SDR Pulse — Metric Output Models
==================================

Structured results returned by the analytics engine and serialised as-is by
the API. Percentages are plain floats on a 0-100 scale; ``None`` means "no
value to show" (no previous period, suppressed delta, no campaign).
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.record_models import ActivityEvent, DateRange, MeetingRecord


# ─── KPIs ───────────────────────────────────────────────────

class KpiTotals(BaseModel):
    dials: int = 0
    answered: int = 0
    dms_reached: int = 0
    mqls: int = 0
    sqls: int = 0
    answer_rate: float = 0.0
    sql_conversion_rate: float = 0.0
    mqls_on_dms_rate: float = 0.0
    mqls_on_dials_rate: float = 0.0
    sqls_on_dms_rate: float = 0.0
    sqls_on_dials_rate: float = 0.0


class KpiComparison(BaseModel):
    """Current-period KPIs with deltas against the previous period."""
    current: KpiTotals
    previous: Optional[KpiTotals] = None
    previous_range: Optional[DateRange] = None
    deltas: Dict[str, Optional[float]] = Field(default_factory=dict)


class MetricChange(BaseModel):
    metric: str
    this_week: int
    last_week: int
    change: Optional[float] = None


class DailyPoint(BaseModel):
    snapshot_date: date
    dials: int = 0
    answered: int = 0
    dms_reached: int = 0
    sqls: int = 0


# ─── Funnel ─────────────────────────────────────────────────

class FunnelStage(BaseModel):
    name: str
    count: int
    pct_of_previous: Optional[float] = None
    pct_of_total: float = 0.0


# ─── Campaign ───────────────────────────────────────────────

class CampaignPacing(BaseModel):
    client_id: Optional[str] = None
    campaign_start: date
    campaign_end: date
    target_sqls: int
    achieved_sqls: int
    remaining_sqls: int
    sql_percentage: float
    total_working_days: int
    elapsed_working_days: int
    remaining_working_days: int
    time_percentage: float
    required_daily_rate: float
    on_track: bool


class WeekActivity(BaseModel):
    """SQLs booked across the campaign, this week and last week."""
    this_campaign: int = 0
    this_week: int = 0
    last_week: int = 0


class MeetingOutcomes(BaseModel):
    held: int = 0
    pending: int = 0
    no_show: int = 0
    reschedule: int = 0


class NextMeeting(BaseModel):
    label: str
    meeting_date: date
    company: str = ""
    contact: str = ""


# ─── Leaderboard / Monitor ──────────────────────────────────

class LeaderboardEntry(BaseModel):
    rank: int
    performer: str
    initials: str
    dials: int = 0
    answered: int = 0
    dms_reached: int = 0
    mqls: int = 0
    sqls: int = 0
    answer_rate: float = 0.0
    conversion_rate: float = 0.0
    trend: Optional[float] = None


class MonitorRow(BaseModel):
    performer: str
    client: str = ""
    dials: int = 0
    answered: int = 0
    answer_rate: float = 0.0
    dms_reached: int = 0
    sqls: int = 0
    last_activity: Optional[datetime] = None
    is_recent: bool = False


class MonitorView(BaseModel):
    mode: str
    dates: List[date] = Field(default_factory=list)
    start: datetime
    end: datetime
    totals: Dict[str, int] = Field(default_factory=dict)
    rows: List[MonitorRow] = Field(default_factory=list)


class DrillDownResult(BaseModel):
    performer: str
    metric: str
    count: int
    records: List[ActivityEvent] = Field(default_factory=list)


# ─── Commands / Alerts ──────────────────────────────────────

class StatusChangeResult(BaseModel):
    """Outcome of a meeting status (or notes) change command.

    ``meeting`` is the record the caller should display: the updated one on
    success, the original one on failure. ``inconsistent`` flags a partial
    write that could not be compensated.
    """
    ok: bool
    meeting: MeetingRecord
    spawned: Optional[MeetingRecord] = None
    error: Optional[str] = None
    inconsistent: bool = False


class InactiveSdr(BaseModel):
    sdr_name: str
    client_id: Optional[str] = None


# ─── Bundle ─────────────────────────────────────────────────

class DashboardBundle(BaseModel):
    """Everything a dashboard view renders for one scope."""
    period: DateRange
    client_id: Optional[str] = None
    kpis: KpiComparison
    funnel: List[FunnelStage]
    leaderboard: List[LeaderboardEntry]
    pacing: Optional[CampaignPacing] = None
    daily: List[DailyPoint] = Field(default_factory=list)
