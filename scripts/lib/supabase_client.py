"""
Supabase Client Helper for SDR Pulse.
Provides the connection plus paged readers for the tables the analytics
engine consumes, and the meeting store used by the status/notes commands.

Readers return validated record models and raise DataFetchError on failure;
an empty list always means "no rows", never "the query failed".

Usage:
    from scripts.lib.supabase_client import fetch_snapshots, fetch_activity

    snapshots = fetch_snapshots(DateRange(date_from=d0, date_to=d1), client_id="acme")
    events = fetch_activity(start, end, performer="Jo Smith")
"""
import os
from datetime import datetime
from typing import Callable, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from models.record_models import (
    ActivityEvent,
    CampaignWindow,
    DailySnapshot,
    DateRange,
    MeetingRecord,
    TeamMember,
)
from scripts.analytics.clock import as_local
from scripts.lib.config import PROJECT_ROOT, get_settings
from scripts.lib.errors import (
    DataFetchError,
    DataWriteError,
    SchemaValidationError,
    StoreNotConfiguredError,
)
from scripts.lib.logger import setup_logger

logger = setup_logger(__name__)

load_dotenv(PROJECT_ROOT / ".env")

SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = (
    os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
    or os.environ.get("SUPABASE_KEY", "")
)

_client = None


def get_client():
    """Create and return a Supabase client (singleton)."""
    global _client
    if _client is not None:
        return _client

    if not SUPABASE_URL or not SUPABASE_KEY:
        raise StoreNotConfiguredError()

    from supabase import create_client
    _client = create_client(SUPABASE_URL, SUPABASE_KEY)
    logger.info("Supabase client connected to %s", SUPABASE_URL)
    return _client


# ─── Paging ─────────────────────────────────────────────────

def fetch_all(
    table: str,
    build_query: Callable,
    page_size: Optional[int] = None,
) -> List[Dict]:
    """
    Read every row a query matches, one ``.range()`` page at a time.

    Args:
        table: Table name (for error reporting).
        build_query: Called with the client; returns a filtered query ordered
            down to a unique key, so OFFSET pages neither skip nor repeat rows.
        page_size: Rows per page (default FETCH_PAGE_SIZE).

    Returns:
        List of row dicts.

    Raises:
        StoreNotConfiguredError: credentials are missing.
        DataFetchError: any page fails.
    """
    page_size = page_size or get_settings().fetch_page_size
    client = get_client()
    rows: List[Dict] = []
    offset = 0
    while True:
        try:
            result = build_query(client).range(offset, offset + page_size - 1).execute()
        except Exception as e:
            logger.error("Supabase query failed on %s (offset %d): %s", table, offset, e)
            raise DataFetchError("Query failed", table=table, cause=e)
        page = result.data or []
        rows.extend(page)
        if len(page) < page_size:
            break
        offset += page_size
    logger.debug("Fetched %d rows from %s", len(rows), table)
    return rows


def _parse(table: str, rows: List[Dict], build: Callable) -> list:
    try:
        return [build(row) for row in rows]
    except ValidationError as e:
        raise SchemaValidationError(f"Unexpected row shape: {e}", table=table)


def _scope_client(query, client_id: Optional[str]):
    if client_id and client_id != "all":
        query = query.eq("client_id", client_id)
    return query


def _to_store_ts(ts: datetime) -> str:
    """Local wall-clock bound as an aware ISO timestamp for timestamptz filters."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=get_settings().tz)
    return ts.isoformat()


# ─── Readers ────────────────────────────────────────────────

def fetch_snapshots(date_range: DateRange, client_id: Optional[str] = None) -> List[DailySnapshot]:
    """daily_snapshots rows with snapshot_date inside ``date_range``."""
    def build(client):
        query = (
            client.table("daily_snapshots")
            .select("*")
            .gte("snapshot_date", date_range.date_from.isoformat())
            .lte("snapshot_date", date_range.date_to.isoformat())
        )
        return _scope_client(query, client_id).order("snapshot_date").order("id")

    rows = fetch_all("daily_snapshots", build)
    return _parse("daily_snapshots", rows, DailySnapshot.from_row)


def fetch_activity(
    start: datetime,
    end: datetime,
    performer: Optional[str] = None,
    client_id: Optional[str] = None,
) -> List[ActivityEvent]:
    """
    activity_log rows with activity_date in [start, end].

    ``start``/``end`` are local wall-clock bounds; returned events carry naive
    local timestamps in the business timezone.
    """
    tz = get_settings().tz

    def build(client):
        query = (
            client.table("activity_log")
            .select("*")
            .gte("activity_date", _to_store_ts(start))
            .lte("activity_date", _to_store_ts(end))
        )
        if performer:
            query = query.eq("sdr_name", performer)
        return (
            _scope_client(query, client_id)
            .order("activity_date", desc=True)
            .order("id", desc=True)
        )

    rows = fetch_all("activity_log", build)
    events = _parse("activity_log", rows, ActivityEvent.from_row)
    return [
        event.model_copy(update={"occurred_at": as_local(event.occurred_at, tz)})
        for event in events
    ]


def fetch_meetings(
    date_range: Optional[DateRange] = None,
    client_id: Optional[str] = None,
) -> List[MeetingRecord]:
    """sql_meetings rows, optionally restricted by booking_date."""
    def build(client):
        query = client.table("sql_meetings").select("*")
        if date_range is not None:
            query = (
                query.gte("booking_date", date_range.date_from.isoformat())
                .lte("booking_date", date_range.date_to.isoformat())
            )
        return (
            _scope_client(query, client_id)
            .order("booking_date", desc=True)
            .order("id", desc=True)
        )

    rows = fetch_all("sql_meetings", build)
    return _parse("sql_meetings", rows, MeetingRecord.from_row)


def fetch_meeting(meeting_id: str) -> Optional[MeetingRecord]:
    try:
        result = (
            get_client().table("sql_meetings")
            .select("*")
            .eq("id", meeting_id)
            .limit(1)
            .execute()
        )
    except StoreNotConfiguredError:
        raise
    except Exception as e:
        logger.error("Supabase fetch failed for meeting %s: %s", meeting_id, e)
        raise DataFetchError("Meeting lookup failed", table="sql_meetings", cause=e)
    if not result.data:
        return None
    return _parse("sql_meetings", result.data, MeetingRecord.from_row)[0]


def fetch_client(client_id: str) -> Optional[CampaignWindow]:
    """Campaign window for one client, or None if the client is unknown."""
    try:
        result = (
            get_client().table("clients")
            .select("client_id, client_name, campaign_start, campaign_end, target_sqls")
            .eq("client_id", client_id)
            .limit(1)
            .execute()
        )
    except StoreNotConfiguredError:
        raise
    except Exception as e:
        logger.error("Supabase fetch failed for client %s: %s", client_id, e)
        raise DataFetchError("Client lookup failed", table="clients", cause=e)
    if not result.data:
        return None
    return _parse("clients", result.data, CampaignWindow.from_client_row)[0]


def fetch_team_members(role: str = "SDR") -> List[TeamMember]:
    """Active team members with ``role``."""
    def build(client):
        return (
            client.table("team_members")
            .select("id, sdr_name, client_id, role, status")
            .eq("status", "active")
            .eq("role", role)
            .order("sdr_name")
            .order("id")
        )

    rows = fetch_all("team_members", build)
    return _parse("team_members", rows, TeamMember.model_validate)


# ─── Meeting store ──────────────────────────────────────────

class SupabaseMeetingStore:
    """sql_meetings writes for the meeting commands."""

    table = "sql_meetings"

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_client()
        return self._client

    def update_meeting(self, meeting_id: str, fields: dict) -> None:
        try:
            self.client.table(self.table).update(fields).eq("id", meeting_id).execute()
        except Exception as e:
            logger.error("Supabase update failed on %s/%s: %s", self.table, meeting_id, e)
            raise DataWriteError("Update failed", table=self.table, row_id=meeting_id, cause=e)

    def insert_meeting(self, meeting: MeetingRecord) -> MeetingRecord:
        try:
            result = self.client.table(self.table).insert(meeting.to_row()).execute()
        except Exception as e:
            logger.error("Supabase insert failed on %s: %s", self.table, e)
            raise DataWriteError("Insert failed", table=self.table, cause=e)
        if result.data:
            return MeetingRecord.from_row(result.data[0])
        return meeting
