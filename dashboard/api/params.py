"""
SDR Pulse — Shared Route Parameters
=====================================
Query-parameter parsing and error translation shared by the routers.

Functions:
  business_today()     - Today in the configured business timezone
  resolve_period()     - tag/date_from/date_to -> PeriodFilter
  monitor_window()     - Live or historical activity window
  store_http_error()   - Store/schema error -> HTTPException (502/503)
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import HTTPException
from pydantic import ValidationError

from models.record_models import DateMode, HistoricalSliceFilter, PeriodFilter, PeriodTag
from scripts.analytics.clock import local_today
from scripts.analytics.historical import Window, day_window, resolve_slice
from scripts.analytics.periods import resolve_quick_filter
from scripts.lib.config import get_settings
from scripts.lib.errors import (
    DataFetchError,
    PulseError,
    SchemaValidationError,
    StoreError,
    StoreNotConfiguredError,
)

# Data-layer failures a route turns into 502/503 responses
STORE_ERRORS = (StoreError, SchemaValidationError)


def business_today() -> date:
    return local_today(get_settings().tz)


def resolve_period(
    tag: PeriodTag,
    date_from: Optional[date],
    date_to: Optional[date],
    today: date,
) -> PeriodFilter:
    """Quick-filter tags resolve against ``today``; custom needs both dates."""
    if tag != PeriodTag.CUSTOM:
        resolved = resolve_quick_filter(tag, today)
        return PeriodFilter(tag=tag, date_from=resolved.date_from, date_to=resolved.date_to)
    if date_from is None or date_to is None:
        raise HTTPException(
            status_code=422, detail="date_from and date_to are required for a custom period",
        )
    if date_from > date_to:
        raise HTTPException(status_code=422, detail="date_from must not be after date_to")
    return PeriodFilter(tag=tag, date_from=date_from, date_to=date_to)


def parse_weekdays(raw: Optional[str]) -> Optional[frozenset]:
    """"1,2,5" -> frozenset({1, 2, 5}); None/blank means the default Mon-Fri set."""
    if raw is None or not raw.strip():
        return None
    try:
        return frozenset(int(part) for part in raw.split(",") if part.strip())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid weekdays: {raw!r}")


def monitor_window(
    mode: str,
    today: date,
    date_mode: DateMode = DateMode.DAY,
    anchor_date: Optional[date] = None,
    weekdays: Optional[str] = None,
    hour_start: int = 0,
    hour_end: int = 24,
) -> Window:
    """Today's full-day window for live mode, else the resolved historical slice."""
    if mode == "live":
        return day_window(today)
    if mode != "historical":
        raise HTTPException(status_code=422, detail="mode must be 'live' or 'historical'")

    fields = {
        "date_mode": date_mode,
        "anchor_date": anchor_date or today,
        "hour_start": hour_start,
        "hour_end": hour_end,
    }
    parsed = parse_weekdays(weekdays)
    if parsed is not None:
        fields["weekdays"] = parsed
    try:
        filters = HistoricalSliceFilter(**fields)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[err["msg"] for err in e.errors()])
    return resolve_slice(filters)


def store_http_error(e: PulseError) -> HTTPException:
    """503 when the store isn't configured, 502 when it failed us."""
    if isinstance(e, StoreNotConfiguredError):
        return HTTPException(status_code=503, detail="Data store not configured")
    if isinstance(e, (DataFetchError, SchemaValidationError)):
        return HTTPException(status_code=502, detail=f"Data store read failed ({e.code})")
    return HTTPException(status_code=502, detail=f"Data store error ({e.code})")
