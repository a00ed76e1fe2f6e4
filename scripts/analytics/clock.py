"""
Business-timezone clock helpers.

The engine works on naive local wall-clock datetimes. These helpers are the
only place an aware timestamp is converted, and the only place "now" is read;
callers pass the result into the pure engine functions as plain parameters.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def local_now(tz: ZoneInfo, now: Optional[datetime] = None) -> datetime:
    """Current wall-clock time in ``tz`` as a naive datetime."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).replace(tzinfo=None)


def local_today(tz: ZoneInfo, now: Optional[datetime] = None) -> date:
    """Today's date in ``tz`` (e.g. Australia/Melbourne)."""
    return local_now(tz, now).date()


def as_local(ts: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """Naive local datetime for ``ts``.

    Aware timestamps are converted into ``tz`` (or simply stripped when no tz
    is given); naive ones are assumed to already be local.
    """
    if ts.tzinfo is None:
        return ts
    if tz is not None:
        ts = ts.astimezone(tz)
    return ts.replace(tzinfo=None)
