"""
SDR Pulse — Inactive SDR Detection
====================================

Finds active SDRs with no logged activity inside the threshold window, but
only on working days within business hours. ``InactiveAlertTracker`` keeps
the alerted set between checks so a batch goes out once, and is re-armed when
an alerted SDR starts dialling again.

Functions:
  is_business_hours()     - Working day and hour inside [start, end)
  find_inactive()         - Active SDRs with no recent activity
  format_inactive_alert() - Batched Slack message text
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Set, Tuple

from models.metric_models import InactiveSdr
from models.record_models import ActivityEvent, TeamMember
from scripts.analytics.working_days import is_working_day
from scripts.lib.logger import setup_logger

logger = setup_logger("inactive_alerts")

DEFAULT_BUSINESS_HOURS = (9, 17)


def is_business_hours(now: datetime, hours: Tuple[int, int] = DEFAULT_BUSINESS_HOURS) -> bool:
    start, end = hours
    return is_working_day(now) and start <= now.hour < end


def active_names(events: Iterable[ActivityEvent], since: datetime) -> Set[str]:
    return {e.performer for e in events if e.performer and e.occurred_at >= since}


def find_inactive(
    members: Iterable[TeamMember],
    recent_events: Iterable[ActivityEvent],
    now: datetime,
    threshold_minutes: int = 60,
    business_hours: Tuple[int, int] = DEFAULT_BUSINESS_HOURS,
) -> List[InactiveSdr]:
    """
    Active SDR team members with no event since ``now - threshold_minutes``.

    ``now`` and event timestamps are local wall-clock times in the business
    timezone. Outside business hours nothing is reported.
    """
    if not is_business_hours(now, business_hours):
        return []
    seen = active_names(recent_events, now - timedelta(minutes=threshold_minutes))
    inactive = []
    for member in members:
        if member.status != "active" or member.role != "SDR":
            continue
        if member.sdr_name not in seen:
            inactive.append(InactiveSdr(sdr_name=member.sdr_name, client_id=member.client_id))
    logger.debug("%d inactive SDRs at %s", len(inactive), now.isoformat())
    return inactive


class InactiveAlertTracker:
    """Alerted-SDR memory shared across periodic checks."""

    def __init__(self, alerted: Iterable[str] = (), batch_sent: bool = False):
        self.alerted: Set[str] = set(alerted)
        self.batch_sent = batch_sent

    @classmethod
    def from_dict(cls, state: Optional[dict]) -> "InactiveAlertTracker":
        state = state or {}
        return cls(state.get("alerted", []), bool(state.get("batch_sent", False)))

    def to_dict(self) -> dict:
        return {"alerted": sorted(self.alerted), "batch_sent": self.batch_sent}

    def clear_recovered(self, active: Iterable[str]) -> List[str]:
        """Forget alerted SDRs that are active again; re-arms the batch."""
        recovered = sorted(self.alerted.intersection(active))
        if recovered:
            self.alerted.difference_update(recovered)
            self.batch_sent = False
            logger.info("SDRs active again: %s", ", ".join(recovered))
        return recovered

    def next_batch(self, inactive: Iterable[InactiveSdr]) -> List[InactiveSdr]:
        """SDRs to alert now; empty when nothing is new or a batch is already out."""
        fresh = [sdr for sdr in inactive if sdr.sdr_name not in self.alerted]
        if not fresh or self.batch_sent:
            return []
        self.alerted.update(sdr.sdr_name for sdr in fresh)
        self.batch_sent = True
        return fresh


def format_inactive_alert(
    batch: List[InactiveSdr],
    checked_at: datetime,
    threshold_minutes: int = 60,
) -> Optional[dict]:
    """Slack payload for a batch, or None for an empty batch."""
    if not batch:
        return None
    count = len(batch)
    plural = count > 1
    if threshold_minutes % 60 == 0:
        hours = threshold_minutes // 60
        window = f"{hours} hour{'s' if hours > 1 else ''}"
    else:
        window = f"{threshold_minutes} minutes"
    sdr_list = "\n".join(f"• {sdr.sdr_name} ({sdr.client_id or 'N/A'})" for sdr in batch)
    return {
        "text": (
            f"⚠️ *Inactive SDR Alert*\n\n"
            f"*{count} SDR{'s' if plural else ''} ha{'ve' if plural else 's'} "
            f"no activity in over {window}:*\n\n"
            f"{sdr_list}\n\n"
            f"⏰ *Last checked:* {checked_at.strftime('%H:%M:%S')}"
        )
    }
