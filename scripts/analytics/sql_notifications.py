"""
SDR Pulse — SQL Booked Notifications
======================================

Slack message for every newly booked SQL meeting. ``SqlNotifier`` remembers
the meeting ids it has announced, so a redelivered insert for the same row is
not posted twice. A failed delivery forgets the id again, letting a later
redelivery retry it.

Functions:
  format_sql_notification()  - Slack payload for one booking
"""
from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import date
from typing import Callable, Dict, Optional

from models.record_models import MeetingRecord
from scripts.lib.errors import NotificationError
from scripts.lib.logger import setup_logger

logger = setup_logger("sql_notifications")

DATE_FORMAT = "%d/%m/%Y"
MAX_REMEMBERED_IDS = 1000


def _format_date(day: Optional[date], missing: str) -> str:
    return day.strftime(DATE_FORMAT) if day else missing


def format_sql_notification(meeting: MeetingRecord) -> Dict[str, str]:
    """Slack payload announcing one booked meeting."""
    return {
        "text": (
            "🎉 *New SQL Booked!*\n\n"
            f"*Client:* {meeting.client or 'N/A'}\n"
            f"*SDR:* {meeting.performer or 'N/A'}\n"
            f"*Contact:* {meeting.contact or 'N/A'} ({meeting.company or 'N/A'})\n"
            f"*Booked:* {_format_date(meeting.booking_date, 'N/A')}\n"
            f"*Meeting Date:* {_format_date(meeting.meeting_date, 'TBD')}"
        )
    }


class SqlNotifier:
    """Posts one Slack message per new meeting id."""

    def __init__(
        self,
        send: Callable[[Dict[str, str]], None],
        max_remembered: int = MAX_REMEMBERED_IDS,
    ):
        self._send = send
        self._max_remembered = max_remembered
        self._notified: "OrderedDict[str, None]" = OrderedDict()
        self._lock = threading.Lock()

    def _claim(self, meeting_id: str) -> bool:
        with self._lock:
            if meeting_id in self._notified:
                return False
            self._notified[meeting_id] = None
            while len(self._notified) > self._max_remembered:
                self._notified.popitem(last=False)
            return True

    def _release(self, meeting_id: str) -> None:
        with self._lock:
            self._notified.pop(meeting_id, None)

    def notify(self, meeting: MeetingRecord) -> bool:
        """
        Announce ``meeting``. Returns False when its id was already announced.

        Raises:
            NotificationError: delivery failed (the id is not remembered).
        """
        if meeting.id is not None and not self._claim(meeting.id):
            logger.debug("SQL meeting %s already announced, skipping", meeting.id)
            return False

        try:
            self._send(format_sql_notification(meeting))
        except NotificationError:
            if meeting.id is not None:
                self._release(meeting.id)
            raise

        logger.info(
            "SQL notification sent for %s (%s)",
            meeting.contact or "unknown contact", meeting.client or "N/A",
        )
        return True
