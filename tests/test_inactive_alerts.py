"""Tests for inactive SDR detection and the alert job."""

from datetime import datetime
from unittest.mock import patch

import pytest

from models.record_models import ActivityEvent, TeamMember
from scripts.analytics.inactive_alerts import (
    InactiveAlertTracker,
    find_inactive,
    format_inactive_alert,
    is_business_hours,
)
from scripts.lib.config import load_settings
from scripts.lib.errors import NotificationError

NOW = datetime(2025, 10, 15, 11, 0)  # Wednesday

MEMBERS = [
    TeamMember(sdr_name="Jo Smith", client_id="acme"),
    TeamMember(sdr_name="Sam Lee", client_id="globex"),
    TeamMember(sdr_name="Max Ray", client_id=None),
    TeamMember(sdr_name="Ann Boss", role="Manager"),
    TeamMember(sdr_name="Old Timer", status="inactive"),
]


def _event(event_id, performer, ts):
    return ActivityEvent(id=event_id, occurred_at=ts, performer=performer, outcome="No Answer")


EVENTS = [
    _event(1, "Jo Smith", datetime(2025, 10, 15, 10, 30)),
    _event(2, "Sam Lee", datetime(2025, 10, 15, 9, 30)),
]


class TestBusinessHours:
    def test_inside(self):
        assert is_business_hours(datetime(2025, 10, 15, 9, 0))
        assert is_business_hours(datetime(2025, 10, 15, 16, 59))

    def test_outside(self):
        assert not is_business_hours(datetime(2025, 10, 15, 8, 59))
        assert not is_business_hours(datetime(2025, 10, 15, 17, 0))
        assert not is_business_hours(datetime(2025, 10, 18, 11, 0))

    def test_custom_hours(self):
        assert is_business_hours(datetime(2025, 10, 15, 7, 30), (7, 15))


class TestFindInactive:
    def test_only_active_sdrs_without_recent_events(self):
        inactive = find_inactive(MEMBERS, EVENTS, NOW, threshold_minutes=60)
        assert [(s.sdr_name, s.client_id) for s in inactive] == [
            ("Sam Lee", "globex"),
            ("Max Ray", None),
        ]

    def test_threshold(self):
        inactive = find_inactive(MEMBERS, EVENTS, NOW, threshold_minutes=120)
        assert [s.sdr_name for s in inactive] == ["Max Ray"]

    def test_nothing_reported_outside_business_hours(self):
        assert find_inactive(MEMBERS, [], datetime(2025, 10, 18, 11, 0)) == []
        assert find_inactive(MEMBERS, [], datetime(2025, 10, 15, 18, 0)) == []


class TestInactiveAlertTracker:
    def test_batch_sent_once(self):
        tracker = InactiveAlertTracker()
        inactive = find_inactive(MEMBERS, EVENTS, NOW)
        assert [s.sdr_name for s in tracker.next_batch(inactive)] == ["Sam Lee", "Max Ray"]
        assert tracker.next_batch(inactive) == []

    def test_recovery_rearms_batch(self):
        tracker = InactiveAlertTracker()
        inactive = find_inactive(MEMBERS, EVENTS, NOW)
        tracker.next_batch(inactive)

        assert tracker.clear_recovered({"Sam Lee"}) == ["Sam Lee"]
        assert tracker.alerted == {"Max Ray"}
        assert tracker.batch_sent is False

        # Max is still alerted, so only Sam can be re-alerted
        assert [s.sdr_name for s in tracker.next_batch(inactive)] == ["Sam Lee"]

    def test_state_round_trip(self):
        tracker = InactiveAlertTracker({"Sam Lee"}, batch_sent=True)
        restored = InactiveAlertTracker.from_dict(tracker.to_dict())
        assert restored.alerted == {"Sam Lee"}
        assert restored.batch_sent is True
        assert InactiveAlertTracker.from_dict(None).alerted == set()


class TestFormatInactiveAlert:
    def test_single(self):
        batch = find_inactive(MEMBERS, EVENTS, NOW, threshold_minutes=120)
        text = format_inactive_alert(batch, NOW)["text"]
        assert "*1 SDR has no activity in over 1 hour:*" in text
        assert "• Max Ray (N/A)" in text
        assert "11:00:00" in text

    def test_plural(self):
        batch = find_inactive(MEMBERS, EVENTS, NOW)
        text = format_inactive_alert(batch, NOW, threshold_minutes=90)["text"]
        assert "*2 SDRs have no activity in over 90 minutes:*" in text
        assert "• Sam Lee (globex)" in text

    def test_empty(self):
        assert format_inactive_alert([], NOW) is None


class TestRunCheck:
    def _settings(self):
        with patch.dict("os.environ", {"SLACK_WEBHOOK_URL": "https://hooks.slack.test/x"}, clear=False):
            return load_settings()

    def test_posts_batch(self):
        from scripts.inactive_sdr_alerts import run_check

        tracker = InactiveAlertTracker()
        with patch("scripts.inactive_sdr_alerts.fetch_team_members", return_value=MEMBERS), \
                patch("scripts.inactive_sdr_alerts.fetch_activity", return_value=EVENTS), \
                patch("scripts.inactive_sdr_alerts.post_to_slack") as post:
            batch = run_check(self._settings(), tracker, now=NOW)

        assert [s.sdr_name for s in batch] == ["Sam Lee", "Max Ray"]
        post.assert_called_once()
        assert post.call_args[0][0] == "https://hooks.slack.test/x"
        assert tracker.alerted == {"Sam Lee", "Max Ray"}

    def test_outside_hours_skips_fetch(self):
        from scripts.inactive_sdr_alerts import run_check

        with patch("scripts.inactive_sdr_alerts.fetch_team_members") as members:
            assert run_check(self._settings(), InactiveAlertTracker(), now=datetime(2025, 10, 18, 11)) == []
        members.assert_not_called()

    def test_failed_delivery_is_retried_next_run(self):
        from scripts.inactive_sdr_alerts import run_check

        tracker = InactiveAlertTracker()
        with patch("scripts.inactive_sdr_alerts.fetch_team_members", return_value=MEMBERS), \
                patch("scripts.inactive_sdr_alerts.fetch_activity", return_value=EVENTS), \
                patch("scripts.inactive_sdr_alerts.post_to_slack",
                      side_effect=NotificationError("Slack webhook delivery failed")):
            with pytest.raises(NotificationError):
                run_check(self._settings(), tracker, now=NOW)

        assert tracker.alerted == set()
        assert tracker.batch_sent is False

    def test_dry_run_does_not_post(self):
        from scripts.inactive_sdr_alerts import run_check

        with patch("scripts.inactive_sdr_alerts.fetch_team_members", return_value=MEMBERS), \
                patch("scripts.inactive_sdr_alerts.fetch_activity", return_value=EVENTS), \
                patch("scripts.inactive_sdr_alerts.post_to_slack") as post:
            batch = run_check(self._settings(), InactiveAlertTracker(), now=NOW, dry_run=True)
        assert len(batch) == 2
        post.assert_not_called()
