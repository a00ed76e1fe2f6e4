"""
SDR Pulse — Inactive SDR Alerts
=================================
Checks for active SDRs with no logged activity in the last hour (during
business hours, Mon-Fri, in the business timezone) and posts one batched
Slack alert. Alerted SDRs are remembered in a state file so the same people
aren't re-alerted every run; the batch re-arms once anyone starts dialling
again.

Usage:
    python scripts/inactive_sdr_alerts.py                 # single check
    python scripts/inactive_sdr_alerts.py --dry-run       # log the message, don't post
    python scripts/inactive_sdr_alerts.py --watch         # check every 15 minutes
    python scripts/inactive_sdr_alerts.py --watch --interval 5
"""
from __future__ import annotations

import argparse
import sys
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Path setup
# ---------------------------------------------------------------------------
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env")

from models.metric_models import InactiveSdr
from scripts.analytics.clock import local_now
from scripts.analytics.inactive_alerts import (
    InactiveAlertTracker,
    active_names,
    find_inactive,
    format_inactive_alert,
    is_business_hours,
)
from scripts.lib.config import Settings, get_settings
from scripts.lib.errors import NotificationError, PulseError
from scripts.lib.logger import setup_logger
from scripts.lib.supabase_client import fetch_activity, fetch_team_members
from scripts.lib.utils import atomic_write_json, post_to_slack, read_json

logger = setup_logger("inactive_sdr_alerts")

DEFAULT_STATE_FILE = PROJECT_ROOT / "data" / "inactive_alerts_state.json"


def run_check(
    settings: Settings,
    tracker: InactiveAlertTracker,
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> List[InactiveSdr]:
    """
    One detection pass. Returns the SDRs alerted in this pass.

    ``now`` is local wall-clock time in the business timezone (defaults to
    the current time there).
    """
    now = now or local_now(settings.tz)
    if not is_business_hours(now, settings.business_hours):
        logger.info("Outside business hours (%s), skipping check", now.strftime("%a %H:%M"))
        return []

    since = now - timedelta(minutes=settings.inactive_threshold_minutes)
    members = fetch_team_members()
    events = fetch_activity(since, now)

    tracker.clear_recovered(active_names(events, since))
    inactive = find_inactive(
        members,
        events,
        now,
        threshold_minutes=settings.inactive_threshold_minutes,
        business_hours=settings.business_hours,
    )
    logger.info("Found %d inactive SDRs (checked %d total)", len(inactive), len(members))

    before = tracker.to_dict()
    batch = tracker.next_batch(inactive)
    if not batch:
        return []

    payload = format_inactive_alert(batch, now, settings.inactive_threshold_minutes)
    if dry_run:
        logger.info("DRY RUN — would post:\n%s", payload["text"])
        return batch

    try:
        post_to_slack(settings.slack_webhook_url, payload)
    except NotificationError:
        # Not delivered: forget the batch so the next run retries it
        restored = InactiveAlertTracker.from_dict(before)
        tracker.alerted, tracker.batch_sent = restored.alerted, restored.batch_sent
        raise
    logger.info("Inactive SDR alert sent for: %s", ", ".join(s.sdr_name for s in batch))
    return batch


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Alert Slack about inactive SDRs")
    parser.add_argument("--dry-run", action="store_true",
                        help="Log the Slack message instead of posting it")
    parser.add_argument("--watch", action="store_true",
                        help="Keep running, checking every --interval minutes")
    parser.add_argument("--interval", type=int, default=15,
                        help="Minutes between checks in --watch mode. Default: 15")
    parser.add_argument("--state-file", type=str, default=str(DEFAULT_STATE_FILE),
                        help=f"Alerted-SDR state file. Default: {DEFAULT_STATE_FILE}")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    settings = get_settings()
    state_file = Path(args.state_file)

    logger.info("=== Inactive SDR Alerts ===")
    logger.info("  Timezone: %s", settings.timezone)
    logger.info("  Business hours: %02d:00-%02d:00", *settings.business_hours)
    logger.info("  Threshold: %d minutes", settings.inactive_threshold_minutes)

    tracker = InactiveAlertTracker.from_dict(read_json(state_file, default={}))
    failures = 0
    while True:
        try:
            run_check(settings, tracker, dry_run=args.dry_run)
        except PulseError as e:
            failures += 1
            logger.error("Inactive SDR check failed: %s", e)
        if not args.dry_run:
            atomic_write_json(tracker.to_dict(), state_file)
        if not args.watch:
            break
        time.sleep(args.interval * 60)

    return 1 if failures and not args.watch else 0


if __name__ == "__main__":
    sys.exit(main())
