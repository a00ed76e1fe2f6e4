"""Tests for snapshot/event aggregation and predicates."""

from datetime import date, datetime

from models.record_models import ActivityEvent, DailySnapshot, DateRange
from scripts.analytics.aggregator import (
    EVENT_FIELDS,
    aggregate,
    all_of,
    event_counters,
    for_client,
    for_performer,
    in_date_range,
    merge_totals,
    on_weekdays,
    rollup_events,
    within_hours,
)


def _snapshot(performer, day, client="acme", **counters):
    return DailySnapshot(performer=performer, client=client, snapshot_date=day, **counters)


def _event(event_id, ts, performer="Jo Smith", client="acme", outcome="No Answer",
           dm=False, sql=False):
    return ActivityEvent(
        id=event_id, occurred_at=ts, performer=performer, client=client,
        outcome=outcome, is_decision_maker=dm, is_sql=sql,
    )


SNAPSHOTS = [
    _snapshot("Jo Smith", date(2025, 10, 6), dials=50, answered=10, dms_reached=3, mqls=2, sqls=1),
    _snapshot("Sam Lee", date(2025, 10, 6), client="globex", dials=40, answered=8, dms_reached=2, sqls=0),
    _snapshot("Jo Smith", date(2025, 10, 7), dials=30, answered=5, dms_reached=1, mqls=1, sqls=1),
    _snapshot("Sam Lee", date(2025, 10, 11), client="globex", dials=5, answered=1),
]

EVENTS = [
    _event(1, datetime(2025, 10, 6, 9, 5), outcome="Connected", dm=True, sql=True),
    _event(2, datetime(2025, 10, 6, 9, 20), outcome="connected"),
    _event(3, datetime(2025, 10, 6, 13, 0)),
    _event(4, datetime(2025, 10, 6, 16, 45), performer="Sam Lee", client="globex", outcome=" CONNECTED ", dm=True),
    _event(5, datetime(2025, 10, 7, 10, 0), outcome="Voicemail", dm=True),
    _event(6, datetime(2025, 10, 7, 11, 0), performer="Sam Lee", client="globex"),
]


class TestAggregate:
    def test_sums_all_rows(self):
        totals = aggregate(SNAPSHOTS)
        assert totals == {"dials": 125, "answered": 24, "dms_reached": 6, "mqls": 3, "sqls": 2}

    def test_empty_input(self):
        assert aggregate([]) == {"dials": 0, "answered": 0, "dms_reached": 0, "mqls": 0, "sqls": 0}

    def test_null_counters_are_zero(self):
        row = DailySnapshot.from_row({
            "sdr_name": "Jo Smith", "client_id": "acme", "snapshot_date": "2025-10-06",
            "dials": None, "answered": 4, "dms_reached": None, "mqls": None, "sqls": None,
        })
        assert aggregate([row])["dials"] == 0
        assert aggregate([row])["answered"] == 4

    def test_accepts_plain_dicts(self):
        rows = [{"dials": 3, "sqls": None}, {"dials": 2, "sqls": 1}]
        assert aggregate(rows, fields=("dials", "sqls")) == {"dials": 5, "sqls": 1}

    def test_date_range_predicate(self):
        week = DateRange(date_from=date(2025, 10, 6), date_to=date(2025, 10, 10))
        assert aggregate(SNAPSHOTS, in_date_range(week))["dials"] == 120

    def test_client_predicate(self):
        assert aggregate(SNAPSHOTS, for_client("globex"))["dials"] == 45
        assert aggregate(SNAPSHOTS, for_client("all"))["dials"] == 125
        assert aggregate(SNAPSHOTS, for_client(None))["dials"] == 125

    def test_combined_predicates(self):
        week = DateRange(date_from=date(2025, 10, 6), date_to=date(2025, 10, 10))
        predicate = all_of(in_date_range(week), for_performer("Sam Lee"))
        assert aggregate(SNAPSHOTS, predicate)["dials"] == 40

    def test_weekday_predicate(self):
        assert aggregate(SNAPSHOTS, on_weekdays({6}))["dials"] == 5

    def test_chunked_sums_merge_to_whole(self):
        parts = [aggregate(SNAPSHOTS[:1]), aggregate(SNAPSHOTS[1:3]), aggregate(SNAPSHOTS[3:])]
        assert merge_totals(*parts) == aggregate(SNAPSHOTS)


class TestEventCounters:
    def test_counts_by_outcome_and_flags(self):
        assert event_counters(EVENTS) == {"dials": 6, "answered": 3, "dms_reached": 2, "sqls": 1}

    def test_answered_is_case_insensitive(self):
        assert EVENTS[1].is_answered
        assert EVENTS[3].is_answered

    def test_dm_requires_answer(self):
        assert not EVENTS[4].is_dm_conversation

    def test_hour_window(self):
        morning = within_hours(9, 12)
        assert event_counters(EVENTS, morning)["dials"] == 4
        assert event_counters(EVENTS, within_hours(0, 24))["dials"] == 6


class TestRollupEvents:
    def test_groups_by_performer_client_and_date(self):
        rows = rollup_events(EVENTS)
        keys = [(r.performer, r.client, r.snapshot_date) for r in rows]
        assert keys == [
            ("Jo Smith", "acme", date(2025, 10, 6)),
            ("Sam Lee", "globex", date(2025, 10, 6)),
            ("Jo Smith", "acme", date(2025, 10, 7)),
            ("Sam Lee", "globex", date(2025, 10, 7)),
        ]
        assert rows[0].dials == 3 and rows[0].answered == 2 and rows[0].sqls == 1

    def test_rollup_totals_match_event_counters(self):
        assert aggregate(rollup_events(EVENTS), fields=EVENT_FIELDS) == event_counters(EVENTS)

    def test_rollup_totals_match_per_client(self):
        for client in ("acme", "globex"):
            predicate = for_client(client)
            rolled = aggregate(rollup_events(EVENTS), predicate, EVENT_FIELDS)
            assert rolled == event_counters(EVENTS, predicate)
