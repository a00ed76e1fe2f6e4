"""Tests for KPI totals, period comparison and the recompute bundle."""

from datetime import date

import pytest

from models.record_models import (
    CampaignWindow,
    DailySnapshot,
    DateRange,
    MeetingRecord,
    PeriodFilter,
    PeriodTag,
)
from scripts.analytics.kpis import (
    build_kpis,
    campaign_week_activity,
    compare_periods,
    daily_series,
    recompute,
    week_over_week,
)


def _snapshot(performer, day, client="acme", **counters):
    return DailySnapshot(performer=performer, client=client, snapshot_date=day, **counters)


def _meeting(booking_day, client="acme", status="pending", meeting_day=None):
    return MeetingRecord(
        id=f"m-{booking_day.isoformat()}-{client}",
        booking_date=booking_day, meeting_date=meeting_day, client=client,
        performer="Jo Smith", contact="Pat Doe", company="Initech", status=status,
    )


class TestBuildKpis:
    def test_totals_and_rates(self):
        kpis = build_kpis([
            _snapshot("Jo Smith", date(2025, 10, 6), dials=80, answered=20, dms_reached=10, mqls=4, sqls=2),
            _snapshot("Sam Lee", date(2025, 10, 6), dials=20, answered=5, dms_reached=0, mqls=1, sqls=0),
        ])
        assert (kpis.dials, kpis.answered, kpis.dms_reached, kpis.mqls, kpis.sqls) == (100, 25, 10, 5, 2)
        assert kpis.answer_rate == pytest.approx(25.0)
        assert kpis.sql_conversion_rate == pytest.approx(20.0)
        assert kpis.mqls_on_dms_rate == pytest.approx(50.0)
        assert kpis.mqls_on_dials_rate == pytest.approx(5.0)
        assert kpis.sqls_on_dials_rate == pytest.approx(2.0)

    def test_empty_is_all_zero(self):
        kpis = build_kpis([])
        assert kpis.dials == 0
        assert kpis.answer_rate == 0


class TestComparePeriods:
    def test_deltas(self):
        current = build_kpis([_snapshot("Jo", date(2025, 10, 6), dials=110, sqls=3)])
        previous = build_kpis([_snapshot("Jo", date(2025, 9, 29), dials=100, sqls=0)])
        comparison = compare_periods(current, previous)
        assert comparison.deltas["dials"] == pytest.approx(10.0)
        assert comparison.deltas["sqls"] is None

    def test_no_previous_period(self):
        current = build_kpis([_snapshot("Jo", date(2025, 10, 6), dials=10)])
        comparison = compare_periods(current, None)
        assert comparison.previous is None
        assert set(comparison.deltas) >= {"dials", "answered", "dms_reached", "mqls", "sqls"}
        assert all(value is None for value in comparison.deltas.values())


class TestWeekOverWeek:
    def test_this_week_vs_last(self):
        snapshots = [
            _snapshot("Jo", date(2025, 10, 13), dials=60, sqls=2),
            _snapshot("Jo", date(2025, 10, 19), dials=0, sqls=1),
            _snapshot("Jo", date(2025, 10, 8), dials=50, sqls=0),
            _snapshot("Jo", date(2025, 10, 1), dials=999),
        ]
        changes = {c.metric: c for c in week_over_week(snapshots, date(2025, 10, 15))}
        assert (changes["Dials"].this_week, changes["Dials"].last_week) == (60, 50)
        assert changes["Dials"].change == pytest.approx(20.0)
        assert changes["SQLs"].this_week == 3
        assert changes["SQLs"].change is None


class TestCampaignWeekActivity:
    def test_counts_bookings(self):
        window = CampaignWindow(
            client_id="acme", start_date=date(2025, 10, 1), end_date=date(2025, 10, 31), target_sqls=10,
        )
        meetings = [
            _meeting(date(2025, 10, 2)),
            _meeting(date(2025, 10, 7)),
            _meeting(date(2025, 10, 14)),
            _meeting(date(2025, 10, 15)),
            _meeting(date(2025, 10, 15), client="globex"),
            _meeting(date(2025, 9, 30)),
        ]
        activity = campaign_week_activity(meetings, window, date(2025, 10, 15))
        assert (activity.this_campaign, activity.this_week, activity.last_week) == (4, 2, 1)


class TestDailySeries:
    def test_sums_per_date_ascending(self):
        series = daily_series([
            _snapshot("Jo", date(2025, 10, 7), dials=5),
            _snapshot("Sam", date(2025, 10, 6), dials=3, sqls=1),
            _snapshot("Jo", date(2025, 10, 6), dials=2),
        ])
        assert [(p.snapshot_date, p.dials, p.sqls) for p in series] == [
            (date(2025, 10, 6), 5, 1),
            (date(2025, 10, 7), 5, 0),
        ]


class TestRecompute:
    CURRENT = [
        _snapshot("Jo Smith", date(2025, 10, 8), dials=50, answered=10, dms_reached=4, sqls=2),
        _snapshot("Sam Lee", date(2025, 10, 9), client="globex", dials=30, answered=6, dms_reached=2, sqls=1),
        _snapshot("Jo Smith", date(2025, 9, 30), dials=500),
    ]
    PREVIOUS = [
        _snapshot("Jo Smith", date(2025, 10, 2), dials=40, sqls=1),
        _snapshot("Sam Lee", date(2025, 10, 3), client="globex", dials=30, sqls=1),
    ]

    def _period(self):
        return PeriodFilter(tag=PeriodTag.LAST_7_DAYS, date_from=date(2025, 10, 8), date_to=date(2025, 10, 15))

    def test_bundle(self):
        bundle = recompute(self._period(), self.CURRENT, self.PREVIOUS, today=date(2025, 10, 15))
        assert bundle.period == DateRange(date_from=date(2025, 10, 8), date_to=date(2025, 10, 15))
        assert bundle.kpis.current.dials == 80
        assert bundle.kpis.previous.dials == 70
        assert bundle.kpis.previous_range.date_from == date(2025, 10, 1)
        assert [s.count for s in bundle.funnel] == [80, 16, 6, 3]
        assert [e.performer for e in bundle.leaderboard] == ["Jo Smith", "Sam Lee"]
        assert bundle.leaderboard[0].trend == pytest.approx(100.0)
        assert bundle.pacing is None
        assert [p.snapshot_date for p in bundle.daily] == [date(2025, 10, 8), date(2025, 10, 9)]

    def test_client_scope(self):
        bundle = recompute(self._period(), self.CURRENT, self.PREVIOUS, client_id="globex")
        assert bundle.kpis.current.dials == 30
        assert bundle.kpis.deltas["dials"] == pytest.approx(0.0)
        assert [e.performer for e in bundle.leaderboard] == ["Sam Lee"]

    def test_custom_period_has_no_comparison(self):
        period = PeriodFilter(tag=PeriodTag.CUSTOM, date_from=date(2025, 10, 8), date_to=date(2025, 10, 15))
        bundle = recompute(period, self.CURRENT, self.PREVIOUS)
        assert bundle.kpis.previous is None
        assert bundle.kpis.previous_range is None
        assert all(e.trend is None for e in bundle.leaderboard)

    def test_pacing_from_campaign_meetings(self):
        window = CampaignWindow(
            client_id="acme", start_date=date(2025, 10, 6), end_date=date(2025, 10, 17), target_sqls=10,
        )
        meetings = [_meeting(date(2025, 10, d)) for d in (6, 7, 8, 9)] + [
            _meeting(date(2025, 10, 8), client="globex"),
            _meeting(date(2025, 10, 20)),
        ]
        bundle = recompute(
            self._period(), self.CURRENT, campaign=window, campaign_meetings=meetings,
            today=date(2025, 10, 13), client_id="acme",
        )
        assert bundle.pacing.achieved_sqls == 4
        assert bundle.pacing.required_daily_rate == pytest.approx(1.5)
