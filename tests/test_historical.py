"""Tests for historical slice resolution."""

from datetime import date, datetime, time

import pytest
from pydantic import ValidationError

from models.record_models import DateMode, HistoricalSliceFilter
from scripts.analytics.historical import day_window, resolve_slice, slice_dates, toggle_weekday


class TestSliceDates:
    def test_day_mode(self):
        filters = HistoricalSliceFilter(date_mode=DateMode.DAY, anchor_date=date(2025, 10, 8))
        assert slice_dates(filters) == [date(2025, 10, 8)]

    def test_week_mode_keeps_selected_weekdays(self):
        filters = HistoricalSliceFilter(
            date_mode=DateMode.WEEK, anchor_date=date(2025, 10, 15), weekdays={1, 3},
        )
        assert slice_dates(filters) == [date(2025, 10, 13), date(2025, 10, 15)]

    def test_week_mode_defaults_to_mon_fri(self):
        filters = HistoricalSliceFilter(date_mode=DateMode.WEEK, anchor_date=date(2025, 10, 19))
        assert slice_dates(filters) == [date(2025, 10, d) for d in range(13, 18)]

    def test_month_mode(self):
        filters = HistoricalSliceFilter(
            date_mode=DateMode.MONTH, anchor_date=date(2025, 10, 2), weekdays={5},
        )
        assert slice_dates(filters) == [date(2025, 10, d) for d in (3, 10, 17, 24, 31)]


class TestResolveSlice:
    def test_bounds_use_first_and_last_dates(self):
        slc = resolve_slice(HistoricalSliceFilter(
            date_mode=DateMode.WEEK, anchor_date=date(2025, 10, 15),
            weekdays={1, 3}, hour_start=9, hour_end=17,
        ))
        assert slc.start == datetime(2025, 10, 13, 9)
        assert slc.end == datetime(2025, 10, 15, 17)

    def test_contains_is_exact(self):
        slc = resolve_slice(HistoricalSliceFilter(
            date_mode=DateMode.WEEK, anchor_date=date(2025, 10, 15),
            weekdays={1, 3}, hour_start=9, hour_end=17,
        ))
        assert slc.contains(datetime(2025, 10, 13, 17, 0))
        assert slc.contains(datetime(2025, 10, 15, 9, 0))
        # inside the coarse bounds but on an excluded weekday / hour
        assert not slc.contains(datetime(2025, 10, 14, 10, 0))
        assert not slc.contains(datetime(2025, 10, 13, 18, 0))
        assert not slc.contains(datetime(2025, 10, 13, 8, 59))

    def test_hour_24_is_end_of_day(self):
        slc = resolve_slice(HistoricalSliceFilter(anchor_date=date(2025, 10, 8)))
        assert slc.end_time == time.max
        assert slc.contains(datetime(2025, 10, 8, 23, 59, 59))

    def test_day_window(self):
        window = day_window(date(2025, 10, 8))
        assert window.contains(datetime(2025, 10, 8, 0, 0))
        assert window.contains(datetime(2025, 10, 8, 23, 59, 59, 999999))
        assert not window.contains(datetime(2025, 10, 9, 0, 0))


class TestFilterValidation:
    def test_empty_weekdays_rejected(self):
        with pytest.raises(ValidationError):
            HistoricalSliceFilter(anchor_date=date(2025, 10, 8), weekdays=set())

    def test_weekend_rejected(self):
        with pytest.raises(ValidationError):
            HistoricalSliceFilter(anchor_date=date(2025, 10, 8), weekdays={1, 6})

    def test_hours_must_be_ordered(self):
        with pytest.raises(ValidationError):
            HistoricalSliceFilter(anchor_date=date(2025, 10, 8), hour_start=18, hour_end=9)

    def test_hours_in_range(self):
        with pytest.raises(ValidationError):
            HistoricalSliceFilter(anchor_date=date(2025, 10, 8), hour_end=25)


class TestToggleWeekday:
    def test_remove(self):
        assert toggle_weekday({1, 2, 3}, 2) == frozenset({1, 3})

    def test_add(self):
        assert toggle_weekday({1}, 4) == frozenset({1, 4})

    def test_last_day_cannot_be_removed(self):
        assert toggle_weekday({3}, 3) == frozenset({3})

    def test_weekend_cannot_be_added(self):
        with pytest.raises(ValueError):
            toggle_weekday({1}, 6)
