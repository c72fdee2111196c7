"""
Unit Tests - Time Range Resolution
"""
from datetime import datetime, timedelta

import pytest

from crm_analytics.analytics import BucketInterval, InvalidTimeRangeError, resolve_time_range
from crm_analytics.analytics.ranges import add_months


class TestResolveTimeRange:
    """Tests for resolve_time_range"""

    def test_week(self, clock):
        """Week reaches back 7 days with daily weekday labels"""
        resolved = resolve_time_range("week", clock)

        assert resolved.start_date == datetime(2026, 10, 11, 0, 0, 0)
        assert resolved.end_date == datetime(2026, 10, 18, 23, 59, 59, 999999)
        assert resolved.interval == BucketInterval.DAY
        assert resolved.format_label(resolved.start_date) == "Sun"

    def test_week_span_is_seven_days_plus_day_boundaries(self, clock):
        resolved = resolve_time_range("week", clock)
        span = resolved.end_date - resolved.start_date
        assert timedelta(days=7) <= span < timedelta(days=8)

    def test_month(self, clock):
        resolved = resolve_time_range("month", clock)

        assert resolved.start_date == datetime(2026, 9, 18)
        assert resolved.interval == BucketInterval.DAY
        assert resolved.format_label(datetime(2026, 1, 5)) == "Jan 5"

    def test_quarter(self, clock):
        resolved = resolve_time_range("quarter", clock)

        assert resolved.start_date == datetime(2026, 7, 18)
        assert resolved.interval == BucketInterval.WEEK
        assert resolved.format_label(resolved.start_date) == "Jul 18"

    def test_year(self, clock):
        resolved = resolve_time_range("year", clock)

        assert resolved.start_date == datetime(2025, 10, 18)
        assert resolved.interval == BucketInterval.MONTH
        assert resolved.format_label(resolved.start_date) == "Oct 2025"

    @pytest.mark.parametrize("key", ["bogus", "", None, "WEEK"])
    def test_unknown_key_falls_back_to_month(self, clock, key):
        """Unrecognized keys resolve exactly like 'month'"""
        resolved = resolve_time_range(key, clock)
        month = resolve_time_range("month", clock)

        assert resolved == month

    def test_unknown_key_rejected_under_error_policy(self, clock):
        with pytest.raises(InvalidTimeRangeError) as exc_info:
            resolve_time_range("fortnight", clock, on_unknown="error")
        assert exc_info.value.status_code == 400

    def test_same_day_start_is_midnight_and_end_covers_whole_day(self):
        """Times of day on the clock never leak into the window edges"""
        resolved = resolve_time_range("week", lambda: datetime(2026, 3, 4, 0, 0, 1))

        assert resolved.start_date.time() == datetime.min.time()
        assert resolved.end_date.time() == datetime.max.time()
        assert resolved.start_date <= resolved.end_date

    def test_deterministic_for_fixed_clock(self, clock):
        assert resolve_time_range("quarter", clock) == resolve_time_range("quarter", clock)


class TestAddMonths:
    """Tests for calendar month arithmetic"""

    def test_clamps_to_month_end(self):
        assert add_months(datetime(2026, 5, 31), -3) == datetime(2026, 2, 28)

    def test_leap_day_minus_a_year(self):
        assert add_months(datetime(2024, 2, 29, 8), -12) == datetime(2023, 2, 28, 8)

    def test_crosses_year_forward(self):
        assert add_months(datetime(2025, 11, 15), 3) == datetime(2026, 2, 15)
