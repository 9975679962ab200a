"""Date bucketing for chart series"""

from datetime import date, timedelta

import pytest

from backoffice.shared.bucketing import (
    DAILY,
    MONTHLY,
    WEEKLY,
    bucket_for,
    bucket_series,
    count_by_bucket,
    daily_series,
    flatten_series,
)


# ============================================================
# Bucket keys and labels
# ============================================================


class TestBucketFor:
    def test_daily_uses_iso_date(self):
        assert bucket_for(date(2024, 3, 5), DAILY) == ("2024-03-05", "2024-03-05")

    def test_weekly_uses_iso_week(self):
        assert bucket_for(date(2024, 3, 5), WEEKLY) == ("2024-W10", "Week 10 · 2024")

    def test_weekly_uses_iso_week_year_at_year_boundary(self):
        """30 Dec 2024 is a Monday and opens ISO week 1 of 2025"""
        assert bucket_for(date(2024, 12, 30), WEEKLY) == ("2025-W01", "Week 01 · 2025")

    def test_monthly(self):
        assert bucket_for(date(2024, 3, 5), MONTHLY) == ("2024-03", "Mar 2024")

    def test_unknown_granularity(self):
        with pytest.raises(ValueError):
            bucket_for(date(2024, 3, 5), "hourly")


# ============================================================
# Series
# ============================================================


class TestBucketSeries:
    def test_five_days_in_one_week_make_one_bucket(self):
        monday = date(2024, 3, 4)
        rows = [(monday + timedelta(days=i), "answered", 10) for i in range(5)]

        weekly = bucket_series(daily_series(rows), WEEKLY)

        assert len(weekly) == 1
        assert weekly[0].key == "2024-W10"
        assert weekly[0].values == {"answered": 50}
        assert weekly[0].total == 50

    def test_bucket_totals_equal_sum_of_daily_totals(self):
        rows = [
            (date(2024, 1, 30), "answered", 3),
            (date(2024, 1, 31), "no-answer", 4),
            (date(2024, 2, 1), "answered", 5),
            (date(2024, 2, 14), "answered", 6),
        ]
        daily = daily_series(rows)

        for granularity in (WEEKLY, MONTHLY):
            buckets = bucket_series(daily, granularity)
            assert sum(b.total for b in buckets) == sum(p.total for p in daily)

        monthly = bucket_series(daily, MONTHLY)
        assert [(b.key, b.total) for b in monthly] == [("2024-01", 7), ("2024-02", 11)]

    def test_status_keys_are_zero_filled(self):
        daily = daily_series([(date(2024, 3, 4), "answered", 2)])
        weekly = bucket_series(daily, WEEKLY, ["answered", "busy"])
        assert weekly[0].values == {"answered": 2, "busy": 0}

    def test_buckets_sorted_by_key(self):
        daily = daily_series(
            [(date(2024, 5, 1), "a", 1), (date(2024, 1, 1), "a", 1), (date(2024, 3, 1), "a", 1)]
        )
        assert [b.key for b in bucket_series(daily, MONTHLY)] == ["2024-01", "2024-03", "2024-05"]

    def test_unknown_granularity(self):
        with pytest.raises(ValueError):
            bucket_series([], "yearly")


class TestDailySeries:
    def test_flatten_reproduces_daily_totals(self):
        rows = [
            (date(2024, 3, 4), "answered", 2),
            (date(2024, 3, 4), "answered", 3),
            (date(2024, 3, 4), "busy", 1),
            (date(2024, 3, 6), "busy", 7),
        ]
        flat = flatten_series(daily_series(rows))
        assert flat == {
            (date(2024, 3, 4), "answered"): 5,
            (date(2024, 3, 4), "busy"): 1,
            (date(2024, 3, 6), "busy"): 7,
        }

    def test_daily_regrouping_is_identity(self):
        daily = daily_series([(date(2024, 3, 6), "busy", 7), (date(2024, 3, 4), "answered", 2)])
        assert flatten_series(bucket_series(daily, DAILY)) == flatten_series(daily)

    def test_count_by_bucket(self):
        days = [date(2024, 3, 4), date(2024, 3, 5), date(2024, 4, 1)]
        counts = count_by_bucket(days, MONTHLY)
        assert [(p.key, p.total) for p in counts] == [("2024-03", 2), ("2024-04", 1)]
