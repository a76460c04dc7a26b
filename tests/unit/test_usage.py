"""
Unit tests for usage accounting and growth series.
Tests vehicle_storage/storage/usage.py
"""
from datetime import date

import pytest

from vehicle_storage.core.exceptions import ValidationError
from vehicle_storage.models import UsageSnapshot
from vehicle_storage.storage.gateway import Available, Unavailable
from vehicle_storage.storage.usage import GrowthPoint, UsageAccountant, UsageStats, period_key

from tests.fakes import NOW, days_ago


@pytest.fixture
def accountant(gateway, db):
    return UsageAccountant(gateway, db)


@pytest.mark.unit
class TestPeriodKey:
    """Test period bucketing."""

    def test_day(self):
        assert period_key(date(2026, 6, 3), "day") == "2026-06-03"

    def test_week_starts_on_sunday(self):
        assert period_key(date(2026, 5, 31), "week") == "2026-05-31"  # Sunday
        assert period_key(date(2026, 6, 1), "week") == "2026-05-31"  # Monday
        assert period_key(date(2026, 6, 6), "week") == "2026-05-31"  # Saturday
        assert period_key(date(2026, 6, 7), "week") == "2026-06-07"  # next Sunday

    def test_month(self):
        assert period_key(date(2026, 6, 30), "month") == "2026-06"


@pytest.mark.unit
class TestCurrentStats:
    """Test UsageAccountant.get_current_stats."""

    def test_totals(self, accountant, minio_client):
        minio_client.add("vehicles/a/1-0.jpg", 100)
        minio_client.add("vehicles/a/2-0.jpg", 300)
        minio_client.add("stores/t/logo.jpg", 200)

        result = accountant.get_current_stats()

        assert result == Available(UsageStats(total_bytes=600, object_count=3, largest_object_bytes=300))
        assert result.value.average_object_bytes == 200

    def test_empty_bucket(self, accountant):
        result = accountant.get_current_stats()

        assert result.value.total_bytes == 0
        assert result.value.average_object_bytes is None

    def test_unavailable_is_not_zero(self, accountant, minio_client):
        minio_client.bucket_missing = True

        assert isinstance(accountant.get_current_stats(), Unavailable)

    def test_partial_listing_is_unavailable(self, accountant, minio_client):
        for index in range(4):
            minio_client.add(f"vehicles/a/{index}-0.jpg", 10)
        minio_client.fail_listing_after = 2

        assert isinstance(accountant.get_current_stats(), Unavailable)


@pytest.mark.unit
class TestSnapshots:
    """Test daily snapshot upserts."""

    def test_snapshot_is_idempotent_per_day(self, accountant, db):
        accountant.snapshot_today(1000, 10, now=NOW)
        snapshot = accountant.snapshot_today(1500, 12, now=NOW.replace(hour=23))

        assert db.query(UsageSnapshot).count() == 1
        assert snapshot.snapshot_date == date(2026, 6, 1)
        assert snapshot.total_bytes == 1500
        assert snapshot.file_count == 12

    def test_one_row_per_day(self, accountant, db):
        accountant.snapshot_today(1000, 10, now=days_ago(1))
        accountant.snapshot_today(1200, 11, now=NOW)

        assert db.query(UsageSnapshot).count() == 2

    def test_snapshot_days_ago(self, accountant):
        accountant.snapshot_today(400, 4, now=days_ago(30))

        snapshot = accountant.get_snapshot_days_ago(30, now=NOW)

        assert snapshot is not None
        assert snapshot.total_bytes == 400
        assert accountant.get_snapshot_days_ago(29, now=NOW) is None


@pytest.mark.unit
class TestGrowthSeries:
    """Test UsageAccountant.get_growth_series."""

    @pytest.fixture
    def history(self, accountant):
        accountant.snapshot_today(100, 1, now=days_ago(1))   # 2026-05-31, Sunday
        accountant.snapshot_today(200, 2, now=NOW)           # 2026-06-01, Monday
        accountant.snapshot_today(400, 4, now=days_ago(-6))  # 2026-06-07, Sunday
        accountant.snapshot_today(50, 1, now=days_ago(32))   # 2026-04-30

    def test_daily(self, accountant, history):
        series = accountant.get_growth_series("day")

        assert [p.period for p in series] == ["2026-04-30", "2026-05-31", "2026-06-01", "2026-06-07"]
        assert series[1] == GrowthPoint(period="2026-05-31", total_bytes=100, file_count=1)

    def test_weekly_sums_by_sunday_week(self, accountant, history):
        series = accountant.get_growth_series("week")

        assert series[-2:] == [
            GrowthPoint(period="2026-05-31", total_bytes=300, file_count=3),
            GrowthPoint(period="2026-06-07", total_bytes=400, file_count=4),
        ]

    def test_monthly(self, accountant, history):
        series = accountant.get_growth_series("month")

        assert [(p.period, p.total_bytes) for p in series] == [
            ("2026-04", 50),
            ("2026-05", 100),
            ("2026-06", 600),
        ]

    def test_limit_keeps_most_recent(self, accountant, history):
        series = accountant.get_growth_series("day", limit=2)

        assert [p.period for p in series] == ["2026-06-01", "2026-06-07"]

    @pytest.mark.parametrize("limit", [0, -3])
    def test_limit_clamped_to_one(self, accountant, history, limit):
        series = accountant.get_growth_series("day", limit=limit)

        assert [p.period for p in series] == ["2026-06-07"]

    def test_limit_clamped_to_max(self, accountant, history):
        assert len(accountant.get_growth_series("day", limit=10000)) == 4

    def test_empty_history(self, accountant):
        assert accountant.get_growth_series("week") == []

    def test_unknown_granularity(self, accountant):
        with pytest.raises(ValidationError):
            accountant.get_growth_series("year")
