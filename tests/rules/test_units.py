"""Tests for cycle units and granularity boundaries."""

from datetime import datetime, timedelta, timezone

import pytest

from time_island.rules import CycleUnit, Granularity


class TestGranularity:
    def test_ordering(self):
        assert Granularity.SECOND < Granularity.MINUTE < Granularity.HOUR < Granularity.DAY

    def test_intervals(self):
        assert [g.interval_seconds for g in Granularity] == [1.0, 60.0, 3600.0, 86400.0]

    def test_finest(self):
        assert Granularity.finest({Granularity.DAY, Granularity.MINUTE}) is Granularity.MINUTE
        assert Granularity.finest([]) is None

    @pytest.mark.parametrize(
        "granularity, expected",
        [
            (Granularity.SECOND, datetime(2024, 3, 10, 15, 30, 13)),
            (Granularity.MINUTE, datetime(2024, 3, 10, 15, 31)),
            (Granularity.HOUR, datetime(2024, 3, 10, 16, 0)),
            (Granularity.DAY, datetime(2024, 3, 11, 0, 0)),
        ],
    )
    def test_next_boundary(self, granularity, expected):
        assert granularity.next_boundary(datetime(2024, 3, 10, 15, 30, 12, 250000)) == expected

    def test_next_boundary_is_strictly_after_exact_boundary(self):
        midnight = datetime(2024, 3, 11)
        assert Granularity.DAY.next_boundary(midnight) == midnight + timedelta(days=1)
        assert Granularity.SECOND.next_boundary(midnight) == midnight + timedelta(seconds=1)

    def test_next_boundary_rolls_over_year(self):
        assert Granularity.DAY.next_boundary(datetime(2023, 12, 31, 23, 59)) == datetime(2024, 1, 1)

    def test_next_boundary_keeps_tzinfo(self):
        now = datetime(2024, 3, 10, 15, 30, tzinfo=timezone.utc)
        assert Granularity.HOUR.next_boundary(now).tzinfo is timezone.utc


class TestCycleUnit:
    @pytest.mark.parametrize(
        "unit, granularity",
        [
            (CycleUnit.SECONDS, Granularity.SECOND),
            (CycleUnit.MINUTES, Granularity.MINUTE),
            (CycleUnit.HOURS, Granularity.HOUR),
            (CycleUnit.DAYS, Granularity.DAY),
            (CycleUnit.WEEK, Granularity.DAY),
            (CycleUnit.MONTH, Granularity.DAY),
            (CycleUnit.YEAR, Granularity.DAY),
        ],
    )
    def test_granularity(self, unit, granularity):
        assert unit.granularity is granularity

    def test_day_based(self):
        assert {u for u in CycleUnit if u.is_day_based} == {
            CycleUnit.DAYS,
            CycleUnit.WEEK,
            CycleUnit.MONTH,
            CycleUnit.YEAR,
        }
