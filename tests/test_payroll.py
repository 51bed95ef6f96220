"""Tests for payroll aggregation."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, strategies as st

from timeclock_engine.calculators import (
    compute_payroll,
    elapsed_hours,
    overtime_threshold_for,
    resolve_period,
)

UTC = timezone.utc


@dataclass
class Entry:
    clock_in: datetime
    clock_out: datetime | None


def shifts(start: datetime, count: int, length: timedelta) -> list[Entry]:
    """One shift per day starting at start."""
    return [
        Entry(start + timedelta(days=i), start + timedelta(days=i) + length)
        for i in range(count)
    ]


@pytest.fixture
def week():
    return resolve_period(datetime(2025, 3, 10, tzinfo=UTC), "weekly")


class TestComputePayroll:
    """Test hours split and gross pay."""

    def test_overtime_split(self, week):
        """45h at $20 with overtime: 40 regular + 5 overtime = $950.00."""
        entries = shifts(datetime(2025, 3, 10, 8, tzinfo=UTC), 5, timedelta(hours=9))
        summary = compute_payroll(uuid4(), week, entries, Decimal("20"), True, Decimal("40"))

        assert summary.total_hours == Decimal("45.00")
        assert summary.regular_hours == Decimal("40.00")
        assert summary.overtime_hours == Decimal("5.00")
        assert summary.estimated_gross_pay == Decimal("950.00")
        assert summary.entry_count == 5

    def test_overtime_disabled(self, week):
        entries = shifts(datetime(2025, 3, 10, 8, tzinfo=UTC), 5, timedelta(hours=9))
        summary = compute_payroll(uuid4(), week, entries, Decimal("20"), False, Decimal("40"))

        assert summary.regular_hours == Decimal("45.00")
        assert summary.overtime_hours == Decimal("0.00")
        assert summary.estimated_gross_pay == Decimal("900.00")

    def test_custom_multiplier(self, week):
        entries = shifts(datetime(2025, 3, 10, 8, tzinfo=UTC), 5, timedelta(hours=9))
        summary = compute_payroll(
            uuid4(), week, entries, "20", True, 40, overtime_multiplier="2"
        )
        assert summary.estimated_gross_pay == Decimal("1000.00")

    def test_open_and_outside_entries_are_ignored(self, week):
        entries = [
            Entry(datetime(2025, 3, 10, 8, tzinfo=UTC), datetime(2025, 3, 10, 16, tzinfo=UTC)),
            Entry(datetime(2025, 3, 11, 8, tzinfo=UTC), None),
            Entry(datetime(2025, 3, 16, 8, tzinfo=UTC), datetime(2025, 3, 16, 16, tzinfo=UTC)),
            Entry(datetime(2025, 3, 8, 8, tzinfo=UTC), datetime(2025, 3, 8, 16, tzinfo=UTC)),
        ]
        summary = compute_payroll(uuid4(), week, entries, 20, True, 40)
        assert summary.total_hours == Decimal("8.00")
        assert summary.entry_count == 1

    def test_straddling_entry_counts_wholly_in_clock_in_period(self, week):
        # Saturday 22:00 to Sunday 02:00, period ends Saturday
        entry = Entry(datetime(2025, 3, 15, 22, tzinfo=UTC), datetime(2025, 3, 16, 2, tzinfo=UTC))
        this_week = compute_payroll(uuid4(), week, [entry], 20, True, 40)
        next_week = compute_payroll(
            uuid4(), resolve_period(datetime(2025, 3, 16, tzinfo=UTC), "weekly"), [entry], 20, True, 40
        )
        assert this_week.total_hours == Decimal("4.00")
        assert next_week.total_hours == Decimal("0.00")

    def test_rounding_happens_once(self, week):
        # Three 20-minute entries: 1.00h exactly, not 3 x 0.33
        entries = shifts(datetime(2025, 3, 10, 8, tzinfo=UTC), 3, timedelta(minutes=20))
        summary = compute_payroll(uuid4(), week, entries, Decimal("10"), True, 40)
        assert summary.total_hours == Decimal("1.00")
        assert summary.estimated_gross_pay == Decimal("10.00")

    def test_gross_uses_unrounded_hours(self, week):
        # 10 minutes at $100/h = 16.666... -> 16.67
        entries = [Entry(datetime(2025, 3, 10, 8, tzinfo=UTC), datetime(2025, 3, 10, 8, 10, tzinfo=UTC))]
        summary = compute_payroll(uuid4(), week, entries, Decimal("100"), True, 40)
        assert summary.total_hours == Decimal("0.17")
        assert summary.estimated_gross_pay == Decimal("16.67")

    def test_naive_period_with_aware_entries(self):
        period = resolve_period(datetime(2025, 3, 10), "weekly")
        entries = [Entry(datetime(2025, 3, 10, 8, tzinfo=UTC), datetime(2025, 3, 10, 10, tzinfo=UTC))]
        summary = compute_payroll(uuid4(), period, entries, 20, True, 40)
        assert summary.total_hours == Decimal("2.00")

    @given(
        st.lists(st.integers(min_value=1, max_value=12 * 60), max_size=14),
        st.booleans(),
    )
    def test_regular_plus_overtime_equals_total(self, shift_minutes, overtime_enabled):
        week = resolve_period(datetime(2025, 3, 10, tzinfo=UTC), "weekly")
        start = datetime(2025, 3, 9, tzinfo=UTC)
        entries = [
            Entry(start + timedelta(hours=11 * i), start + timedelta(hours=11 * i, minutes=m))
            for i, m in enumerate(shift_minutes)
        ]
        summary = compute_payroll(uuid4(), week, entries, Decimal("15"), overtime_enabled, 40)

        assert summary.overtime_hours >= 0
        assert abs(summary.regular_hours + summary.overtime_hours - summary.total_hours) <= Decimal("0.01")
        if not overtime_enabled:
            assert summary.overtime_hours == 0
        else:
            assert summary.regular_hours <= Decimal("40")


class TestHelpers:
    """Test thresholds and elapsed time."""

    @pytest.mark.parametrize(
        "schedule, threshold",
        [("weekly", 40), ("bi-weekly", 80), ("bi-monthly", 80), ("monthly", 160)],
    )
    def test_overtime_thresholds(self, schedule, threshold):
        assert overtime_threshold_for(schedule) == Decimal(threshold)

    def test_elapsed_hours_exact(self):
        start = datetime(2025, 3, 10, 8, tzinfo=UTC)
        assert elapsed_hours(start, start + timedelta(minutes=90)) == Decimal("1.5")
        assert elapsed_hours(start, start + timedelta(days=1)) == Decimal("24")
