"""Payroll aggregation: hours per period split into regular and overtime."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol
from uuid import UUID

from timeclock_engine.calculators.types import PayPeriod, PayrollSummary, PayScheduleType

HOURS_QUANTUM = Decimal("0.01")
MONEY_QUANTUM = Decimal("0.01")
DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")

# 40h/week equivalents. Bi-monthly shares the bi-weekly threshold.
OVERTIME_THRESHOLDS: dict[PayScheduleType, Decimal] = {
    PayScheduleType.WEEKLY: Decimal("40"),
    PayScheduleType.BI_WEEKLY: Decimal("80"),
    PayScheduleType.BI_MONTHLY: Decimal("80"),
    PayScheduleType.MONTHLY: Decimal("160"),
}


class TimedEntry(Protocol):
    """Anything with a clock-in and an optional clock-out."""

    clock_in: datetime
    clock_out: datetime | None


def overtime_threshold_for(schedule_type: PayScheduleType | str) -> Decimal:
    return OVERTIME_THRESHOLDS[PayScheduleType.parse(schedule_type)]


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Normalize loosely typed numbers (e.g. NUMERIC-as-string) to Decimal."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def elapsed_hours(start: datetime, end: datetime) -> Decimal:
    """Exact elapsed hours between two instants."""
    return _delta_seconds(end - start) / Decimal("3600")


def _delta_seconds(delta: timedelta) -> Decimal:
    whole = Decimal(delta.days * 86400 + delta.seconds)
    return whole + Decimal(delta.microseconds) / Decimal("1000000")


def _align(instant: datetime, reference: datetime) -> datetime:
    """Make instant comparable with a (possibly naive) period bound."""
    if reference.tzinfo is None and instant.tzinfo is not None:
        return instant.astimezone(timezone.utc).replace(tzinfo=None)
    if reference.tzinfo is not None and instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def entries_in_period(period: PayPeriod, entries: Iterable[TimedEntry]) -> list[TimedEntry]:
    """Completed entries whose clock-in falls in [start, end).

    An entry straddling the boundary belongs wholly to the period of its
    clock-in; nothing is prorated.
    """
    selected: list[TimedEntry] = []
    for entry in entries:
        if entry.clock_out is None:
            continue
        if period.contains(_align(entry.clock_in, period.start_date)):
            selected.append(entry)
    return selected


def compute_payroll(
    user_id: UUID,
    period: PayPeriod,
    entries: Iterable[TimedEntry],
    hourly_rate: Decimal | int | float | str,
    overtime_enabled: bool,
    overtime_threshold: Decimal | int | float | str,
    overtime_multiplier: Decimal | int | float | str = DEFAULT_OVERTIME_MULTIPLIER,
) -> PayrollSummary:
    """Summarize one user's hours and estimated gross pay for a period.

    Elapsed time is summed exactly; only the reported totals are rounded
    to two decimals.
    """
    rate = to_decimal(hourly_rate)
    threshold = to_decimal(overtime_threshold)
    multiplier = to_decimal(overtime_multiplier)

    selected = entries_in_period(period, entries)
    total_seconds = sum(
        (_delta_seconds(e.clock_out - e.clock_in) for e in selected if e.clock_out is not None),
        Decimal("0"),
    )
    total = total_seconds / Decimal("3600")

    if overtime_enabled:
        regular = min(total, threshold)
        overtime = max(Decimal("0"), total - threshold)
    else:
        regular = total
        overtime = Decimal("0")

    gross = regular * rate + overtime * rate * multiplier

    return PayrollSummary(
        user_id=user_id,
        period=period,
        total_hours=total.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP),
        regular_hours=regular.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP),
        overtime_hours=overtime.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP),
        estimated_gross_pay=gross.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP),
        hourly_rate=rate.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP),
        overtime_enabled=overtime_enabled,
        overtime_threshold=threshold,
        entry_count=len(selected),
    )
