"""Pay period resolution.

Periods are built from the calendar fields (year, month, day) of the
reference, keeping its tzinfo, so boundaries never drift across DST
changes. Same inputs always give the same period.

- weekly: Sunday 00:00:00.000 to Saturday 23:59:59.999
- bi-weekly: two weeks from a Sunday; the week number ceil(day_of_year / 7)
  decides whether the current week is the first (odd) or second (even)
- bi-monthly: 1st to 15th, or 16th to the last day of the month
- monthly: 1st to the last day of the month
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, tzinfo

from timeclock_engine.calculators.types import (
    END_OF_DAY_MICROSECOND,
    SCHEDULE_LABELS,
    PayPeriod,
    PayScheduleType,
)
from timeclock_engine.clock import Clock, SystemClock

END_OF_DAY = time(23, 59, 59, END_OF_DAY_MICROSECOND)


def _start_of(day: date, tz: tzinfo | None) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _end_of(day: date, tz: tzinfo | None) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=tz)


def _sunday_on_or_before(day: date) -> date:
    # weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def last_day_of_month(day: date) -> date:
    """Day 0 of the next month."""
    if day.month == 12:
        first_of_next = date(day.year + 1, 1, 1)
    else:
        first_of_next = date(day.year, day.month + 1, 1)
    return first_of_next - timedelta(days=1)


def week_of_year(day: date) -> int:
    return math.ceil(day.timetuple().tm_yday / 7)


def resolve_period(
    reference: datetime | date,
    schedule_type: PayScheduleType | str,
) -> PayPeriod:
    """Resolve the pay period containing reference for a schedule."""
    schedule = PayScheduleType.parse(schedule_type)
    if isinstance(reference, datetime):
        day = reference.date()
        tz = reference.tzinfo
    else:
        day = reference
        tz = None

    if schedule == PayScheduleType.WEEKLY:
        first = _sunday_on_or_before(day)
        last = first + timedelta(days=6)

    elif schedule == PayScheduleType.BI_WEEKLY:
        sunday = _sunday_on_or_before(day)
        if week_of_year(day) % 2 == 1:
            first = sunday
        else:
            first = sunday - timedelta(days=7)
        last = first + timedelta(days=13)

    elif schedule == PayScheduleType.BI_MONTHLY:
        if day.day <= 15:
            first = day.replace(day=1)
            last = day.replace(day=15)
        else:
            first = day.replace(day=16)
            last = last_day_of_month(day)

    else:
        first = day.replace(day=1)
        last = last_day_of_month(day)

    return PayPeriod(
        start_date=_start_of(first, tz),
        end_date=_end_of(last, tz),
        schedule_type=schedule,
        description=schedule.description,
    )


def current_period(
    schedule_type: PayScheduleType | str,
    clock: Clock | None = None,
    tz: tzinfo | None = None,
) -> PayPeriod:
    """Period containing "now", optionally seen from a local timezone."""
    now = (clock or SystemClock()).now()
    if tz is not None:
        now = now.astimezone(tz)
    return resolve_period(now, schedule_type)


def list_schedule_types() -> list[dict[str, str]]:
    """Value/label pairs for every supported schedule."""
    return [
        {"value": schedule.value, "label": SCHEDULE_LABELS[schedule]}
        for schedule in PayScheduleType
    ]
