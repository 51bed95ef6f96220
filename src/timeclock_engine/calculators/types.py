"""Type definitions for pay period and payroll calculations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PayScheduleType(str, Enum):
    """Pay schedule values."""

    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    BI_MONTHLY = "bi-monthly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: str | PayScheduleType) -> PayScheduleType:
        """Accept an enum member or its hyphenated name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown pay schedule type: {value!r}") from None

    @property
    def description(self) -> str:
        return SCHEDULE_DESCRIPTIONS[self]


SCHEDULE_DESCRIPTIONS: dict[PayScheduleType, str] = {
    PayScheduleType.WEEKLY: "Weekly",
    PayScheduleType.BI_WEEKLY: "Bi-Weekly",
    PayScheduleType.BI_MONTHLY: "Bi-Monthly",
    PayScheduleType.MONTHLY: "Monthly",
}

SCHEDULE_LABELS: dict[PayScheduleType, str] = {
    PayScheduleType.WEEKLY: "Weekly",
    PayScheduleType.BI_WEEKLY: "Bi-Weekly (Every 2 weeks)",
    PayScheduleType.BI_MONTHLY: "Bi-Monthly (1st & 15th)",
    PayScheduleType.MONTHLY: "Monthly",
}

# Last representable millisecond of a day
END_OF_DAY_MICROSECOND = 999_000


@dataclass(frozen=True)
class PayPeriod:
    """A resolved pay period. Both bounds are inclusive."""

    start_date: datetime
    end_date: datetime
    schedule_type: PayScheduleType
    description: str

    @property
    def end_exclusive(self) -> datetime:
        """First instant after the period."""
        return self.end_date + timedelta(microseconds=1_000_000 - END_OF_DAY_MICROSECOND)

    @property
    def label(self) -> str:
        """Short range label, e.g. "Mar 1 - Mar 15"."""
        return (
            f"{self.start_date.strftime('%b')} {self.start_date.day} - "
            f"{self.end_date.strftime('%b')} {self.end_date.day}"
        )

    def contains(self, instant: datetime) -> bool:
        return self.start_date <= instant < self.end_exclusive


@dataclass(frozen=True)
class PayrollSummary:
    """Hours and estimated gross pay for one user in one period."""

    user_id: UUID
    period: PayPeriod
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    estimated_gross_pay: Decimal
    hourly_rate: Decimal
    overtime_enabled: bool
    overtime_threshold: Decimal
    entry_count: int = 0
