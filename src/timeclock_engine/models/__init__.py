"""ORM models."""

from timeclock_engine.models.base import Base, TimestampMixin, UTCDateTime
from timeclock_engine.models.time_entry import TimeEntry, TimeEntryAudit
from timeclock_engine.models.user import PAY_SCHEDULES, User

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "TimeEntry",
    "TimeEntryAudit",
    "User",
    "PAY_SCHEDULES",
]
