"""Value types shared by the time entry services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from timeclock_engine.models import TimeEntry, User


class AuditAction(str, Enum):
    """Audit trail action tags."""

    CREATE = "create"
    UPDATE = "update"
    APPROVE = "approve"
    DENY = "deny"
    FALLBACK_FLAG = "fallback-flag"
    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"
    DELETE = "delete"


@dataclass(frozen=True)
class EntrySnapshot:
    """The audited fields of a time entry at one moment."""

    clock_in: datetime | None
    clock_out: datetime | None
    approval_status: str | None

    @classmethod
    def of(cls, entry: TimeEntry) -> EntrySnapshot:
        return cls(
            clock_in=entry.clock_in,
            clock_out=entry.clock_out,
            approval_status=entry.approval_status,
        )


@dataclass(frozen=True)
class Applied:
    """The update was accepted.

    changed is False for the no-op echo of an unchanged pending entry;
    reset_to_pending tells whether the edit sent the entry back for review.
    """

    entry: TimeEntry
    changed: bool = True
    reset_to_pending: bool = False


@dataclass(frozen=True)
class FlaggedForReview:
    """The update failed unexpectedly; the entry was flagged pending instead."""

    entry: TimeEntry


@dataclass(frozen=True)
class Rejected:
    """The update was refused. code is one of the ErrorCode values."""

    code: str
    message: str


UpdateOutcome = Union[Applied, FlaggedForReview, Rejected]


@dataclass(frozen=True)
class EntryStatus:
    """Clocked-in / clocked-out view for one user."""

    status: str
    active_entry: TimeEntry | None
    last_clock_out: datetime | None

    @property
    def is_clocked_in(self) -> bool:
        return self.active_entry is not None


@dataclass(frozen=True)
class ReviewStats:
    """Counters for the admin dashboard."""

    pending_entries: int
    total_manual_this_month: int
    approved_this_week: int
    denied_this_week: int


@dataclass(frozen=True)
class UserSummary:
    """A user with their entry counts, for the admin directory."""

    user: User
    total_entries: int
    manual_entries: int
