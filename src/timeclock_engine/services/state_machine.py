"""Time entry approval state machine with transition validation."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from timeclock_engine.services.errors import ErrorCode, InvalidTransitionError, ValidationError

if TYPE_CHECKING:
    from timeclock_engine.models import TimeEntry


class ApprovalStatus(str, Enum):
    """Approval status values."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class EntryState(str, Enum):
    """Lifecycle state of an entry, combining clock and approval status."""

    ACTIVE = "active"
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class TimeEntryStateMachine:
    """State machine for time entry approval transitions.

    Allowed transitions:
    - pending → approved (admin review)
    - pending → denied (admin review)
    - pending → pending (edit of a pending manual entry)
    - approved → pending (any edit resets to review)
    - denied → pending (any edit resets to review)

    Automatic entries are born approved; manual entries are born pending.
    An active entry (clock_out NULL) cannot be edited, reviewed or deleted.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        ApprovalStatus.PENDING.value: [
            ApprovalStatus.APPROVED.value,
            ApprovalStatus.DENIED.value,
            ApprovalStatus.PENDING.value,
        ],
        ApprovalStatus.APPROVED.value: [ApprovalStatus.PENDING.value],
        ApprovalStatus.DENIED.value: [ApprovalStatus.PENDING.value],
    }

    REVIEW_DECISIONS = {
        ApprovalStatus.APPROVED.value,
        ApprovalStatus.DENIED.value,
    }

    # Statuses that occupy time for overlap checks (NULL is legacy data)
    BLOCKING_STATUSES = {
        None,
        ApprovalStatus.PENDING.value,
        ApprovalStatus.APPROVED.value,
    }

    @classmethod
    def can_transition(cls, from_status: str | None, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status or ApprovalStatus.PENDING.value, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str | None, to_status: str) -> None:
        """Raise InvalidTransitionError if the status change is not allowed."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def state_of(cls, entry: TimeEntry) -> EntryState:
        if entry.clock_out is None:
            return EntryState.ACTIVE
        return EntryState(entry.approval_status or ApprovalStatus.PENDING.value)

    @classmethod
    def validate_review_decision(cls, status: str) -> ApprovalStatus:
        """Return the decision as an enum, raising if it is not approve/deny."""
        if isinstance(status, ApprovalStatus):
            status = status.value
        if status not in cls.REVIEW_DECISIONS:
            raise ValidationError(
                ErrorCode.INVALID_STATUS,
                'Status must be "approved" or "denied"',
            )
        return ApprovalStatus(status)

    @classmethod
    def can_review(cls, entry: TimeEntry) -> bool:
        return (
            entry.is_manual
            and entry.approval_status == ApprovalStatus.PENDING
        )

    @classmethod
    def validate_interval(
        cls,
        clock_in: datetime,
        clock_out: datetime,
        max_hours: int,
    ) -> None:
        """Validate ordering and duration of a completed interval."""
        if clock_out <= clock_in:
            raise ValidationError(
                ErrorCode.CLOCK_ORDER,
                "Clock out time must be after clock in time",
            )
        if clock_out - clock_in > timedelta(hours=max_hours):
            raise ValidationError(
                ErrorCode.DURATION_EXCEEDED,
                f"Time entry cannot exceed {max_hours} hours",
            )

    @classmethod
    def times_changed(
        cls,
        entry: TimeEntry,
        clock_in: datetime,
        clock_out: datetime | None,
    ) -> bool:
        if entry.clock_in != clock_in:
            return True
        if (entry.clock_out is None) != (clock_out is None):
            return True
        return entry.clock_out != clock_out

    @classmethod
    def should_reset_to_pending(cls, entry: TimeEntry, times_changed: bool) -> bool:
        """Any substantive edit sends the entry back for review.

        Reset when the entry was automatic, when times changed on an entry
        that was not pending, or when the entry was already reviewed.
        """
        status = entry.approval_status
        if not entry.is_manual:
            return True
        if times_changed and status != ApprovalStatus.PENDING:
            return True
        return status in cls.REVIEW_DECISIONS

    @classmethod
    def is_noop_update(cls, entry: TimeEntry, times_changed: bool) -> bool:
        """Unchanged times on a manual entry already awaiting review."""
        return (
            not times_changed
            and entry.is_manual
            and entry.approval_status == ApprovalStatus.PENDING
        )
