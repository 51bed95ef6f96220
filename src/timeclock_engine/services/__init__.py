"""Time clock engine services."""

from timeclock_engine.services.audit_service import AuditTrailRecorder
from timeclock_engine.services.errors import (
    ConflictError,
    ErrorCode,
    InvalidTransitionError,
    NotFoundError,
    PermissionDenied,
    TimeEntryError,
    ValidationError,
)
from timeclock_engine.services.overlap import (
    OverlapValidator,
    blocking_status_filter,
    intervals_overlap,
)
from timeclock_engine.services.payroll_service import PayrollService
from timeclock_engine.services.state_machine import (
    ApprovalStatus,
    EntryState,
    TimeEntryStateMachine,
)
from timeclock_engine.services.time_entry_service import TimeEntryService
from timeclock_engine.services.types import (
    Applied,
    AuditAction,
    EntrySnapshot,
    EntryStatus,
    FlaggedForReview,
    Rejected,
    ReviewStats,
    UpdateOutcome,
    UserSummary,
)
from timeclock_engine.services.user_service import UserService

__all__ = [
    "Applied",
    "ApprovalStatus",
    "AuditAction",
    "AuditTrailRecorder",
    "ConflictError",
    "EntrySnapshot",
    "EntryState",
    "EntryStatus",
    "ErrorCode",
    "FlaggedForReview",
    "InvalidTransitionError",
    "NotFoundError",
    "OverlapValidator",
    "PayrollService",
    "PermissionDenied",
    "Rejected",
    "ReviewStats",
    "TimeEntryError",
    "TimeEntryService",
    "TimeEntryStateMachine",
    "UpdateOutcome",
    "UserService",
    "UserSummary",
    "ValidationError",
    "blocking_status_filter",
    "intervals_overlap",
]
