"""Service-layer error taxonomy.

Every error carries a stable ``code`` that the HTTP layer passes through
unchanged. Categories:

- ValidationError: bad input, recoverable by the caller
- ConflictError: the request clashes with current state
- NotFoundError: missing, or owned by someone else (indistinguishable)
- PermissionDenied: caller lacks the role for the action
"""

from __future__ import annotations


class ErrorCode:
    """Outward error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_STATUS = "INVALID_STATUS"
    CLOCK_ORDER = "CLOCK_ORDER"
    DURATION_EXCEEDED = "DURATION_EXCEEDED"
    OVERLAP = "OVERLAP"
    ALREADY_ACTIVE = "ALREADY_ACTIVE"
    NO_ACTIVE_ENTRY = "NO_ACTIVE_ENTRY"
    ALREADY_REVIEWED = "ALREADY_REVIEWED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ACTIVE_EDIT_FORBIDDEN = "ACTIVE_EDIT_FORBIDDEN"
    ACTIVE_DELETE_FORBIDDEN = "ACTIVE_DELETE_FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    FALLBACK_FAIL = "FALLBACK_FAIL"


class TimeEntryError(Exception):
    """Base error raised by the time clock services."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class ValidationError(TimeEntryError):
    """Raised when request data is malformed or violates an entry rule."""


class ConflictError(TimeEntryError):
    """Raised when the request conflicts with stored state."""


class InvalidTransitionError(ConflictError):
    """Raised when an approval status change is not in the transition table."""

    def __init__(self, from_status: str | None, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            ErrorCode.INVALID_TRANSITION,
            f"Cannot move a time entry from {from_status or 'pending'} to {to_status}",
        )


class NotFoundError(TimeEntryError):
    """Raised when an entry or user does not exist or is not visible."""

    def __init__(self, message: str = "Time entry not found or access denied"):
        super().__init__(ErrorCode.NOT_FOUND, message)


class PermissionDenied(TimeEntryError):
    """Raised when the caller may not perform the action."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.FORBIDDEN, message)
