"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timeclock_engine.calculators import PayScheduleType


# ============================================================================
# Time entry schemas
# ============================================================================


class TimeEntryResponse(BaseModel):
    """Schema for a time entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    clock_in: datetime
    clock_out: datetime | None = None
    hours_worked: Decimal | None = None
    is_manual: bool
    approval_status: str | None = None
    approval_notes: str | None = None
    approved_by: UUID | None = None
    approval_date: datetime | None = None
    created_at: datetime

    @field_validator("hours_worked")
    @classmethod
    def round_hours(cls, value: Decimal | None) -> Decimal | None:
        if value is None:
            return None
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class TimeEntryListResponse(BaseModel):
    """Schema for listing time entries."""

    items: list[TimeEntryResponse]
    total: int
    page: int
    page_size: int


class ManualEntryRequest(BaseModel):
    """Schema for creating or editing an entry's times.

    Both fields are optional at the schema level so missing values are
    reported with the INVALID_INPUT code.
    """

    clock_in: datetime | None = None
    clock_out: datetime | None = None


class UpdateEntryResponse(BaseModel):
    """Result of an edit."""

    entry: TimeEntryResponse
    changed: bool = True
    reset_to_pending: bool = False
    review_flagged: bool = False
    message: str


class StatusResponse(BaseModel):
    """Clocked-in/out status for one user."""

    status: str
    is_clocked_in: bool
    active_entry: TimeEntryResponse | None = None
    last_clock_out: datetime | None = None


# ============================================================================
# Review schemas
# ============================================================================


class ApprovalRequest(BaseModel):
    """Schema for approving or denying a manual entry."""

    status: str
    notes: str | None = Field(default=None, max_length=2000)


class PendingEntryResponse(TimeEntryResponse):
    """Pending entry with its owner's identity."""

    user_email: str | None = None
    user_name: str | None = None


class PendingEntriesResponse(BaseModel):
    items: list[PendingEntryResponse]
    total: int


class ReviewStatsResponse(BaseModel):
    """Admin dashboard counters."""

    model_config = ConfigDict(from_attributes=True)

    pending_entries: int
    total_manual_this_month: int
    approved_this_week: int
    denied_this_week: int


class AuditRecordResponse(BaseModel):
    """One audit trail row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    time_entry_id: UUID
    user_id: UUID
    action: str
    previous_clock_in: datetime | None = None
    previous_clock_out: datetime | None = None
    new_clock_in: datetime | None = None
    new_clock_out: datetime | None = None
    previous_approval_status: str | None = None
    new_approval_status: str | None = None
    created_at: datetime


class AuditHistoryResponse(BaseModel):
    time_entry_id: UUID
    items: list[AuditRecordResponse]


# ============================================================================
# Payroll schemas
# ============================================================================


class PayPeriodResponse(BaseModel):
    """A resolved pay period."""

    model_config = ConfigDict(from_attributes=True)

    start_date: datetime
    end_date: datetime
    schedule_type: PayScheduleType
    description: str
    label: str


class PayrollSummaryResponse(BaseModel):
    """Hours and estimated gross pay for one user."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    period: PayPeriodResponse
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    estimated_gross_pay: Decimal
    hourly_rate: Decimal
    overtime_enabled: bool
    overtime_threshold: Decimal
    entry_count: int


class PeriodHoursResponse(BaseModel):
    generated_at: datetime
    users: list[PayrollSummaryResponse]


# ============================================================================
# User settings schemas
# ============================================================================


class UserSettingsResponse(BaseModel):
    """Pay settings and preferences of one user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    hourly_rate: Decimal
    tax_rate: Decimal
    pay_schedule: str
    overtime_enabled: bool
    overtime_rate: Decimal
    time_format: str
    timezone: str
    week_start_day: str
    email_notifications: bool
    email_rejection_notifications: bool
    reminder_notifications: bool


class UserDirectoryEntry(UserSettingsResponse):
    """A user as listed for admins: roles, settings and entry counts."""

    is_admin: bool
    is_super_user: bool
    is_provisioned: bool
    created_at: datetime
    total_entries: int = 0
    manual_entries: int = 0


class UserDirectoryResponse(BaseModel):
    users: list[UserDirectoryEntry]
    total: int


class PreferencesUpdate(BaseModel):
    """Preference changes a user may make to their own account."""

    time_format: str | None = None
    timezone: str | None = None
    week_start_day: str | None = None
    email_notifications: bool | None = None
    email_rejection_notifications: bool | None = None
    reminder_notifications: bool | None = None


class UserSettingsUpdate(BaseModel):
    """Admin changes to a user's pay settings."""

    hourly_rate: Decimal | None = None
    tax_rate: Decimal | None = None
    pay_schedule: str | None = None
    overtime_enabled: bool | None = None
    time_format: str | None = None
    timezone: str | None = None
    email_notifications: bool | None = None


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None
