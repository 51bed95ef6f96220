"""Time entry and time entry audit models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timeclock_engine.calculators.payroll import elapsed_hours
from timeclock_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from timeclock_engine.models.user import User


class TimeEntry(Base, TimestampMixin):
    """One work session. clock_out is NULL while the session is running."""

    __tablename__ = "time_entries"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    clock_in: Mapped[datetime] = mapped_column(nullable=False)
    clock_out: Mapped[datetime | None] = mapped_column(nullable=True)
    is_manual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approval_status: Mapped[str | None] = mapped_column(
        String(20), nullable=True, default="pending"
    )
    approval_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    approval_date: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "clock_out IS NULL OR clock_out > clock_in",
            name="time_entries_clock_order_check",
        ),
        CheckConstraint(
            "approval_status IS NULL OR approval_status IN ('pending', 'approved', 'denied')",
            name="time_entries_approval_status_check",
        ),
        # Single active session per user
        Index(
            "uq_time_entries_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("clock_out IS NULL"),
            sqlite_where=text("clock_out IS NULL"),
        ),
        Index("idx_time_entries_user_id", "user_id"),
        Index("idx_time_entries_clock_in", "clock_in"),
        Index("idx_time_entries_approval_status", "approval_status"),
        Index("idx_time_entries_approval_date", "approval_date"),
    )

    # Relationships
    user: Mapped[User] = relationship(foreign_keys=[user_id])

    @property
    def is_active(self) -> bool:
        return self.clock_out is None

    @property
    def hours_worked(self) -> Decimal | None:
        """Elapsed hours, or None while still clocked in."""
        if self.clock_out is None:
            return None
        return elapsed_hours(self.clock_in, self.clock_out)


class TimeEntryAudit(Base, TimestampMixin):
    """Append-only record of a time entry mutation.

    time_entry_id carries no foreign key: rows outlive the entry they
    describe.
    """

    __tablename__ = "time_entry_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    time_entry_id: Mapped[UUID] = mapped_column(nullable=False)
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    previous_clock_in: Mapped[datetime | None] = mapped_column(nullable=True)
    previous_clock_out: Mapped[datetime | None] = mapped_column(nullable=True)
    new_clock_in: Mapped[datetime | None] = mapped_column(nullable=True)
    new_clock_out: Mapped[datetime | None] = mapped_column(nullable=True)
    previous_approval_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_approval_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "action IN ('create', 'update', 'approve', 'deny', 'fallback-flag', "
            "'clock-in', 'clock-out', 'delete')",
            name="time_entry_audit_action_check",
        ),
        Index("idx_time_entry_audit_entry_id", "time_entry_id"),
        Index("idx_time_entry_audit_user_id", "user_id"),
    )
