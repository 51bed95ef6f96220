"""User model: identity, admin-controlled pay settings and preferences."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from timeclock_engine.models.base import Base, TimestampMixin, UTCDateTime, utcnow

PAY_SCHEDULES = ("weekly", "bi-weekly", "bi-monthly", "monthly")


class User(Base, TimestampMixin):
    """Employee or administrator account."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Admin and provisioning
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_super_user: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_provisioned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Pay settings (admin controlled)
    hourly_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    tax_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("25")
    )
    pay_schedule: Mapped[str] = mapped_column(String(20), nullable=False, default="bi-weekly")
    overtime_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Stored for display; payroll uses the engine-wide multiplier
    overtime_rate: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), nullable=False, default=Decimal("1.5")
    )

    # Preferences
    time_format: Mapped[str] = mapped_column(String(5), nullable=False, default="12")
    timezone: Mapped[str] = mapped_column(
        String(50), nullable=False, default="America/New_York"
    )
    week_start_day: Mapped[str] = mapped_column(String(10), nullable=False, default="monday")
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_rejection_notifications: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    reminder_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "pay_schedule IN ('weekly', 'bi-weekly', 'bi-monthly', 'monthly')",
            name="users_pay_schedule_check",
        ),
        CheckConstraint("hourly_rate >= 0", name="users_hourly_rate_check"),
        CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="users_tax_rate_check"),
        Index("idx_users_pay_schedule", "pay_schedule"),
    )

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.email
