"""User lookup and settings management.

Two kinds of settings live on the user row:

- preferences (time format, timezone, week start, notifications): the
  user edits their own
- pay settings (rate, tax, schedule, overtime): admin-only, with a role
  hierarchy. Super users may edit anyone; other admins may edit regular
  employees only, never themselves or another admin/super user.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timeclock_engine.calculators import PayScheduleType
from timeclock_engine.models import TimeEntry, User
from timeclock_engine.services.errors import (
    ErrorCode,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from timeclock_engine.services.types import UserSummary

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = (
    "time_format",
    "timezone",
    "week_start_day",
    "email_notifications",
    "email_rejection_notifications",
    "reminder_notifications",
)
PAY_FIELDS = ("hourly_rate", "tax_rate", "pay_schedule", "overtime_enabled")
# Preferences an admin may set alongside pay settings
ADMIN_PREFERENCE_FIELDS = ("time_format", "timezone", "email_notifications")

TIME_FORMATS = ("12", "24")
WEEK_START_DAYS = ("monday", "sunday")
FIXED_OVERTIME_RATE = Decimal("1.5")


def _decimal(value: Any, message: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(ErrorCode.INVALID_INPUT, message) from None
    if not result.is_finite():
        raise ValidationError(ErrorCode.INVALID_INPUT, message)
    return result


def validate_preferences(changes: dict[str, Any]) -> dict[str, Any]:
    """Check preference values, returning the normalized subset."""
    clean: dict[str, Any] = {}
    for key in PREFERENCE_FIELDS:
        if changes.get(key) is None:
            continue
        value = changes[key]
        if key == "time_format":
            if str(value) not in TIME_FORMATS:
                raise ValidationError(ErrorCode.INVALID_INPUT, "Time format must be 12 or 24")
            value = str(value)
        elif key == "week_start_day":
            if str(value).lower() not in WEEK_START_DAYS:
                raise ValidationError(
                    ErrorCode.INVALID_INPUT, "Week start day must be monday or sunday"
                )
            value = str(value).lower()
        elif key == "timezone":
            try:
                ZoneInfo(str(value))
            except (ZoneInfoNotFoundError, ValueError):
                raise ValidationError(ErrorCode.INVALID_INPUT, f"Unknown timezone: {value}") from None
        else:
            value = bool(value)
        clean[key] = value
    return clean


def validate_pay_settings(changes: dict[str, Any]) -> dict[str, Any]:
    """Check pay values, returning the normalized subset."""
    clean: dict[str, Any] = {}
    if changes.get("hourly_rate") is not None:
        rate = _decimal(changes["hourly_rate"], "Invalid hourly rate")
        if rate < 0:
            raise ValidationError(ErrorCode.INVALID_INPUT, "Invalid hourly rate")
        clean["hourly_rate"] = rate
    if changes.get("tax_rate") is not None:
        tax = _decimal(changes["tax_rate"], "Tax rate must be between 0 and 100")
        if tax < 0 or tax > 100:
            raise ValidationError(ErrorCode.INVALID_INPUT, "Tax rate must be between 0 and 100")
        clean["tax_rate"] = tax
    if changes.get("pay_schedule") is not None:
        try:
            clean["pay_schedule"] = PayScheduleType.parse(changes["pay_schedule"]).value
        except ValueError:
            raise ValidationError(ErrorCode.INVALID_INPUT, "Invalid pay schedule") from None
    if changes.get("overtime_enabled") is not None:
        clean["overtime_enabled"] = bool(changes["overtime_enabled"])
    return clean


class UserService:
    """Service for user lookup and settings."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: UUID) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self) -> list[UserSummary]:
        """Every user with total and manual entry counts, newest account first."""
        return await self._summaries()

    async def get_user_summary(self, user_id: UUID) -> UserSummary:
        rows = await self._summaries(User.id == user_id)
        if not rows:
            raise NotFoundError("User not found")
        return rows[0]

    async def _summaries(self, *criteria: Any) -> list[UserSummary]:
        total = (
            select(func.count(TimeEntry.id))
            .where(TimeEntry.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        manual = (
            select(func.count(TimeEntry.id))
            .where(TimeEntry.user_id == User.id, TimeEntry.is_manual.is_(True))
            .correlate(User)
            .scalar_subquery()
        )
        query = (
            select(User, total.label("total_entries"), manual.label("manual_entries"))
            .where(*criteria)
            .order_by(User.created_at.desc(), User.email.asc())
        )
        result = await self.session.execute(query)
        return [
            UserSummary(user=user, total_entries=total_count or 0, manual_entries=manual_count or 0)
            for user, total_count, manual_count in result.all()
        ]

    async def require_admin(self, user_id: UUID) -> User:
        """Load the user and check the admin flag."""
        user = await self.session.get(User, user_id)
        if user is None or not (user.is_admin or user.is_super_user):
            raise PermissionDenied("Admin access required")
        return user

    @staticmethod
    def check_pay_permission(actor: User, target: User) -> None:
        """Raise PermissionDenied unless actor may edit target's pay."""
        if actor.is_super_user:
            return
        if not actor.is_admin:
            raise PermissionDenied("Admin access required")
        if actor.id == target.id:
            raise PermissionDenied("Admins cannot edit their own pay settings")
        if target.is_admin or target.is_super_user:
            raise PermissionDenied("Admins cannot edit other admins' or super users' pay settings")

    async def update_preferences(self, user_id: UUID, changes: dict[str, Any]) -> User:
        """Apply the caller's own preference changes. Pay fields are ignored."""
        user = await self.get_user(user_id)
        clean = validate_preferences(changes)
        if not clean:
            raise ValidationError(ErrorCode.INVALID_INPUT, "No valid settings provided")

        for key, value in clean.items():
            setattr(user, key, value)
        await self.session.flush()
        logger.info("preferences updated user=%s fields=%s", user_id, sorted(clean))
        return user

    async def update_user_settings(
        self,
        actor_id: UUID,
        target_id: UUID,
        changes: dict[str, Any],
    ) -> User:
        """Admin edit of another user's pay settings and basic preferences."""
        actor = await self.session.get(User, actor_id)
        if actor is None:
            raise PermissionDenied("User not found")
        target = await self.session.get(User, target_id)
        if target is None:
            raise NotFoundError("Target user not found")

        self.check_pay_permission(actor, target)

        clean = validate_pay_settings(changes)
        clean.update(
            validate_preferences({k: changes.get(k) for k in ADMIN_PREFERENCE_FIELDS})
        )
        if not clean:
            raise ValidationError(ErrorCode.INVALID_INPUT, "No valid settings provided")

        for key, value in clean.items():
            setattr(target, key, value)
        target.overtime_rate = FIXED_OVERTIME_RATE
        await self.session.flush()
        logger.info(
            "user settings updated target=%s by=%s fields=%s", target_id, actor_id, sorted(clean)
        )
        return target
