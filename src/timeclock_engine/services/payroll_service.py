"""Payroll reporting over stored time entries."""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timeclock_engine.calculators import (
    PayrollSummary,
    PayScheduleType,
    compute_payroll,
    overtime_threshold_for,
    resolve_period,
)
from timeclock_engine.clock import Clock, SystemClock, to_utc
from timeclock_engine.config import Settings, get_settings
from timeclock_engine.models import TimeEntry, User
from timeclock_engine.services.errors import NotFoundError

logger = logging.getLogger(__name__)


class PayrollService:
    """Per-user hours and estimated gross pay for the current pay period.

    Each user's period comes from their own pay schedule. Only completed
    entries whose clock-in falls inside the period are counted.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()

    def _schedule_for(self, user: User) -> PayScheduleType:
        try:
            return PayScheduleType.parse(user.pay_schedule or self.settings.default_pay_schedule)
        except ValueError:
            logger.warning(
                "user %s has unknown pay schedule %r, using %s",
                user.id, user.pay_schedule, self.settings.default_pay_schedule,
            )
            return PayScheduleType.parse(self.settings.default_pay_schedule)

    async def _summarize(self, user: User, reference: datetime) -> PayrollSummary:
        schedule = self._schedule_for(user)
        period = resolve_period(reference, schedule)

        result = await self.session.execute(
            select(TimeEntry).where(
                TimeEntry.user_id == user.id,
                TimeEntry.clock_out.is_not(None),
                TimeEntry.clock_in >= period.start_date,
                TimeEntry.clock_in < period.end_exclusive,
            )
        )
        entries = list(result.scalars().all())

        return compute_payroll(
            user_id=user.id,
            period=period,
            entries=entries,
            hourly_rate=user.hourly_rate,
            overtime_enabled=bool(user.overtime_enabled),
            overtime_threshold=overtime_threshold_for(schedule),
            overtime_multiplier=self.settings.overtime_multiplier,
        )

    async def period_hours(self, reference: datetime | None = None) -> list[PayrollSummary]:
        """One summary per provisioned user."""
        when = to_utc(reference) if reference is not None else self.clock.now()
        result = await self.session.execute(
            select(User).where(User.is_provisioned.is_(True)).order_by(User.email)
        )
        summaries = [await self._summarize(user, when) for user in result.scalars().all()]
        logger.info("payroll period hours computed for %d users", len(summaries))
        return summaries

    async def summary_for_user(
        self, user_id: UUID, reference: datetime | None = None
    ) -> PayrollSummary:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        when = to_utc(reference) if reference is not None else self.clock.now()
        return await self._summarize(user, when)
