"""Interval overlap detection for a user's time entries."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from timeclock_engine.clock import Clock, SystemClock
from timeclock_engine.models import TimeEntry
from timeclock_engine.services.state_machine import TimeEntryStateMachine


def _within(instant: datetime, start: datetime, end: datetime) -> bool:
    return start <= instant <= end


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Closed-interval intersection test, checked from both sides.

    Touching intervals (one ends exactly when the other starts) overlap.
    """
    return (
        _within(a_start, b_start, b_end)
        or _within(a_end, b_start, b_end)
        or _within(b_start, a_start, a_end)
        or _within(b_end, a_start, a_end)
    )


def blocking_status_filter() -> ColumnElement[bool]:
    """SQL condition matching the approval statuses that occupy time."""
    statuses = TimeEntryStateMachine.BLOCKING_STATUSES
    named = sorted(s for s in statuses if s is not None)
    condition = TimeEntry.approval_status.in_(named)
    if None in statuses:
        condition = or_(TimeEntry.approval_status.is_(None), condition)
    return condition


class OverlapValidator:
    """Checks a candidate interval against a user's stored entries.

    Only approved, pending and legacy NULL-status entries take part;
    denied entries never block. An open entry runs until "now".
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    async def find_overlapping(
        self,
        user_id: UUID,
        candidate_start: datetime,
        candidate_end: datetime,
        exclude_entry_id: UUID | None = None,
    ) -> list[TimeEntry]:
        """Return the entries that overlap the candidate interval.

        The caller guarantees candidate_start < candidate_end.
        """
        query = select(TimeEntry).where(
            TimeEntry.user_id == user_id,
            blocking_status_filter(),
            TimeEntry.clock_in <= candidate_end,
            or_(
                TimeEntry.clock_out.is_(None),
                TimeEntry.clock_out >= candidate_start,
            ),
        )
        if exclude_entry_id is not None:
            query = query.where(TimeEntry.id != exclude_entry_id)

        result = await self.session.execute(query)
        now = self.clock.now()

        overlapping: list[TimeEntry] = []
        for entry in result.scalars().all():
            effective_end = entry.clock_out if entry.clock_out is not None else now
            if intervals_overlap(candidate_start, candidate_end, entry.clock_in, effective_end):
                overlapping.append(entry)
        return overlapping

    async def has_overlap(
        self,
        user_id: UUID,
        candidate_start: datetime,
        candidate_end: datetime,
        exclude_entry_id: UUID | None = None,
    ) -> bool:
        overlapping = await self.find_overlapping(
            user_id, candidate_start, candidate_end, exclude_entry_id
        )
        return len(overlapping) > 0
