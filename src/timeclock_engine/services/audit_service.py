"""Append-only audit trail for time entry mutations."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timeclock_engine.clock import Clock, SystemClock
from timeclock_engine.models import TimeEntryAudit
from timeclock_engine.services.types import AuditAction, EntrySnapshot

logger = logging.getLogger(__name__)


class AuditTrailRecorder:
    """Records one audit row per mutating time entry operation.

    The row is added to the caller's session, so it commits or rolls back
    together with the change it describes. Rows are never updated or
    deleted through this class.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

    async def record(
        self,
        entry_id: UUID,
        actor_id: UUID,
        action: AuditAction | str,
        previous: EntrySnapshot | None,
        new: EntrySnapshot | None,
    ) -> TimeEntryAudit:
        """Append an audit record and flush it within the current transaction."""
        action_value = action.value if isinstance(action, AuditAction) else AuditAction(action).value
        record = TimeEntryAudit(
            time_entry_id=entry_id,
            user_id=actor_id,
            action=action_value,
            previous_clock_in=previous.clock_in if previous else None,
            previous_clock_out=previous.clock_out if previous else None,
            previous_approval_status=previous.approval_status if previous else None,
            new_clock_in=new.clock_in if new else None,
            new_clock_out=new.clock_out if new else None,
            new_approval_status=new.approval_status if new else None,
            created_at=self.clock.now(),
        )
        self.session.add(record)
        await self.session.flush()
        logger.debug("audit %s recorded for entry %s by %s", action_value, entry_id, actor_id)
        return record

    async def history(self, entry_id: UUID) -> list[TimeEntryAudit]:
        """Full history of an entry, oldest first."""
        result = await self.session.execute(
            select(TimeEntryAudit)
            .where(TimeEntryAudit.time_entry_id == entry_id)
            .order_by(TimeEntryAudit.created_at.asc(), TimeEntryAudit.id.asc())
        )
        return list(result.scalars().all())
