"""Time entry service - clock in/out, manual entries, edits and reviews."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from timeclock_engine.clock import Clock, SystemClock, to_utc
from timeclock_engine.config import Settings, get_settings
from timeclock_engine.events import ADMIN_CHANNEL, EventName, Notifier, NullNotifier, user_channel
from timeclock_engine.models import TimeEntry
from timeclock_engine.services.audit_service import AuditTrailRecorder
from timeclock_engine.services.errors import (
    ConflictError,
    ErrorCode,
    NotFoundError,
    TimeEntryError,
    ValidationError,
)
from timeclock_engine.services.overlap import OverlapValidator
from timeclock_engine.services.state_machine import (
    ApprovalStatus,
    EntryState,
    TimeEntryStateMachine,
)
from timeclock_engine.services.types import (
    Applied,
    AuditAction,
    EntrySnapshot,
    EntryStatus,
    FlaggedForReview,
    Rejected,
    ReviewStats,
    UpdateOutcome,
)

logger = logging.getLogger(__name__)


def entry_payload(entry: TimeEntry) -> dict[str, Any]:
    """Serializable view of an entry for notifications."""
    hours = entry.hours_worked
    return {
        "id": str(entry.id),
        "user_id": str(entry.user_id),
        "clock_in": entry.clock_in.isoformat(),
        "clock_out": entry.clock_out.isoformat() if entry.clock_out else None,
        "hours_worked": (
            str(hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
            if hours is not None
            else None
        ),
        "is_manual": entry.is_manual,
        "approval_status": entry.approval_status,
    }


class TimeEntryService:
    """Service for the time entry lifecycle.

    Operations:
    - clock_in / clock_out: automatic entries, auto-approved
    - create_manual_entry: pending entry awaiting admin review
    - update_entry: edit with reset-to-pending policy, returns an UpdateOutcome
    - review_entry: admin approve/deny, guarded by a conditional update
    - flag_for_review: degraded outcome when an update fails unexpectedly
    - delete_entry: remove a completed entry

    Every mutation appends one audit record in the same transaction and
    hands its events to the notifier. The caller owns commit/rollback, so
    callers that need publish-after-commit pass a DeferredNotifier and
    flush it once the commit succeeds.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.notifier = notifier or NullNotifier()
        self.settings = settings or get_settings()
        self.audit = AuditTrailRecorder(session, self.clock)
        self.overlap = OverlapValidator(session, self.clock)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_entry(self, entry_id: UUID, user_id: UUID | None = None) -> TimeEntry | None:
        """Load an entry, optionally restricted to its owner."""
        query = select(TimeEntry).where(TimeEntry.id == entry_id)
        if user_id is not None:
            query = query.where(TimeEntry.user_id == user_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_active_entry(self, user_id: UUID) -> TimeEntry | None:
        result = await self.session.execute(
            select(TimeEntry)
            .where(TimeEntry.user_id == user_id, TimeEntry.clock_out.is_(None))
            .order_by(TimeEntry.clock_in.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_entries(
        self,
        user_id: UUID,
        approval_status: str | None = None,
        is_manual: bool | None = None,
        page: int = 1,
        page_size: int = 25,
    ) -> tuple[list[TimeEntry], int]:
        """Entries for a user, newest first, with the unpaginated total."""
        query = select(TimeEntry).where(TimeEntry.user_id == user_id)
        if approval_status is not None:
            query = query.where(TimeEntry.approval_status == approval_status)
        if is_manual is not None:
            query = query.where(TimeEntry.is_manual.is_(is_manual))

        count_query = select(func.count()).select_from(query.subquery())
        total = await self.session.scalar(count_query) or 0

        query = query.order_by(TimeEntry.clock_in.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def get_status(self, user_id: UUID) -> EntryStatus:
        """Clocked-in with the active entry, or clocked-out with the last clock-out."""
        active = await self.get_active_entry(user_id)
        if active is not None:
            return EntryStatus(status="clocked-in", active_entry=active, last_clock_out=None)

        last_clock_out = await self.session.scalar(
            select(func.max(TimeEntry.clock_out)).where(
                TimeEntry.user_id == user_id,
                TimeEntry.clock_out.is_not(None),
            )
        )
        if last_clock_out is not None:
            last_clock_out = to_utc(last_clock_out)
        return EntryStatus(status="clocked-out", active_entry=None, last_clock_out=last_clock_out)

    async def list_pending_entries(self) -> list[TimeEntry]:
        """Manual entries awaiting review, newest submission first."""
        result = await self.session.execute(
            select(TimeEntry)
            .where(
                TimeEntry.is_manual.is_(True),
                TimeEntry.approval_status == ApprovalStatus.PENDING.value,
            )
            .options(selectinload(TimeEntry.user))
            .order_by(TimeEntry.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_pending_entries(self) -> int:
        count = await self.session.scalar(
            select(func.count(TimeEntry.id)).where(
                TimeEntry.is_manual.is_(True),
                TimeEntry.approval_status == ApprovalStatus.PENDING.value,
            )
        )
        return count or 0

    async def get_review_stats(self) -> ReviewStats:
        """Dashboard counters. Weeks start on Monday, months on the 1st (UTC)."""
        now = self.clock.now()
        today = now.date()
        month_start = datetime.combine(today.replace(day=1), time.min, tzinfo=now.tzinfo)
        week_start = datetime.combine(
            today - timedelta(days=today.weekday()), time.min, tzinfo=now.tzinfo
        )

        manual_this_month = await self.session.scalar(
            select(func.count(TimeEntry.id)).where(
                TimeEntry.is_manual.is_(True),
                TimeEntry.clock_in >= month_start,
            )
        )
        approved_this_week = await self.session.scalar(
            select(func.count(TimeEntry.id)).where(
                TimeEntry.is_manual.is_(True),
                TimeEntry.approval_status == ApprovalStatus.APPROVED.value,
                TimeEntry.approval_date >= week_start,
            )
        )
        denied_this_week = await self.session.scalar(
            select(func.count(TimeEntry.id)).where(
                TimeEntry.is_manual.is_(True),
                TimeEntry.approval_status == ApprovalStatus.DENIED.value,
                TimeEntry.approval_date >= week_start,
            )
        )
        return ReviewStats(
            pending_entries=await self.count_pending_entries(),
            total_manual_this_month=manual_this_month or 0,
            approved_this_week=approved_this_week or 0,
            denied_this_week=denied_this_week or 0,
        )

    # ------------------------------------------------------------------
    # Clock in / out
    # ------------------------------------------------------------------

    async def clock_in(self, user_id: UUID) -> TimeEntry:
        """Start an automatic, auto-approved entry."""
        if await self.get_active_entry(user_id) is not None:
            raise ConflictError(
                ErrorCode.ALREADY_ACTIVE,
                "Already clocked in. Please clock out first.",
            )

        now = self.clock.now()
        entry = TimeEntry(
            user_id=user_id,
            clock_in=now,
            clock_out=None,
            is_manual=False,
            approval_status=ApprovalStatus.APPROVED.value,
            approval_notes=None,
            approved_by=None,
            approval_date=None,
            created_at=now,
        )
        self.session.add(entry)
        try:
            await self.session.flush()
        except IntegrityError:
            # Lost the race against a concurrent clock-in (one-active index)
            await self.session.rollback()
            raise ConflictError(
                ErrorCode.ALREADY_ACTIVE,
                "Already clocked in. Please clock out first.",
            )

        await self.audit.record(
            entry.id, user_id, AuditAction.CLOCK_IN, None, EntrySnapshot.of(entry)
        )
        logger.info("user %s clocked in (entry %s)", user_id, entry.id)
        self.notifier.notify(
            user_channel(user_id),
            EventName.CLOCK_IN,
            {"user_id": str(user_id), "clock_in": entry.clock_in.isoformat(), "entry_id": str(entry.id)},
        )
        return entry

    async def clock_out(self, user_id: UUID) -> TimeEntry:
        """Close the active entry. Approval status is left as is."""
        entry = await self.get_active_entry(user_id)
        if entry is None:
            raise ConflictError(
                ErrorCode.NO_ACTIVE_ENTRY,
                "No active clock-in found. Please clock in first.",
            )

        now = self.clock.now()
        if now <= entry.clock_in:
            raise ValidationError(
                ErrorCode.CLOCK_ORDER,
                "Clock out time must be after clock in time",
            )

        previous = EntrySnapshot.of(entry)
        result = await self.session.execute(
            update(TimeEntry)
            .where(TimeEntry.id == entry.id, TimeEntry.clock_out.is_(None))
            .values(clock_out=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                ErrorCode.NO_ACTIVE_ENTRY,
                "No active clock-in found. Please clock in first.",
            )
        await self.session.refresh(entry)

        await self.audit.record(
            entry.id, user_id, AuditAction.CLOCK_OUT, previous, EntrySnapshot.of(entry)
        )
        logger.info("user %s clocked out (entry %s)", user_id, entry.id)
        clock_out = entry.clock_out.isoformat() if entry.clock_out else None
        self.notifier.notify(
            user_channel(user_id),
            EventName.CLOCK_OUT,
            {
                "user_id": str(user_id),
                "clock_out": clock_out,
                "last_clock_out": clock_out,
                "entry_id": str(entry.id),
            },
        )
        return entry

    # ------------------------------------------------------------------
    # Manual entries
    # ------------------------------------------------------------------

    async def create_manual_entry(
        self,
        user_id: UUID,
        clock_in: datetime | None,
        clock_out: datetime | None,
    ) -> TimeEntry:
        """Submit a completed entry for admin review."""
        logger.debug("create manual entry attempt user=%s in=%s out=%s", user_id, clock_in, clock_out)
        if clock_in is None:
            raise ValidationError(ErrorCode.INVALID_INPUT, "Clock in time is required")
        if clock_out is None:
            raise ValidationError(
                ErrorCode.INVALID_INPUT,
                "Clock out time is required for manual entries",
            )

        clock_in = to_utc(clock_in)
        clock_out = to_utc(clock_out)
        TimeEntryStateMachine.validate_interval(
            clock_in, clock_out, self.settings.max_manual_entry_hours
        )
        if await self.overlap.has_overlap(user_id, clock_in, clock_out):
            raise ConflictError(ErrorCode.OVERLAP, "Time entry overlaps with existing entry")

        entry = TimeEntry(
            user_id=user_id,
            clock_in=clock_in,
            clock_out=clock_out,
            is_manual=True,
            approval_status=ApprovalStatus.PENDING.value,
            approval_notes=None,
            approved_by=None,
            approval_date=None,
            created_at=self.clock.now(),
        )
        self.session.add(entry)
        await self.session.flush()
        await self.audit.record(
            entry.id, user_id, AuditAction.CREATE, None, EntrySnapshot.of(entry)
        )
        logger.info("manual entry created user=%s entry=%s", user_id, entry.id)

        payload = {"user_id": str(user_id), "entry": entry_payload(entry)}
        self.notifier.notify(user_channel(user_id), EventName.MANUAL_ENTRY_CREATED, payload)
        self.notifier.notify(ADMIN_CHANNEL, EventName.PENDING_ENTRY_CREATED, payload)
        return entry

    async def update_entry(
        self,
        entry_id: UUID,
        user_id: UUID,
        clock_in: datetime | None,
        clock_out: datetime | None = None,
    ) -> UpdateOutcome:
        """Edit an entry's times.

        Returns Applied, Rejected(code) for any rule violation, or
        FlaggedForReview when the write failed unexpectedly and the entry
        was set back to pending instead. Omitting clock_out keeps the
        current clock-out.
        """
        logger.debug(
            "update entry attempt user=%s entry=%s in=%s out=%s",
            user_id, entry_id, clock_in, clock_out,
        )
        try:
            return await self._apply_update(entry_id, user_id, clock_in, clock_out)
        except SQLAlchemyError:
            logger.exception(
                "update entry failed - entering fallback user=%s entry=%s", user_id, entry_id
            )
            await self.session.rollback()
            flagged = await self.flag_for_review(entry_id, user_id)
            if flagged is None:
                return Rejected(ErrorCode.NOT_FOUND, "Time entry not found or access denied")
            return FlaggedForReview(flagged)

    async def _apply_update(
        self,
        entry_id: UUID,
        user_id: UUID,
        clock_in: datetime | None,
        clock_out: datetime | None,
    ) -> UpdateOutcome:
        entry = await self.get_entry(entry_id, user_id)
        if entry is None:
            return Rejected(ErrorCode.NOT_FOUND, "Time entry not found or access denied")
        if TimeEntryStateMachine.state_of(entry) == EntryState.ACTIVE:
            return Rejected(
                ErrorCode.ACTIVE_EDIT_FORBIDDEN,
                "Cannot edit an active (in-progress) time entry. Clock out first.",
            )
        if clock_in is None:
            return Rejected(ErrorCode.INVALID_INPUT, "Clock in time is required")

        new_clock_in = to_utc(clock_in)
        new_clock_out = to_utc(clock_out) if clock_out is not None else entry.clock_out

        try:
            TimeEntryStateMachine.validate_interval(
                new_clock_in, new_clock_out, self.settings.max_manual_entry_hours
            )
            if await self.overlap.has_overlap(
                user_id, new_clock_in, new_clock_out, exclude_entry_id=entry.id
            ):
                raise ConflictError(ErrorCode.OVERLAP, "Time entry overlaps with existing entry")
        except TimeEntryError as exc:
            return Rejected(exc.code, exc.message)

        changed = TimeEntryStateMachine.times_changed(entry, new_clock_in, new_clock_out)
        if TimeEntryStateMachine.is_noop_update(entry, changed):
            return Applied(entry, changed=False, reset_to_pending=False)

        reset = TimeEntryStateMachine.should_reset_to_pending(entry, changed)
        # Every applied edit leaves the entry pending
        try:
            TimeEntryStateMachine.validate_transition(
                entry.approval_status, ApprovalStatus.PENDING.value
            )
        except TimeEntryError as exc:
            return Rejected(exc.code, exc.message)

        previous = EntrySnapshot.of(entry)

        entry.clock_in = new_clock_in
        entry.clock_out = new_clock_out
        if reset:
            entry.is_manual = True
            entry.approval_status = ApprovalStatus.PENDING.value
        elif entry.approval_status is None:
            entry.approval_status = ApprovalStatus.PENDING.value
        await self.session.flush()

        await self.audit.record(
            entry.id, user_id, AuditAction.UPDATE, previous, EntrySnapshot.of(entry)
        )
        logger.info(
            "time entry updated user=%s entry=%s status=%s", user_id, entry.id, entry.approval_status
        )

        payload = {"user_id": str(user_id), "entry": entry_payload(entry)}
        self.notifier.notify(user_channel(user_id), EventName.MANUAL_ENTRY_UPDATED, payload)
        if reset:
            self.notifier.notify(ADMIN_CHANNEL, EventName.PENDING_ENTRY_UPDATED, payload)
        return Applied(entry, changed=True, reset_to_pending=reset)

    async def flag_for_review(self, entry_id: UUID, user_id: UUID) -> TimeEntry | None:
        """Force an entry to manual + pending after a failed edit.

        Returns None when the entry no longer exists for this user. Errors
        raised here propagate; there is no further fallback.
        """
        entry = await self.get_entry(entry_id, user_id)
        if entry is None:
            return None

        TimeEntryStateMachine.validate_transition(
            entry.approval_status, ApprovalStatus.PENDING.value
        )
        previous = EntrySnapshot.of(entry)
        entry.approval_status = ApprovalStatus.PENDING.value
        entry.is_manual = True
        await self.session.flush()

        await self.audit.record(
            entry.id, user_id, AuditAction.FALLBACK_FLAG, previous, EntrySnapshot.of(entry)
        )
        logger.warning("entry flagged for review after update failure user=%s entry=%s", user_id, entry.id)

        payload = {"user_id": str(user_id), "entry": entry_payload(entry), "review_flagged": True}
        self.notifier.notify(user_channel(user_id), EventName.MANUAL_ENTRY_UPDATED, payload)
        self.notifier.notify(ADMIN_CHANNEL, EventName.PENDING_ENTRY_FLAGGED, payload)
        return entry

    async def delete_entry(self, entry_id: UUID, user_id: UUID) -> None:
        """Delete a completed entry owned by the user."""
        entry = await self.get_entry(entry_id, user_id)
        if entry is None:
            raise NotFoundError()
        if TimeEntryStateMachine.state_of(entry) == EntryState.ACTIVE:
            raise ConflictError(
                ErrorCode.ACTIVE_DELETE_FORBIDDEN,
                "Cannot delete an active time entry. Please clock out first.",
            )

        await self.audit.record(
            entry.id, user_id, AuditAction.DELETE, EntrySnapshot.of(entry), None
        )
        await self.session.delete(entry)
        await self.session.flush()
        logger.info("time entry deleted user=%s entry=%s", user_id, entry_id)
        self.notifier.notify(
            user_channel(user_id),
            EventName.ENTRY_DELETED,
            {"user_id": str(user_id), "entry_id": str(entry_id)},
        )

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    async def review_entry(
        self,
        entry_id: UUID,
        admin_id: UUID,
        status: str,
        notes: str | None = None,
    ) -> TimeEntry:
        """Approve or deny a pending manual entry.

        The status check and the write are one conditional UPDATE; of two
        concurrent reviews exactly one changes the row and the other gets
        ALREADY_REVIEWED.
        """
        decision = TimeEntryStateMachine.validate_review_decision(status)

        entry = await self.get_entry(entry_id)
        if entry is None or not entry.is_manual:
            raise NotFoundError("Manual time entry not found")
        if not TimeEntryStateMachine.can_review(entry):
            raise ConflictError(ErrorCode.ALREADY_REVIEWED, "Time entry has already been reviewed")
        TimeEntryStateMachine.validate_transition(entry.approval_status, decision.value)
        notes = notes or None

        previous = EntrySnapshot.of(entry)
        result = await self.session.execute(
            update(TimeEntry)
            .where(
                TimeEntry.id == entry_id,
                TimeEntry.is_manual.is_(True),
                TimeEntry.approval_status == ApprovalStatus.PENDING.value,
            )
            .values(
                approval_status=decision.value,
                approved_by=admin_id,
                approval_date=self.clock.now(),
                approval_notes=func.coalesce(notes, TimeEntry.approval_notes),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.session.refresh(entry)
            raise ConflictError(ErrorCode.ALREADY_REVIEWED, "Time entry has already been reviewed")
        await self.session.refresh(entry)

        action = AuditAction.APPROVE if decision == ApprovalStatus.APPROVED else AuditAction.DENY
        await self.audit.record(entry.id, admin_id, action, previous, EntrySnapshot.of(entry))
        logger.info("time entry %s %s by %s", entry.id, decision.value, admin_id)

        self.notifier.notify(
            user_channel(entry.user_id),
            EventName.ENTRY_REVIEWED,
            {
                "user_id": str(entry.user_id),
                "entry": entry_payload(entry),
                "approval_notes": entry.approval_notes,
            },
        )
        return entry
