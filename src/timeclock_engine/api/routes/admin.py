"""Admin endpoints: review queue, payroll report, user settings."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Request
from fastapi.responses import StreamingResponse

from timeclock_engine.api.dependencies import (
    AdminUser,
    AppBroadcaster,
    AppClock,
    AppSettings,
    DbSession,
    Outbox,
    Payroll,
    TimeEntries,
    Users,
)
from timeclock_engine.api.routes.time_entries import status_response
from timeclock_engine.api.schemas import (
    ApprovalRequest,
    AuditHistoryResponse,
    AuditRecordResponse,
    ErrorResponse,
    PayrollSummaryResponse,
    PendingEntriesResponse,
    PendingEntryResponse,
    PeriodHoursResponse,
    ReviewStatsResponse,
    StatusResponse,
    TimeEntryListResponse,
    TimeEntryResponse,
    UserDirectoryEntry,
    UserDirectoryResponse,
    UserSettingsResponse,
    UserSettingsUpdate,
)
from timeclock_engine.api.streaming import sse_response
from timeclock_engine.events import ADMIN_CHANNEL, EventName, NotificationEvent
from timeclock_engine.services import NotFoundError, UserSummary

router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================================================
# Review queue
# ============================================================================


@router.get("/pending-entries", response_model=PendingEntriesResponse)
async def list_pending_entries(admin: AdminUser, service: TimeEntries) -> PendingEntriesResponse:
    """Manual entries awaiting review, newest first."""
    entries = await service.list_pending_entries()
    items = []
    for entry in entries:
        item = PendingEntryResponse.model_validate(entry)
        item.user_email = entry.user.email
        item.user_name = entry.user.display_name
        items.append(item)
    return PendingEntriesResponse(items=items, total=len(items))


@router.patch(
    "/entry/{entry_id}/approval",
    response_model=TimeEntryResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def review_entry(
    db: DbSession,
    admin: AdminUser,
    service: TimeEntries,
    outbox: Outbox,
    entry_id: Annotated[UUID, Path()],
    payload: ApprovalRequest,
) -> TimeEntryResponse:
    """Approve or deny a pending manual entry."""
    entry = await service.review_entry(entry_id, admin.id, payload.status, payload.notes)
    await db.commit()
    outbox.flush()
    return TimeEntryResponse.model_validate(entry)


@router.get("/stats", response_model=ReviewStatsResponse)
async def get_stats(admin: AdminUser, service: TimeEntries) -> ReviewStatsResponse:
    """Review dashboard counters."""
    return ReviewStatsResponse.model_validate(await service.get_review_stats())


@router.get(
    "/time-entry/{entry_id}/history",
    response_model=AuditHistoryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_entry_history(
    admin: AdminUser,
    service: TimeEntries,
    entry_id: Annotated[UUID, Path()],
) -> AuditHistoryResponse:
    """Audit trail of one entry, oldest first. Survives entry deletion."""
    records = await service.audit.history(entry_id)
    if not records and await service.get_entry(entry_id) is None:
        raise NotFoundError()
    return AuditHistoryResponse(
        time_entry_id=entry_id,
        items=[AuditRecordResponse.model_validate(r) for r in records],
    )


# ============================================================================
# Payroll
# ============================================================================


@router.get("/payroll/period-hours", response_model=PeriodHoursResponse)
async def period_hours(admin: AdminUser, payroll: Payroll, clock: AppClock) -> PeriodHoursResponse:
    """Current-period hours and estimated gross pay for every provisioned user."""
    summaries = await payroll.period_hours()
    return PeriodHoursResponse(
        generated_at=clock.now(),
        users=[PayrollSummaryResponse.model_validate(s) for s in summaries],
    )


# ============================================================================
# Per-user views
# ============================================================================


def directory_entry(summary: UserSummary) -> UserDirectoryEntry:
    item = UserDirectoryEntry.model_validate(summary.user)
    item.total_entries = summary.total_entries
    item.manual_entries = summary.manual_entries
    return item


@router.get("/users", response_model=UserDirectoryResponse)
async def list_users(admin: AdminUser, users: Users) -> UserDirectoryResponse:
    """All users with pay settings and entry counts."""
    items = [directory_entry(s) for s in await users.list_users()]
    return UserDirectoryResponse(users=items, total=len(items))


@router.get(
    "/users/{user_id}/full",
    response_model=UserDirectoryEntry,
    responses={404: {"model": ErrorResponse}},
)
async def get_user_details(
    admin: AdminUser,
    users: Users,
    user_id: Annotated[UUID, Path()],
) -> UserDirectoryEntry:
    return directory_entry(await users.get_user_summary(user_id))


@router.get(
    "/users/{user_id}/time-entries",
    response_model=TimeEntryListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_user_entries(
    admin: AdminUser,
    users: Users,
    service: TimeEntries,
    user_id: Annotated[UUID, Path()],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 25,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> TimeEntryListResponse:
    """Entries of any user."""
    await users.get_user(user_id)
    entries, total = await service.list_entries(
        user_id, approval_status=status_filter, page=page, page_size=page_size
    )
    return TimeEntryListResponse(
        items=[TimeEntryResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/users/{user_id}/time-status",
    response_model=StatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_user_status(
    admin: AdminUser,
    users: Users,
    service: TimeEntries,
    user_id: Annotated[UUID, Path()],
) -> StatusResponse:
    await users.get_user(user_id)
    return status_response(await service.get_status(user_id))


@router.get(
    "/user/{user_id}/settings",
    response_model=UserSettingsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_user_settings(
    admin: AdminUser,
    users: Users,
    user_id: Annotated[UUID, Path()],
) -> UserSettingsResponse:
    return UserSettingsResponse.model_validate(await users.get_user(user_id))


@router.put(
    "/user/{user_id}/settings",
    response_model=UserSettingsResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_user_settings(
    db: DbSession,
    admin: AdminUser,
    users: Users,
    user_id: Annotated[UUID, Path()],
    payload: UserSettingsUpdate,
) -> UserSettingsResponse:
    """Update a user's pay settings, subject to the role hierarchy."""
    updated = await users.update_user_settings(
        admin.id, user_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    await db.refresh(updated)
    return UserSettingsResponse.model_validate(updated)


# ============================================================================
# Live updates
# ============================================================================


@router.get("/time/stream")
async def stream(
    request: Request,
    db: DbSession,
    admin: AdminUser,
    service: TimeEntries,
    broadcaster: AppBroadcaster,
    settings: AppSettings,
) -> StreamingResponse:
    """Server-sent events for review queue changes."""
    snapshot = NotificationEvent(
        channel=ADMIN_CHANNEL,
        event=EventName.PENDING_SUMMARY,
        payload={"pending_count": await service.count_pending_entries()},
    )
    # The stream outlives the request; give the connection back first
    await db.close()
    subscription = broadcaster.subscribe(ADMIN_CHANNEL)
    return sse_response(
        request, broadcaster, subscription, [snapshot], settings.sse_heartbeat_seconds
    )
