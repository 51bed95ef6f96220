"""Employee time clock endpoints."""

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Path, Query, Request, Response, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.exc import SQLAlchemyError

from timeclock_engine.api.dependencies import (
    AppBroadcaster,
    AppSettings,
    CurrentUser,
    DbSession,
    Outbox,
    Payroll,
    TimeEntries,
    Users,
)
from timeclock_engine.api.errors import error_response
from timeclock_engine.api.schemas import (
    ErrorResponse,
    ManualEntryRequest,
    PayrollSummaryResponse,
    PreferencesUpdate,
    StatusResponse,
    TimeEntryListResponse,
    TimeEntryResponse,
    UpdateEntryResponse,
    UserSettingsResponse,
)
from timeclock_engine.api.streaming import sse_response
from timeclock_engine.events import EventName, NotificationEvent, user_channel
from timeclock_engine.services import (
    Applied,
    EntryStatus,
    ErrorCode,
    FlaggedForReview,
    Rejected,
)
from timeclock_engine.services.time_entry_service import entry_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/time", tags=["time"])


def status_payload(entry_status: EntryStatus) -> dict[str, Any]:
    return {
        "status": entry_status.status,
        "active_entry": (
            entry_payload(entry_status.active_entry) if entry_status.active_entry else None
        ),
        "last_clock_out": (
            entry_status.last_clock_out.isoformat() if entry_status.last_clock_out else None
        ),
    }


def status_response(entry_status: EntryStatus) -> StatusResponse:
    return StatusResponse(
        status=entry_status.status,
        is_clocked_in=entry_status.is_clocked_in,
        active_entry=(
            TimeEntryResponse.model_validate(entry_status.active_entry)
            if entry_status.active_entry
            else None
        ),
        last_clock_out=entry_status.last_clock_out,
    )


# ============================================================================
# Clock in / out
# ============================================================================


@router.post(
    "/clock-in",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def clock_in(
    db: DbSession, user: CurrentUser, service: TimeEntries, outbox: Outbox
) -> TimeEntryResponse:
    """Start a work session now."""
    entry = await service.clock_in(user.id)
    await db.commit()
    outbox.flush()
    return TimeEntryResponse.model_validate(entry)


@router.post(
    "/clock-out",
    response_model=TimeEntryResponse,
    responses={409: {"model": ErrorResponse}},
)
async def clock_out(
    db: DbSession, user: CurrentUser, service: TimeEntries, outbox: Outbox
) -> TimeEntryResponse:
    """Close the active work session now."""
    entry = await service.clock_out(user.id)
    await db.commit()
    outbox.flush()
    return TimeEntryResponse.model_validate(entry)


@router.get("/status", response_model=StatusResponse)
async def get_status(user: CurrentUser, service: TimeEntries) -> StatusResponse:
    """Current clocked-in/out status."""
    return status_response(await service.get_status(user.id))


# ============================================================================
# Entries
# ============================================================================


@router.get("/entries", response_model=TimeEntryListResponse)
async def list_entries(
    user: CurrentUser,
    service: TimeEntries,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 25,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    is_manual: bool | None = None,
) -> TimeEntryListResponse:
    """List the caller's entries, newest first."""
    entries, total = await service.list_entries(
        user.id,
        approval_status=status_filter,
        is_manual=is_manual,
        page=page,
        page_size=page_size,
    )
    return TimeEntryListResponse(
        items=[TimeEntryResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/entry",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_manual_entry(
    db: DbSession,
    user: CurrentUser,
    service: TimeEntries,
    outbox: Outbox,
    payload: ManualEntryRequest,
) -> TimeEntryResponse:
    """Submit a manual entry for review."""
    entry = await service.create_manual_entry(user.id, payload.clock_in, payload.clock_out)
    await db.commit()
    outbox.flush()
    return TimeEntryResponse.model_validate(entry)


@router.put(
    "/entry/{entry_id}",
    response_model=UpdateEntryResponse,
    responses={
        202: {"model": UpdateEntryResponse},
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def update_entry(
    db: DbSession,
    user: CurrentUser,
    service: TimeEntries,
    outbox: Outbox,
    entry_id: Annotated[UUID, Path()],
    payload: ManualEntryRequest,
) -> Response:
    """Edit an entry's times.

    A failed write is not reported as an error: the entry is flagged for
    review instead and the response is 202 with review_flagged set.
    """
    try:
        outcome = await service.update_entry(
            entry_id, user.id, payload.clock_in, payload.clock_out
        )
    except SQLAlchemyError:
        logger.exception("fallback flag failed user=%s entry=%s", user.id, entry_id)
        await db.rollback()
        outbox.discard()
        return error_response(ErrorCode.FALLBACK_FAIL, "Internal server error")

    if isinstance(outcome, Rejected):
        await db.rollback()
        outbox.discard()
        return error_response(outcome.code, outcome.message)

    await db.commit()
    outbox.flush()

    if isinstance(outcome, FlaggedForReview):
        body = UpdateEntryResponse(
            entry=TimeEntryResponse.model_validate(outcome.entry),
            changed=False,
            reset_to_pending=True,
            review_flagged=True,
            message="Update could not be applied; entry flagged for admin review",
        )
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=body.model_dump(mode="json"),
        )

    if not isinstance(outcome, Applied):
        raise TypeError(f"unexpected update outcome: {outcome!r}")
    if not outcome.changed:
        message = "No changes"
    elif outcome.reset_to_pending:
        message = "Time entry updated and submitted for review"
    else:
        message = "Time entry updated"
    body = UpdateEntryResponse(
        entry=TimeEntryResponse.model_validate(outcome.entry),
        changed=outcome.changed,
        reset_to_pending=outcome.reset_to_pending,
        message=message,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))


@router.delete(
    "/entry/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_entry(
    db: DbSession,
    user: CurrentUser,
    service: TimeEntries,
    outbox: Outbox,
    entry_id: Annotated[UUID, Path()],
) -> Response:
    """Delete one of the caller's completed entries."""
    await service.delete_entry(entry_id, user.id)
    await db.commit()
    outbox.flush()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Live updates
# ============================================================================


@router.get("/stream")
async def stream(
    request: Request,
    db: DbSession,
    user: CurrentUser,
    service: TimeEntries,
    broadcaster: AppBroadcaster,
    settings: AppSettings,
) -> StreamingResponse:
    """Server-sent events for the caller's own clock and entry changes."""
    channel = user_channel(user.id)
    snapshot = NotificationEvent(
        channel=channel,
        event=EventName.STATUS,
        payload=status_payload(await service.get_status(user.id)),
    )
    # The stream outlives the request; give the connection back first
    await db.close()
    subscription = broadcaster.subscribe(channel)
    return sse_response(
        request, broadcaster, subscription, [snapshot], settings.sse_heartbeat_seconds
    )


# ============================================================================
# Settings and payroll
# ============================================================================


@router.get("/settings", response_model=UserSettingsResponse)
async def get_own_settings(user: CurrentUser) -> UserSettingsResponse:
    """The caller's pay settings (read-only) and preferences."""
    return UserSettingsResponse.model_validate(user)


@router.put(
    "/settings",
    response_model=UserSettingsResponse,
    responses={400: {"model": ErrorResponse}},
)
async def update_own_settings(
    db: DbSession,
    user: CurrentUser,
    users: Users,
    payload: PreferencesUpdate,
) -> UserSettingsResponse:
    """Update the caller's preferences. Pay settings are admin-only."""
    updated = await users.update_preferences(user.id, payload.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(updated)
    return UserSettingsResponse.model_validate(updated)


@router.get("/payroll", response_model=PayrollSummaryResponse)
async def get_payroll(user: CurrentUser, payroll: Payroll) -> PayrollSummaryResponse:
    """Hours and estimated gross pay for the caller's current pay period."""
    summary = await payroll.summary_for_user(user.id)
    return PayrollSummaryResponse.model_validate(summary)
