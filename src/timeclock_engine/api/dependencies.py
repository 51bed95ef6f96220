"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from timeclock_engine.clock import Clock, SystemClock
from timeclock_engine.config import Settings, get_settings
from timeclock_engine.database import init_db
from timeclock_engine.events import Broadcaster, DeferredNotifier
from timeclock_engine.models import User
from timeclock_engine.services import (
    PayrollService,
    TimeEntryService,
    UserService,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or SystemClock()


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


async def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract the caller's user ID from header."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header is required",
        )
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-ID format",
        )


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
UserId = Annotated[UUID, Depends(get_user_id)]
AppClock = Annotated[Clock, Depends(get_clock)]
AppBroadcaster = Annotated[Broadcaster, Depends(get_broadcaster)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_outbox(broadcaster: AppBroadcaster) -> DeferredNotifier:
    """Per-request event buffer, flushed by the route after commit."""
    return DeferredNotifier(broadcaster)


Outbox = Annotated[DeferredNotifier, Depends(get_outbox)]


async def get_current_user(db: DbSession, user_id: UserId) -> User:
    """Load the calling user."""
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )
    return user


async def get_admin_user(db: DbSession, user_id: UserId) -> User:
    """Load the calling user and require the admin role."""
    return await UserService(db).require_admin(user_id)


CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]


def get_time_entry_service(
    db: DbSession,
    clock: AppClock,
    outbox: Outbox,
    settings: AppSettings,
) -> TimeEntryService:
    return TimeEntryService(db, clock=clock, notifier=outbox, settings=settings)


def get_payroll_service(
    db: DbSession,
    clock: AppClock,
    settings: AppSettings,
) -> PayrollService:
    return PayrollService(db, clock=clock, settings=settings)


def get_user_service(db: DbSession) -> UserService:
    return UserService(db)


TimeEntries = Annotated[TimeEntryService, Depends(get_time_entry_service)]
Payroll = Annotated[PayrollService, Depends(get_payroll_service)]
Users = Annotated[UserService, Depends(get_user_service)]
