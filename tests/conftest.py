"""Pytest fixtures for time clock engine tests."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from timeclock_engine.clock import FrozenClock
from timeclock_engine.config import Settings, get_settings
from timeclock_engine.database import make_session_factory
from timeclock_engine.events import Broadcaster
from timeclock_engine.models import Base, TimeEntry, User
from timeclock_engine.services import TimeEntryService

# Monday 2025-03-10 12:00 UTC
NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)

EMPLOYEE_ID = UUID("11111111-1111-4111-8111-111111111111")
OTHER_EMPLOYEE_ID = UUID("22222222-2222-4222-8222-222222222222")
ADMIN_ID = UUID("33333333-3333-4333-8333-333333333333")
OTHER_ADMIN_ID = UUID("44444444-4444-4444-8444-444444444444")
SUPER_USER_ID = UUID("55555555-5555-4555-8555-555555555555")


def at(hour: int, minute: int = 0, day: int = 10, month: int = 3, year: int = 2025) -> datetime:
    """Shorthand for an aware UTC instant, by default on 2025-03-10."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_user(user_id: UUID, email: str, **overrides) -> User:
    """User with every column populated."""
    values = dict(
        id=user_id,
        email=email,
        first_name=email.split("@")[0].title(),
        last_name="Tester",
        is_admin=False,
        is_super_user=False,
        is_provisioned=True,
        hourly_rate=Decimal("20.00"),
        tax_rate=Decimal("25.00"),
        pay_schedule="weekly",
        overtime_enabled=True,
        overtime_rate=Decimal("1.5"),
        time_format="12",
        timezone="America/New_York",
        week_start_day="monday",
        email_notifications=True,
        email_rejection_notifications=True,
        reminder_notifications=True,
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return User(**values)


def make_entry(
    user_id: UUID,
    clock_in: datetime,
    clock_out: datetime | None,
    *,
    is_manual: bool = True,
    approval_status: str | None = "pending",
) -> TimeEntry:
    """Time entry with every column populated."""
    return TimeEntry(
        user_id=user_id,
        clock_in=clock_in,
        clock_out=clock_out,
        is_manual=is_manual,
        approval_status=approval_status,
        approval_notes=None,
        approved_by=None,
        approval_date=None,
        created_at=clock_in,
    )


@pytest.fixture
def test_settings() -> Settings:
    return dataclasses.replace(
        get_settings(),
        database_url="sqlite+aiosqlite://",
        overtime_multiplier=Decimal("1.5"),
        max_manual_entry_hours=24,
        default_pay_schedule="bi-weekly",
        sse_heartbeat_seconds=0.05,
    )


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/timeclock_test.db", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def broadcaster() -> Broadcaster:
    return Broadcaster()


@pytest.fixture
async def users(session_factory) -> dict[str, User]:
    """Two employees, two admins and a super user, committed."""
    created = {
        "employee": make_user(EMPLOYEE_ID, "alice@example.com"),
        "other_employee": make_user(OTHER_EMPLOYEE_ID, "bob@example.com", pay_schedule="bi-weekly"),
        "admin": make_user(ADMIN_ID, "admin@example.com", is_admin=True),
        "other_admin": make_user(OTHER_ADMIN_ID, "admin2@example.com", is_admin=True),
        "super_user": make_user(
            SUPER_USER_ID, "root@example.com", is_admin=True, is_super_user=True
        ),
    }
    async with session_factory() as setup:
        setup.add_all(created.values())
        await setup.commit()
    return created


@pytest.fixture
def service(session, clock, broadcaster, test_settings, users) -> TimeEntryService:
    return TimeEntryService(session, clock=clock, notifier=broadcaster, settings=test_settings)


@pytest.fixture
async def add_entry(session_factory, users):
    """Insert and commit an entry, returning its id."""

    async def _add(
        clock_in: datetime,
        clock_out: datetime | None,
        *,
        user_id: UUID = EMPLOYEE_ID,
        is_manual: bool = True,
        approval_status: str | None = "pending",
    ) -> UUID:
        async with session_factory() as setup:
            entry = make_entry(
                user_id,
                clock_in,
                clock_out,
                is_manual=is_manual,
                approval_status=approval_status,
            )
            setup.add(entry)
            await setup.commit()
            return entry.id

    return _add


def hours(n: float) -> timedelta:
    return timedelta(hours=n)
