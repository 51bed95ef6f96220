"""Tests for persistence constraints and the UTC boundary."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from timeclock_engine.models import TimeEntry

from tests.conftest import EMPLOYEE_ID, OTHER_EMPLOYEE_ID, at, make_entry


class TestTimeEntryConstraints:
    """Database-level guarantees."""

    async def test_one_open_entry_per_user(self, session, users):
        session.add(make_entry(EMPLOYEE_ID, at(8), None, is_manual=False, approval_status="approved"))
        await session.commit()

        session.add(make_entry(EMPLOYEE_ID, at(9), None, is_manual=False, approval_status="approved"))
        with pytest.raises(IntegrityError):
            await session.commit()

    async def test_open_entries_of_different_users(self, session, users):
        session.add(make_entry(EMPLOYEE_ID, at(8), None, is_manual=False, approval_status="approved"))
        session.add(make_entry(OTHER_EMPLOYEE_ID, at(8), None, is_manual=False, approval_status="approved"))
        await session.commit()

    async def test_many_closed_entries(self, session, users):
        session.add(make_entry(EMPLOYEE_ID, at(8), at(9)))
        session.add(make_entry(EMPLOYEE_ID, at(10), at(11)))
        await session.commit()

    async def test_clock_out_after_clock_in(self, session, users):
        session.add(make_entry(EMPLOYEE_ID, at(9), at(9)))
        with pytest.raises(IntegrityError):
            await session.commit()

    async def test_status_values(self, session, users):
        session.add(make_entry(EMPLOYEE_ID, at(8), at(9), approval_status="maybe"))
        with pytest.raises(IntegrityError):
            await session.commit()


class TestUTCBoundary:
    """Instants come back aware and in UTC."""

    async def test_offset_input_is_normalized(self, session_factory, users):
        local = datetime(2025, 3, 10, 8, tzinfo=ZoneInfo("America/New_York"))
        async with session_factory() as writer:
            writer.add(make_entry(EMPLOYEE_ID, local, local + timedelta(hours=2)))
            await writer.commit()

        async with session_factory() as reader:
            entry = (await reader.execute(select(TimeEntry))).scalar_one()

        assert entry.clock_in.tzinfo == timezone.utc
        assert entry.clock_in == datetime(2025, 3, 10, 12, tzinfo=timezone.utc)
        assert entry.hours_worked == Decimal("2")

    def test_hours_worked_open_entry(self):
        entry = make_entry(EMPLOYEE_ID, at(8), None)
        assert entry.is_active
        assert entry.hours_worked is None
