"""Tests for user settings and the pay-edit hierarchy."""

from decimal import Decimal
from uuid import uuid4

import pytest

from timeclock_engine.services import (
    ErrorCode,
    NotFoundError,
    PermissionDenied,
    UserService,
    ValidationError,
)

from tests.conftest import ADMIN_ID, EMPLOYEE_ID, OTHER_ADMIN_ID, OTHER_EMPLOYEE_ID, SUPER_USER_ID, at


@pytest.fixture
def user_service(session, users) -> UserService:
    return UserService(session)


class TestPreferences:
    """Self-service preference changes."""

    async def test_update_preferences(self, user_service, session):
        user = await user_service.update_preferences(
            EMPLOYEE_ID,
            {"time_format": "24", "week_start_day": "Sunday", "reminder_notifications": False},
        )
        await session.commit()

        assert user.time_format == "24"
        assert user.week_start_day == "sunday"
        assert user.reminder_notifications is False

    async def test_pay_fields_are_ignored(self, user_service):
        with pytest.raises(ValidationError) as exc_info:
            await user_service.update_preferences(EMPLOYEE_ID, {"hourly_rate": 99})
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    @pytest.mark.parametrize(
        "changes",
        [
            {"time_format": "36"},
            {"week_start_day": "friday"},
            {"timezone": "Mars/Olympus_Mons"},
        ],
    )
    async def test_invalid_preferences(self, user_service, changes):
        with pytest.raises(ValidationError):
            await user_service.update_preferences(EMPLOYEE_ID, changes)

    async def test_unknown_user(self, user_service):
        with pytest.raises(NotFoundError):
            await user_service.update_preferences(uuid4(), {"time_format": "24"})


class TestPaySettingsHierarchy:
    """Who may edit whose pay."""

    async def test_admin_edits_employee(self, user_service, session):
        user = await user_service.update_user_settings(
            ADMIN_ID,
            EMPLOYEE_ID,
            {"hourly_rate": "25.50", "pay_schedule": "monthly", "overtime_enabled": False},
        )
        await session.commit()

        assert user.hourly_rate == Decimal("25.50")
        assert user.pay_schedule == "monthly"
        assert user.overtime_enabled is False
        assert user.overtime_rate == Decimal("1.5")

    async def test_admin_cannot_edit_own_pay(self, user_service):
        with pytest.raises(PermissionDenied) as exc_info:
            await user_service.update_user_settings(ADMIN_ID, ADMIN_ID, {"hourly_rate": 100})
        assert exc_info.value.code == ErrorCode.FORBIDDEN

    async def test_admin_cannot_edit_other_admin(self, user_service):
        with pytest.raises(PermissionDenied):
            await user_service.update_user_settings(ADMIN_ID, OTHER_ADMIN_ID, {"hourly_rate": 100})

    async def test_admin_cannot_edit_super_user(self, user_service):
        with pytest.raises(PermissionDenied):
            await user_service.update_user_settings(ADMIN_ID, SUPER_USER_ID, {"hourly_rate": 100})

    async def test_super_user_edits_anyone(self, user_service, session):
        user = await user_service.update_user_settings(SUPER_USER_ID, ADMIN_ID, {"tax_rate": 30})
        own = await user_service.update_user_settings(SUPER_USER_ID, SUPER_USER_ID, {"tax_rate": 10})
        await session.commit()

        assert user.tax_rate == Decimal("30")
        assert own.tax_rate == Decimal("10")

    async def test_employee_cannot_edit_pay(self, user_service):
        with pytest.raises(PermissionDenied):
            await user_service.update_user_settings(EMPLOYEE_ID, EMPLOYEE_ID, {"hourly_rate": 100})

    @pytest.mark.parametrize(
        "changes",
        [
            {"hourly_rate": -1},
            {"hourly_rate": "abc"},
            {"tax_rate": 101},
            {"pay_schedule": "fortnightly"},
            {},
        ],
    )
    async def test_invalid_pay_settings(self, user_service, changes):
        with pytest.raises(ValidationError):
            await user_service.update_user_settings(ADMIN_ID, EMPLOYEE_ID, changes)

    async def test_missing_target(self, user_service):
        with pytest.raises(NotFoundError):
            await user_service.update_user_settings(ADMIN_ID, uuid4(), {"hourly_rate": 1})


class TestRequireAdmin:
    async def test_admin_and_super_user_pass(self, user_service):
        assert (await user_service.require_admin(ADMIN_ID)).id == ADMIN_ID
        assert (await user_service.require_admin(SUPER_USER_ID)).id == SUPER_USER_ID

    async def test_employee_rejected(self, user_service):
        with pytest.raises(PermissionDenied):
            await user_service.require_admin(EMPLOYEE_ID)


class TestUserDirectory:
    """Admin listing of users with entry counts."""

    async def test_list_users_with_counts(self, user_service, add_entry):
        await add_entry(at(8), at(9))
        await add_entry(at(10), at(11))
        await add_entry(at(12), at(13), is_manual=False, approval_status="approved")
        await add_entry(at(8), at(9), user_id=OTHER_EMPLOYEE_ID)

        summaries = await user_service.list_users()

        # Same signup instant for everyone, so email decides
        assert [s.user.email for s in summaries] == [
            "admin2@example.com",
            "admin@example.com",
            "alice@example.com",
            "bob@example.com",
            "root@example.com",
        ]
        counts = {s.user.id: (s.total_entries, s.manual_entries) for s in summaries}
        assert counts[EMPLOYEE_ID] == (3, 2)
        assert counts[OTHER_EMPLOYEE_ID] == (1, 1)
        assert counts[ADMIN_ID] == (0, 0)

    async def test_user_summary(self, user_service, add_entry):
        await add_entry(at(8), at(9), is_manual=False, approval_status="approved")

        summary = await user_service.get_user_summary(EMPLOYEE_ID)

        assert summary.user.email == "alice@example.com"
        assert summary.total_entries == 1
        assert summary.manual_entries == 0

    async def test_unknown_user_summary(self, user_service):
        with pytest.raises(NotFoundError):
            await user_service.get_user_summary(uuid4())
