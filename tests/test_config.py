"""Tests for settings loading."""

import dataclasses
from decimal import Decimal

import pytest

from timeclock_engine.config import Settings


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for key in (
            "DATABASE_URL",
            "PORT",
            "DEBUG",
            "OVERTIME_MULTIPLIER",
            "MAX_MANUAL_ENTRY_HOURS",
            "DEFAULT_PAY_SCHEDULE",
        ):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setattr("timeclock_engine.config.load_dotenv", lambda: None)

        settings = Settings.from_env()

        assert settings.database_url.startswith("postgresql+asyncpg://")
        assert settings.port == 8000
        assert settings.debug is False
        assert settings.overtime_multiplier == Decimal("1.5")
        assert settings.max_manual_entry_hours == 24
        assert settings.default_pay_schedule == "bi-weekly"

    def test_overrides(self, monkeypatch):
        monkeypatch.setattr("timeclock_engine.config.load_dotenv", lambda: None)
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("OVERTIME_MULTIPLIER", "2.0")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.PORT == 9000
        assert settings.DEBUG is True
        assert settings.overtime_multiplier == Decimal("2.0")
        assert settings.log_level == "DEBUG"

    def test_cors_origins_list(self, monkeypatch):
        monkeypatch.setattr("timeclock_engine.config.load_dotenv", lambda: None)
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")

        settings = Settings.from_env()

        assert settings.cors_origins == ("https://a.example.com", "https://b.example.com")

    def test_sqlite_detection(self, test_settings):
        assert test_settings.uses_sqlite is True
        assert dataclasses.replace(
            test_settings, database_url="postgresql+asyncpg://db/timeclock"
        ).uses_sqlite is False

    @pytest.mark.parametrize(
        "key,value",
        [
            ("OVERTIME_MULTIPLIER", "0.5"),
            ("MAX_MANUAL_ENTRY_HOURS", "0"),
            ("DEFAULT_PAY_SCHEDULE", "fortnightly"),
            ("SSE_HEARTBEAT_SECONDS", "0"),
        ],
    )
    def test_rejects_bad_values(self, monkeypatch, key, value):
        monkeypatch.setattr("timeclock_engine.config.load_dotenv", lambda: None)
        monkeypatch.setenv(key, value)

        with pytest.raises(ValueError):
            Settings.from_env()
