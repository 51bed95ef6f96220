"""Integration test fixtures: the FastAPI app over a SQLite database."""

from collections.abc import AsyncGenerator
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient

from timeclock_engine.api.app import create_app
from timeclock_engine.database import dispose_db, use_engine


def as_user(user_id: UUID) -> dict[str, str]:
    """Identity header for a request."""
    return {"X-User-ID": str(user_id)}


@pytest.fixture
async def app(engine, test_settings, clock, broadcaster, users):
    """Application bound to the test engine, clock and broadcaster."""
    use_engine(engine)
    application = create_app(settings=test_settings, clock=clock, broadcaster=broadcaster)
    yield application
    await dispose_db()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
