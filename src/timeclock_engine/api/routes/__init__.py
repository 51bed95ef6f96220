"""API routes."""

from timeclock_engine.api.routes.admin import router as admin_router
from timeclock_engine.api.routes.health import router as health_router
from timeclock_engine.api.routes.time_entries import router as time_router

__all__ = ["admin_router", "health_router", "time_router"]
