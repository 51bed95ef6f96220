"""Health, readiness and liveness probes."""

import logging
from datetime import datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from timeclock_engine.api.dependencies import AppClock, AppSettings, DbSession
from timeclock_engine.models import TimeEntry, TimeEntryAudit, User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Engine health as seen by the API process."""

    status: str
    timestamp: datetime
    database: str
    version: str
    clocked_in_users: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession, clock: AppClock, settings: AppSettings) -> HealthResponse:
    """Database round trip plus the number of open entries."""
    clocked_in = None
    try:
        await db.execute(text("SELECT 1"))
        clocked_in = await db.scalar(
            select(func.count(TimeEntry.id)).where(TimeEntry.clock_out.is_(None))
        )
    except SQLAlchemyError:
        logger.warning("database health check failed", exc_info=True)

    healthy = clocked_in is not None
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=clock.now(),
        database="healthy" if healthy else "unhealthy",
        version=settings.engine_version,
        clocked_in_users=clocked_in,
    )


@router.get("/ready", responses={503: {"description": "Schema not reachable"}})
async def readiness_check(db: DbSession) -> JSONResponse:
    """Ready once every table the engine writes to answers a query."""
    try:
        for model in (User, TimeEntry, TimeEntryAudit):
            await db.execute(select(model.id).limit(1))
    except SQLAlchemyError:
        logger.warning("readiness check failed", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not-ready"},
        )
    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready"})


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
