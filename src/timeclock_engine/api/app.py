"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timeclock_engine.api.errors import error_response
from timeclock_engine.api.routes import admin_router, health_router, time_router
from timeclock_engine.app_logger import setup_logging
from timeclock_engine.clock import Clock, SystemClock
from timeclock_engine.config import Settings, get_settings
from timeclock_engine.database import create_schema, dispose_db, init_db
from timeclock_engine.events import Broadcaster
from timeclock_engine.services import ErrorCode, TimeEntryError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    engine, _ = init_db(settings.database_url)
    if settings.uses_sqlite:
        await create_schema(engine)
    logger.info("time clock engine %s started", settings.engine_version)
    yield
    await dispose_db()


def create_app(
    settings: Settings | None = None,
    clock: Clock | None = None,
    broadcaster: Broadcaster | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    app = FastAPI(
        title="Time Clock Engine API",
        description="Employee time tracking with review workflow and payroll estimates",
        version=settings.engine_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.clock = clock or SystemClock()
    app.state.broadcaster = broadcaster or Broadcaster()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(TimeEntryError)
    async def time_entry_error_handler(request: Request, exc: TimeEntryError) -> JSONResponse:
        """Translate service errors, keeping their code."""
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
        return error_response(exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies and parameters."""
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in errors
        )
        return error_response(ErrorCode.INVALID_INPUT, message or "Invalid request")

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(time_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
