"""Mapping from service error codes to HTTP responses."""

from fastapi import status
from fastapi.responses import JSONResponse

from timeclock_engine.services.errors import ErrorCode

STATUS_BY_CODE: dict[str, int] = {
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_STATUS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CLOCK_ORDER: status.HTTP_400_BAD_REQUEST,
    ErrorCode.DURATION_EXCEEDED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.OVERLAP: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_ACTIVE: status.HTTP_409_CONFLICT,
    ErrorCode.NO_ACTIVE_ENTRY: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_REVIEWED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.ACTIVE_EDIT_FORBIDDEN: status.HTTP_409_CONFLICT,
    ErrorCode.ACTIVE_DELETE_FORBIDDEN: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.FALLBACK_FAIL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(code: str) -> int:
    return STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST)


def error_response(code: str, message: str) -> JSONResponse:
    """JSON body with detail and code, as every error response carries."""
    return JSONResponse(
        status_code=status_for(code),
        content={"detail": message, "code": code},
    )
