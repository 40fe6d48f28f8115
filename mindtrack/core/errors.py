"""
Custom exception hierarchy for MindTrack.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from mindtrack.schemas.common import ErrorDetail

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class MindTrackException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(MindTrackException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity.capitalize()} {entity_id} not found.",
            details={"entity": entity, "id": entity_id},
        )


class ForbiddenError(MindTrackException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"

    def __init__(self, entity: str, entity_id: Any, user_id: int):
        super().__init__(
            message=f"{entity.capitalize()} {entity_id} does not belong to user {user_id}.",
            details={"entity": entity, "id": entity_id, "user_id": user_id},
        )


class InvalidArgumentError(MindTrackException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_ARGUMENT"

    def __init__(self, field: str, message: str):
        super().__init__(message=message, details={"field": field})


class AlreadyCompletedError(MindTrackException):
    http_status = status.HTTP_409_CONFLICT
    code = "ALREADY_COMPLETED"

    def __init__(self, habit_id: int, day: date):
        super().__init__(
            message=f"Habit {habit_id} is already completed on {day}.",
            details={"habit_id": habit_id, "day": str(day)},
        )


class EmailAlreadyExistsError(MindTrackException):
    http_status = status.HTTP_409_CONFLICT
    code = "EMAIL_ALREADY_EXISTS"

    def __init__(self, email: str):
        super().__init__(
            message="Email already exists.",
            details={"email": email},
        )


class InvalidCredentialsError(MindTrackException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__(message="Invalid email or password.")


class ConcurrentUpdateError(MindTrackException):
    http_status = status.HTTP_409_CONFLICT
    code = "CONCURRENT_UPDATE"

    def __init__(self, habit_id: int, attempts: int):
        super().__init__(
            message=f"Habit {habit_id} kept changing underneath the update; retry later.",
            details={"habit_id": habit_id, "attempts": attempts},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def mindtrack_exception_handler(request: Request, exc: MindTrackException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = [
        ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"] if loc != "body"),
            message=error["msg"],
            type=error["type"],
        ).model_dump()
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s: %s",
        request.method, request.url.path, exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
