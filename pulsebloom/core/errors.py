"""
Custom exception hierarchy for PulseBloom.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

`ErrorKind` is the closed set of failure categories. Only the kinds that
must stop a request are raised as exceptions; insufficient data and
malformed model output are returned as result values (see
`pulsebloom.services.outcomes`).
"""
from __future__ import annotations

import enum
import logging
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    INVALID_RANGE = "invalid_range"
    INVALID_INPUT = "invalid_input"
    MALFORMED_OUTPUT = "malformed_output"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPSTREAM_ERROR = "upstream_error"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class PulseException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidRangeError(PulseException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "INVALID_RANGE"
    kind = ErrorKind.INVALID_RANGE

    def __init__(self, message: str, **details: Any):
        super().__init__(message=message, details=details)


class WindowTooLargeError(InvalidRangeError):
    def __init__(self, requested: int, maximum: int):
        super().__init__(
            f"Window of {requested} days exceeds the maximum of {maximum}. "
            f"Request at most {maximum} days.",
            requested=requested,
            maximum=maximum,
        )


class DateRangeReversedError(InvalidRangeError):
    def __init__(self, start: date, end: date):
        super().__init__(
            f"end_date {end} is before start_date {start}. Swap the two dates.",
            start_date=str(start),
            end_date=str(end),
        )


class HabitNotFoundError(PulseException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "HABIT_NOT_FOUND"
    kind = ErrorKind.NOT_FOUND

    def __init__(self, habit_id: int):
        super().__init__(
            message=f"Habit {habit_id} not found.",
            details={"habit_id": habit_id},
        )


class HabitAlreadyCompletedError(PulseException):
    http_status = status.HTTP_409_CONFLICT
    code = "HABIT_ALREADY_COMPLETED"
    kind = ErrorKind.CONFLICT

    def __init__(self, habit_id: int, period_date: date):
        super().__init__(
            message=f"Habit {habit_id} is already completed for the period starting {period_date}.",
            details={"habit_id": habit_id, "period_date": str(period_date)},
        )


class HabitArchivedError(PulseException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "HABIT_ARCHIVED"
    kind = ErrorKind.CONFLICT

    def __init__(self, habit_id: int):
        super().__init__(
            message="Cannot complete an archived habit. Restore it first.",
            details={"habit_id": habit_id},
        )


class MoodEntryNotFoundError(PulseException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "MOOD_ENTRY_NOT_FOUND"
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entry_id: int):
        super().__init__(
            message=f"Mood entry {entry_id} not found.",
            details={"entry_id": entry_id},
        )


class NoCompletionToUndoError(PulseException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NO_COMPLETION_TO_UNDO"
    kind = ErrorKind.NOT_FOUND

    def __init__(self, habit_id: int):
        super().__init__(
            message=f"Habit {habit_id} has no completion to undo.",
            details={"habit_id": habit_id},
        )


class EmptyUpdateError(PulseException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "EMPTY_UPDATE"
    kind = ErrorKind.INVALID_INPUT

    def __init__(self):
        super().__init__(message="The update body has no fields to change.")


class InsightGenerationError(PulseException):
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "INSIGHT_GENERATION_FAILED"
    kind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, reason: str):
        super().__init__(
            message=f"Insight generation failed: {reason}",
            details={"reason": reason},
        )


class InsightGeneratorUnavailableError(PulseException):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "INSIGHT_GENERATOR_UNAVAILABLE"
    kind = ErrorKind.UNAVAILABLE

    def __init__(self):
        super().__init__(
            message="Insight generation is not configured. Set GROQ_API_KEY.",
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def pulse_exception_handler(request: Request, exc: PulseException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
