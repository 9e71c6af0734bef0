"""
Scheduling error taxonomy.

Services raise these; the API layer turns them into JSON responses with the
matching status code (see register_exception_handlers).
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SchedulingError(Exception):
    """Base class for every error the scheduling core raises on purpose"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SchedulingError):
    """Malformed input: bad dates, reversed ranges, out-of-range values"""
    status_code = 400
    default_message = "Invalid request"


class InvalidRange(ValidationError):
    default_message = "End of range must be after its start"


class InvalidDuration(ValidationError):
    default_message = "Slot duration is not allowed"


class Unauthorized(SchedulingError):
    """Missing identity (401) or identity not allowed on the resource (403)"""
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(Unauthorized):
    status_code = 403
    default_message = "Permission denied"


class NotFound(SchedulingError):
    status_code = 404
    default_message = "Not found"


class SlotConflict(SchedulingError):
    """The requested interval is no longer free; the caller should re-fetch slots"""
    status_code = 409
    default_message = "Selected time slot is no longer available"


class StoreError(SchedulingError):
    """Data-store failure; the underlying message is logged, never returned"""
    status_code = 500
    default_message = "Failed to access the data store"


async def scheduling_error_handler(request: Request, exc: SchedulingError):
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchedulingError, scheduling_error_handler)
