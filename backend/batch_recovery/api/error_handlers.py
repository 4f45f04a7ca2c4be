"""Error Handlers — map recovery failures that escape a route onto HTTP responses.

Invariants:
    - RecoveryServiceError → its own http_status and to_response() envelope,
      logged at the level its severity names
    - An error carrying context.retry_after_ms (a throttled remote API) adds a
      Retry-After header in whole seconds, rounded up
    - RequestValidationError → 400 with field-level details
    - Any other exception → 500 that never leaks internal details

Design Decisions:
    - Recovery outcomes are never errors here: the routes return them as 200 bodies,
      so only manager wiring and infrastructure faults reach these handlers
    - Validation and catch-all envelopes reuse ErrorCategory / ErrorSeverity so
      clients branch on one vocabulary
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from batch_recovery.core.errors import (
    ErrorCategory, ErrorSeverity, RecoveryServiceError,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def register_error_handlers(app: FastAPI) -> None:
    """Install the recovery, validation and catch-all handlers on app."""
    app.add_exception_handler(RecoveryServiceError, handle_recovery_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def retry_after_header(exc: RecoveryServiceError) -> dict[str, str] | None:
    retry_after_ms = exc.context.retry_after_ms
    if retry_after_ms is None:
        return None
    return {"Retry-After": str(max(1, math.ceil(retry_after_ms / 1000)))}


async def handle_recovery_error(
    request: Request, exc: RecoveryServiceError,
) -> JSONResponse:
    logger.log(
        _LOG_LEVELS[exc.severity],
        "Recovery request failed",
        extra={
            "batch_id": exc.context.batch_id,
            "source": exc.context.source,
            "error_code": exc.code,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_response(),
        headers=retry_after_header(exc),
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        "Invalid recovery request",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": ErrorCategory.VALIDATION.value,
                "severity": ErrorSeverity.WARNING.value,
                "details": details,
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: the body never carries the exception text."""
    logger.critical(
        "Unhandled exception",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
