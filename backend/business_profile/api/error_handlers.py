"""Error Handlers — map exceptions escaping the editor routes to JSON envelopes.

Invariants:
    - ProfileEditorError -> its own http_status and to_response() envelope
    - RequestValidationError -> 400 VALIDATION_ERROR with one detail per bad location
    - Anything else -> 500 INTERNAL_ERROR; message and traceback stay in the logs
    - Every logged failure carries the request path and, when the error knows them,
      the tenant and editing session

Design Decisions:
    - Plain coroutine functions registered with add_exception_handler: they can be
      called directly in tests and read top to bottom
    - 4xx domain errors logged at warning (user input), 5xx at error (incidents)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from business_profile.core.errors import ErrorSeverity, ProfileEditorError

logger = logging.getLogger(__name__)

_INTERNAL_ERROR = {
    "error": {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
        "category": "internal",
        "severity": ErrorSeverity.CRITICAL.value,
    },
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProfileEditorError, handle_profile_editor_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_profile_editor_error(
    request: Request, exc: ProfileEditorError,
) -> JSONResponse:
    level = logging.WARNING if exc.http_status < 500 else logging.ERROR
    logger.log(
        level,
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "tenant_id": exc.context.tenant_id,
            "session_id": exc.context.session_id,
            "resource": exc.context.resource,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected request body on {request.url.path}: "
        f"{', '.join(d['field'] for d in details)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_INTERNAL_ERROR,
    )
