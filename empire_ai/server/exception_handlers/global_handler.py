"""
Exception Handlers for the FastAPI Application.

Three handlers are registered:

- ``empire_ai_error_handler`` maps agent core errors to an HTTP status by
  their ``ErrorKind`` and renders them as A2A error payloads.
- ``validation_exception_handler`` turns request validation failures into
  400 ``invalid_request`` responses.
- ``global_exception_handler`` catches everything else, logs detailed context
  with an error ID, and returns a 500.
"""

import traceback
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from empire_ai.agent_core.errors import EmpireAIError, ErrorKind, RateLimitExceededError
from empire_ai.agent_core.runtime.invoker import error_code_for
from empire_ai.agent_core.schemas.a2a import A2AErrorCode
from empire_ai.core.logging_config import get_logger
from empire_ai.core.monitoring import log_error

logger = get_logger(__name__)

HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.not_found: 404,
    ErrorKind.invalid_state: 400,
    ErrorKind.invalid_request: 400,
    ErrorKind.transient_upstream: 502,
    ErrorKind.permanent_upstream: 500,
    ErrorKind.execution_failed: 500,
    ErrorKind.construction: 500,
    ErrorKind.timeout: 504,
    ErrorKind.cancelled: 200,
    ErrorKind.permission_denied: 403,
    ErrorKind.authentication: 401,
    ErrorKind.rate_limited: 429,
}


def http_status_for(kind: ErrorKind) -> int:
    return HTTP_STATUS_BY_KIND.get(kind, 500)


def _error_payload(code: str, message: str, details: dict) -> dict:
    return {"status": "error", "error": {"code": code, "message": message, "details": details}}


async def empire_ai_error_handler(request: Request, exc: EmpireAIError) -> JSONResponse:
    """Render an agent core error with the status code of its kind."""
    status_code = http_status_for(exc.kind)
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
        log_error(type(exc).__name__, exc.message, {"path": request.url.path, **exc.details})
    else:
        logger.info(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content=_error_payload(error_code_for(exc.kind).value, exc.message, exc.details),
        headers=exc.headers if isinstance(exc, RateLimitExceededError) else None,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed requests with a 400 ``invalid_request`` payload."""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    logger.info(f"Invalid request to {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content=_error_payload(A2AErrorCode.INVALID_REQUEST.value, "Invalid request", {"errors": errors}),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a JSON response with an error ID
    that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    # Generate unique error ID for tracking
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(EmpireAIError, empire_ai_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
