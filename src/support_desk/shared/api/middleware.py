"""
Shared API Middleware
======================

Common middleware and exception handlers for the FastAPI application.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from support_desk.config import settings
from support_desk.core import (
    ApplicationException,
    ExternalServiceException,
    InvalidOperationException,
    ProviderTimeoutException,
    ResourceNotFoundException,
    ValidationException,
)
from support_desk.shared.api.responses import error_response
from support_desk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Adds correlation ID to requests for tracing.

    Reuses an incoming X-Correlation-ID header or generates one.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs all requests and responses.

    Provides audit trail and debugging information.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = getattr(request.state, "correlation_id", "unknown")
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "response_time_ms": int((time.perf_counter() - start_time) * 1000)
                }
            )
            raise

        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "response_time_ms": int((time.perf_counter() - start_time) * 1000)
            }
        )
        return response


def status_code_for(exc: ApplicationException) -> int:
    """HTTP status for an application exception."""
    if isinstance(exc, ResourceNotFoundException):
        return 404
    if isinstance(exc, (ValidationException, InvalidOperationException)):
        return 400
    if isinstance(exc, ProviderTimeoutException):
        return 504
    if isinstance(exc, ExternalServiceException):
        return 502
    return 500


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    """Maps the application exception hierarchy onto HTTP responses."""
    correlation_id = getattr(request.state, "correlation_id", None)
    status_code = status_code_for(exc)

    log = logger.warning if status_code < 500 else logger.error
    log(
        "Request rejected",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "status_code": status_code,
            "error_type": type(exc).__name__,
            "error_message": exc.message,
        }
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response(
            exc.message,
            error=type(exc).__name__,
            details=exc.details,
            correlation_id=correlation_id,
        ),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Returns consistent error responses for all exceptions.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        "Unhandled exception",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    )

    # Don't expose internal details outside development
    details = {"debug_info": str(exc)} if settings.environment == "development" else None
    return JSONResponse(
        status_code=500,
        content=error_response(
            "Internal server error",
            error="InternalServerError",
            details=details,
            correlation_id=correlation_id,
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wraps framework HTTP errors (unknown routes, unavailable services) in the error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            str(exc.detail),
            error="HTTPException",
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and query parameters are client errors (400)."""
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_response(
            "Request validation failed",
            error="ValidationException",
            details={"errors": errors},
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
    )
