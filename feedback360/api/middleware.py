"""API middleware: CORS, request logging, and error handling.

# ─── MIDDLEWARE EXECUTION ORDER ───────────────────────────────────────
#
# Starlette middleware is a stack (last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)    # added 1st → inner
#     app.add_middleware(RequestLoggingMiddleware)   # added 2nd → outermost
#
#   Request flow:
#     Client → RequestLogging → ErrorHandling → route handler
#
# RequestLoggingMiddleware therefore logs the status code the client
# actually receives, including the ones ErrorHandling produced.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from feedback360.api.schemas import ErrorResponse
from feedback360.utils.errors import (
    Feedback360Error,
    InsightGenerationError,
    MalformedGeneratorResponse,
    TransientGeneratorError,
)
from feedback360.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; all origins are allowed unless *allowed_origins* is given."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def status_for_error(exc: Feedback360Error) -> int:
    """HTTP status for an application error.

    Transient generator failures are 503 (try again later), malformed
    generator output is 502 (bad upstream answer), everything else 500.
    """
    if isinstance(exc, TransientGeneratorError):
        return 503
    if isinstance(exc, MalformedGeneratorResponse):
        return 502
    return 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``Feedback360Error`` subclasses and return structured JSON errors.

    Stack traces stay in the server log; the client only sees the error
    class name, its message and whether a retry makes sense.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except Feedback360Error as exc:
            retryable = isinstance(exc, InsightGenerationError) and exc.retryable
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                retryable=retryable,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
                retryable=retryable,
            )
            return JSONResponse(
                status_code=status_for_error(exc),
                content=body.model_dump(),
            )
