"""
Request middleware and exception handlers.

Every error leaves the API in the same envelope:

    {"error": {"code": "CMP_001", "message": "...", "detail": {...}}}

with the request's correlation ID echoed in ``X-Correlation-ID``.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import Histogram
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from lexidiff.core.errors import AppError, ErrorCode

_log = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

_REQUEST_SECONDS = Histogram(
    "lexidiff_request_duration_seconds",
    "HTTP request latency by route template",
    ["method", "route", "status"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1, 5, 30, 120),
)


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def error_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code.value, "message": message, "detail": detail or {}}},
        headers={CORRELATION_HEADER: getattr(request.state, "correlation_id", "")},
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Correlation ID, access log line and latency metric for each request.

    The ID comes from the incoming ``X-Correlation-ID`` header when the
    caller sends one, so a front end can tie its own logs to ours.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        route = _route_template(request)
        _REQUEST_SECONDS.labels(request.method, route, str(response.status_code)).observe(elapsed)
        response.headers[CORRELATION_HEADER] = correlation_id
        _log.info(
            "request_completed",
            route=route,
            status_code=response.status_code,
            duration_ms=round(elapsed * 1000),
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Responses carry contract text, so nothing may be cached or framed."""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        "Cache-Control": "no-store",
    }

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.update(self.HEADERS)
        return response


# ── Exception handlers ────────────────────────────────────────────────── #


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    _log.warning(
        "application_error",
        error_code=exc.code.value,
        message=exc.message,
        http_status=exc.http_status,
    )
    return error_response(request, exc.http_status, exc.code, exc.message, exc.detail)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()
    ]
    return error_response(
        request, 422, ErrorCode.VALIDATION_ERROR, "Request validation failed", {"errors": errors}
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return error_response(
        request, 429, ErrorCode.RATE_LIMITED, f"Rate limit exceeded: {exc.detail}"
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback; the client only ever sees GEN_002."""
    _log.exception("unhandled_exception", exc_info=exc)
    return error_response(
        request, 500, ErrorCode.INTERNAL_ERROR, "An unexpected internal error occurred."
    )
