"""
LexiDiff FastAPI application.

``create_app`` puts the settings and one shared OllamaClient on
``app.state``. Comparison never touches the LLM, so /health
reports "degraded" rather than failing when Ollama is down.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from lexidiff.api.v1.router import router as v1_router
from lexidiff.config.logging_config import configure_logging
from lexidiff.config.settings import Environment, Settings, get_settings
from lexidiff.core.errors import AppError
from lexidiff.core.middleware import (
    CORRELATION_HEADER,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
    app_error_handler,
    rate_limit_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from lexidiff.services.llm.client import OllamaClient

_log = structlog.get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    _log.info(
        "lexidiff_starting",
        version=settings.app_version,
        environment=settings.environment.value,
        model=settings.ollama_model,
    )
    yield
    _log.info("lexidiff_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API. ``settings`` defaults to the cached environment settings."""
    settings = settings or get_settings()
    configure_logging(log_level=settings.log_level.value, json_logs=settings.log_json)

    show_docs = settings.environment != Environment.PRODUCTION
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Whitespace-faithful, token-level comparison of two document versions, "
            "with optional AI insights, legal analysis and report export."
        ),
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        openapi_url="/openapi.json" if show_docs else None,
        lifespan=_lifespan,
    )
    app.state.settings = settings
    app.state.llm_client = OllamaClient(settings)
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_default],
        enabled=settings.rate_limit_enabled,
    )

    # Starlette runs the last-added middleware first
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER, "Content-Disposition"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(v1_router)

    @app.get("/health", tags=["health"], summary="Service and Ollama status")
    async def health() -> dict[str, str]:
        ollama_ok = await app.state.llm_client.health_check()
        return {
            "status": "healthy" if ollama_ok else "degraded",
            "diff_engine": "ok",
            "ollama": "ok" if ollama_ok else "unavailable",
            "version": settings.app_version,
        }

    @app.get("/metrics", tags=["observability"], summary="Prometheus metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# Entry point for uvicorn
app = create_app()
