"""
Application configuration via Pydantic Settings.

All values are sourced from environment variables or an .env file.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated

from pydantic import AnyHttpUrl, BeforeValidator, Field, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Environment(StrEnum):
    """Deployment environment identifiers."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(StrEnum):
    """Structured log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _parse_csv_list(value: str | list[str]) -> list[str]:
    """Accept comma-separated string or list."""
    if isinstance(value, list):
        return value
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Centralised, type-validated application configuration.

    Reads from environment variables with an optional .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="forbid",
    )

    # ── Application ────────────────────────────────────────────────────── #
    app_name: str = Field(default="LexiDiff", description="Human-readable application name")
    app_version: str = Field(default="1.0.0", description="Semantic version string")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development|testing|production)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode. Must be False in production.",
    )

    # ── Server ─────────────────────────────────────────────────────────── #
    host: str = Field(default="127.0.0.1", description="Bind host. Default local-only.")
    port: int = Field(default=8000, ge=1024, le=65535, description="Bind port")
    workers: int = Field(default=1, ge=1, le=16, description="Uvicorn worker processes")
    reload: bool = Field(default=False, description="Auto-reload on code change (dev only)")

    # ── CORS ───────────────────────────────────────────────────────────── #
    cors_origins: Annotated[list[str], NoDecode, BeforeValidator(_parse_csv_list)] = Field(
        default=["http://localhost:5173"],
        description="Comma-separated list of allowed CORS origins",
    )

    # ── Ollama ─────────────────────────────────────────────────────────── #
    ollama_base_url: AnyHttpUrl = Field(
        default="http://127.0.0.1:11434",
        description="Ollama API base URL",
    )
    ollama_model: str = Field(
        default="ministral:3b",
        description="Ollama model used for insights and legal analysis",
    )
    ollama_vision_model: str = Field(
        default="llava:7b",
        description="Ollama multimodal model used to read images and scanned PDFs",
    )
    ollama_timeout_seconds: int = Field(
        default=120,
        ge=10,
        le=600,
        description="HTTP timeout for Ollama API calls (seconds)",
    )
    ollama_max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum retry attempts on transient Ollama failures",
    )
    ollama_circuit_breaker_threshold: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Consecutive failures before circuit opens",
    )
    ollama_circuit_breaker_timeout_seconds: int = Field(
        default=60,
        ge=10,
        le=3600,
        description="Seconds to wait before testing circuit again",
    )
    llm_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature (lower = more deterministic)",
    )
    llm_max_output_tokens: int = Field(
        default=2048,
        ge=64,
        le=8192,
        description="Maximum tokens generated per LLM call",
    )

    # ── Comparison policy ──────────────────────────────────────────────── #
    max_document_chars: int = Field(
        default=200_000,
        ge=1,
        description="Maximum characters accepted per compared document",
    )
    max_alignment_cells: int = Field(
        default=4_000_000,
        ge=1,
        description="Maximum LCS table size (tokens in A + 1) * (tokens in B + 1)",
    )
    explanation_max_rows: int = Field(
        default=40,
        ge=1,
        le=200,
        description="Maximum changed rows sent to the LLM for insights",
    )

    # ── Uploads ────────────────────────────────────────────────────────── #
    max_upload_size_mb: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum upload file size in MB",
    )
    allowed_mime_types: Annotated[list[str], NoDecode, BeforeValidator(_parse_csv_list)] = Field(
        default=[
            "application/pdf",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "text/plain",
            "image/png",
            "image/jpeg",
            "image/webp",
        ],
        description="Allowed MIME types for uploaded documents",
    )

    # ── Rate Limiting ──────────────────────────────────────────────────── #
    rate_limit_enabled: bool = Field(default=True, description="Enable slowapi rate limits")
    rate_limit_default: str = Field(
        default="100/minute",
        description="Default rate limit string (slowapi format)",
    )

    # ── Logging ────────────────────────────────────────────────────────── #
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Minimum log level")
    log_json: bool = Field(default=True, description="Emit logs as JSON (False for dev console)")

    # ── Validators ─────────────────────────────────────────────────────── #

    @model_validator(mode="after")
    def production_safety_checks(self) -> Settings:
        if self.environment == Environment.PRODUCTION:
            if self.debug:
                raise ValueError("debug must be False in production")
            if self.reload:
                raise ValueError("reload must be False in production")
        return self

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings singleton."""
    return Settings()
