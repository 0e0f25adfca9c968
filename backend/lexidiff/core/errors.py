"""
Structured error taxonomy for LexiDiff.

Every application error has:
  - A stable error code (prefixed by domain)
  - An HTTP status code
  - A human-readable message
  - An optional detail dict for machine consumers

The diff engine itself raises none of these; they belong to the
collaborators around it (extraction, LLM calls, reports, input policy).
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Stable error codes. Never reuse a retired code."""

    # Comparison
    COMPARE_INPUT_TOO_LARGE = "CMP_001"

    # Documents
    DOC_MIME_REJECTED = "DOC_001"
    DOC_TOO_LARGE = "DOC_002"
    DOC_EXTRACTION_FAILED = "DOC_003"

    # AI collaborators
    AI_UNAVAILABLE = "AI_001"
    AI_CIRCUIT_OPEN = "AI_002"
    AI_RESPONSE_INVALID = "AI_003"

    # Reports
    REPORT_FORMAT_UNSUPPORTED = "RPT_001"

    # Generic
    VALIDATION_ERROR = "GEN_001"
    INTERNAL_ERROR = "GEN_002"
    NOT_FOUND = "GEN_003"
    RATE_LIMITED = "GEN_004"


class AppError(Exception):
    """Base class for all application errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        http_status: int = 500,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "detail": self.detail,
            }
        }


# ── Typed convenience subclasses ──────────────────────────────────────── #


class ValidationError(AppError):
    def __init__(
        self,
        message: str,
        detail: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        http_status: int = 422,
    ) -> None:
        super().__init__(code=code, message=message, http_status=http_status, detail=detail)


class InputTooLargeError(ValidationError):
    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            detail=detail,
            code=ErrorCode.COMPARE_INPUT_TOO_LARGE,
            http_status=413,
        )


class ExtractionError(AppError):
    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(
            code=ErrorCode.DOC_EXTRACTION_FAILED,
            message=message,
            http_status=422,
            detail=detail,
        )


class ServiceUnavailableError(AppError):
    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(code=code, message=message, http_status=503)


class UpstreamResponseError(AppError):
    """The LLM answered, but not with something we can use."""

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(
            code=ErrorCode.AI_RESPONSE_INVALID,
            message=message,
            http_status=502,
            detail=detail,
        )
