"""
DocumentExtractor: turns an uploaded file into plain text for comparison.

Responsible for:
  1. MIME type / extension validation
  2. Size enforcement
  3. Text extraction (DOCX, PDF, plain text)
  4. OCR through the vision model for images and scanned PDFs
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from pathlib import PurePath

import structlog

from lexidiff.config.settings import Settings, get_settings
from lexidiff.core.errors import ErrorCode, ExtractionError, ValidationError
from lexidiff.services.ingestion.docx_extractor import extract_docx
from lexidiff.services.ingestion.pdf_extractor import extract_pdf, has_text_layer, render_pdf_pages
from lexidiff.services.llm.client import OllamaClient
from lexidiff.services.llm.prompt_engine import PromptEngine

_log = structlog.get_logger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class SourceKind(StrEnum):
    DOCX = "docx"
    PDF = "pdf"
    IMAGE = "image"
    TEXT = "text"


_SUFFIX_KINDS = {
    ".docx": SourceKind.DOCX,
    ".pdf": SourceKind.PDF,
    ".txt": SourceKind.TEXT,
    ".md": SourceKind.TEXT,
    ".png": SourceKind.IMAGE,
    ".jpg": SourceKind.IMAGE,
    ".jpeg": SourceKind.IMAGE,
    ".webp": SourceKind.IMAGE,
}


def detect_kind(filename: str, content_type: str | None) -> SourceKind | None:
    """Classify an upload by extension first, then by MIME type."""
    suffix = PurePath(filename or "").suffix.lower()
    if suffix in _SUFFIX_KINDS:
        return _SUFFIX_KINDS[suffix]

    mime = (content_type or "").lower()
    if mime == DOCX_MIME:
        return SourceKind.DOCX
    if mime == "application/pdf":
        return SourceKind.PDF
    if mime.startswith("image/"):
        return SourceKind.IMAGE
    if mime.startswith("text/"):
        return SourceKind.TEXT
    return None


def decode_text(data: bytes) -> str:
    """Decode uploaded text as UTF-8, dropping a BOM and replacing bad bytes."""
    return data.decode("utf-8-sig", errors="replace")


class DocumentExtractor:
    """
    Extracts text from a single uploaded file.

    OCR calls go through the shared LLM client; every other format is
    handled locally.
    """

    def __init__(self, llm: OllamaClient, settings: Settings | None = None) -> None:
        self._llm = llm
        self._settings = settings or get_settings()
        self._prompt_engine = PromptEngine()

    def validate(self, filename: str, content_type: str | None, size: int) -> SourceKind:
        """
        Check size and type limits before any parsing happens.

        Raises:
            ValidationError: Unsupported type (415) or oversized file (413).
        """
        if size > self._settings.max_upload_bytes:
            raise ValidationError(
                f"File exceeds maximum allowed size of {self._settings.max_upload_size_mb}MB",
                detail={"size_bytes": size, "limit_bytes": self._settings.max_upload_bytes},
                code=ErrorCode.DOC_TOO_LARGE,
                http_status=413,
            )

        kind = detect_kind(filename, content_type)
        known_suffix = PurePath(filename or "").suffix.lower() in _SUFFIX_KINDS
        mime_allowed = (content_type or "") in self._settings.allowed_mime_types
        if kind is None or not (known_suffix or mime_allowed):
            raise ValidationError(
                f"Unsupported file type: {content_type}",
                detail={
                    "allowed": self._settings.allowed_mime_types,
                    "received": content_type,
                    "filename": filename,
                },
                code=ErrorCode.DOC_MIME_REJECTED,
                http_status=415,
            )
        return kind

    async def extract(self, data: bytes, filename: str, content_type: str | None) -> str:
        """
        Validate and extract the text of an upload.

        Raises:
            ValidationError: If the file is rejected before parsing.
            ExtractionError: If the file cannot be read.
            ServiceUnavailableError: If OCR is needed and the LLM is down.
        """
        kind = self.validate(filename, content_type, len(data))
        log = _log.bind(filename=filename, kind=kind.value, size=len(data))

        try:
            if kind == SourceKind.DOCX:
                text = (await asyncio.to_thread(extract_docx, data)).all_text
            elif kind == SourceKind.PDF:
                text = await self._extract_pdf(data)
            elif kind == SourceKind.IMAGE:
                text = await self._ocr(data)
            else:
                text = decode_text(data)
        except RuntimeError as exc:
            log.error("extraction_failed", error=str(exc))
            raise ExtractionError(
                "File reading failed.", detail={"filename": filename, "reason": str(exc)}
            ) from exc

        log.info("extraction_complete", chars=len(text))
        return text

    async def _extract_pdf(self, data: bytes) -> str:
        pages = await asyncio.to_thread(extract_pdf, data)
        if has_text_layer(pages):
            return "\n\n".join(page.text for page in pages)

        # No text layer: treat as a scan
        _log.info("pdf_without_text_layer", pages=len(pages))
        images = await asyncio.to_thread(render_pdf_pages, data)
        texts = [await self._ocr(png, page_label=f"page {page_no}") for page_no, png in images]
        return "\n\n".join(t for t in texts if t)

    async def _ocr(self, image: bytes, page_label: str | None = None) -> str:
        prompt = self._prompt_engine.compile_ocr(page_label)
        response = await self._llm.complete(
            prompt.system_prompt,
            prompt.user_prompt,
            images=[image],
            model=self._settings.ollama_vision_model,
        )
        return response.content.strip()
