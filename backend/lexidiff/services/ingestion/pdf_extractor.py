"""
PDF reading for document import.

Text comes from pdfplumber, with PyMuPDF as the second reader when
pdfplumber cannot open the file. A PDF whose pages carry no text at all
is a scan; its pages are rendered to PNG so the vision model can read them.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import NamedTuple

import structlog

_log = structlog.get_logger(__name__)

OCR_RENDER_DPI = 150


class PdfPage(NamedTuple):
    number: int  # 1-based
    text: str


def _read_with_pdfplumber(data: bytes) -> list[PdfPage]:
    import pdfplumber  # type: ignore[import-untyped]

    with pdfplumber.open(io.BytesIO(data)) as pdf:
        return [
            PdfPage(n, (page.extract_text(x_tolerance=3, y_tolerance=3) or "").strip())
            for n, page in enumerate(pdf.pages, start=1)
        ]


def _read_with_pymupdf(data: bytes) -> list[PdfPage]:
    import fitz  # type: ignore[import-untyped]  # pymupdf

    with fitz.open(stream=data, filetype="pdf") as doc:
        return [
            PdfPage(n, (page.get_text("text") or "").strip())
            for n, page in enumerate(doc, start=1)
        ]


_READERS: tuple[tuple[str, Callable[[bytes], list[PdfPage]]], ...] = (
    ("pdfplumber", _read_with_pdfplumber),
    ("pymupdf", _read_with_pymupdf),
)


def extract_pdf(data: bytes) -> list[PdfPage]:
    """
    Read the text layer of every page, in page order.

    Raises:
        RuntimeError: If no reader can open the file.
    """
    errors: dict[str, str] = {}
    for name, reader in _READERS:
        try:
            pages = reader(data)
        except Exception as err:
            errors[name] = str(err)
            _log.warning("pdf_reader_failed", reader=name, error=str(err))
            continue
        _log.debug("pdf_read", reader=name, pages=len(pages))
        return pages
    raise RuntimeError(f"PDF could not be read: {errors}")


def has_text_layer(pages: list[PdfPage]) -> bool:
    return any(page.text for page in pages)


def render_pdf_pages(data: bytes, dpi: int = OCR_RENDER_DPI) -> list[tuple[int, bytes]]:
    """Rasterise each page to PNG for OCR. Returns (page number, png bytes)."""
    import fitz  # type: ignore[import-untyped]  # pymupdf

    with fitz.open(stream=data, filetype="pdf") as doc:
        return [
            (n, page.get_pixmap(dpi=dpi).tobytes("png"))
            for n, page in enumerate(doc, start=1)
        ]
