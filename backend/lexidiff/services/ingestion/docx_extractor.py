"""
DOCX text extraction service.

Walks the document body in order and returns paragraph and table text.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field

import structlog

_log = structlog.get_logger(__name__)


@dataclass
class DocxBlock:
    """A paragraph, or one table rendered as tab-separated lines."""

    text: str
    is_table: bool = False


@dataclass
class DocxContent:
    """Block-level text extracted from a DOCX file, in document order."""

    blocks: list[DocxBlock] = field(default_factory=list)

    @property
    def all_text(self) -> str:
        """Join blocks with newlines, dropping trailing blank paragraphs."""
        return "\n".join(b.text for b in self.blocks).rstrip()

    @property
    def table_count(self) -> int:
        return sum(1 for b in self.blocks if b.is_table)


def extract_docx(data: bytes) -> DocxContent:
    """
    Extract text from a DOCX byte stream.

    Empty paragraphs are kept as blank lines so paragraph spacing in the
    source survives into the compared text.

    Raises:
        RuntimeError: If the file cannot be parsed as a valid DOCX.
    """
    from docx import Document  # type: ignore[import-untyped]
    from docx.table import Table  # type: ignore[import-untyped]
    from docx.text.paragraph import Paragraph  # type: ignore[import-untyped]

    try:
        doc = Document(io.BytesIO(data))
    except Exception as err:
        raise RuntimeError(f"DOCX parsing failed: {err}") from err

    content = DocxContent()

    # Iterate all block-level elements in order to preserve sequence
    for element in doc.element.body:
        tag = element.tag.split("}")[-1] if "}" in element.tag else element.tag

        if tag == "p":
            content.blocks.append(DocxBlock(text=Paragraph(element, doc).text))
        elif tag == "tbl":
            table = Table(element, doc)
            lines = ["\t".join(cell.text.strip() for cell in row.cells) for row in table.rows]
            content.blocks.append(DocxBlock(text="\n".join(lines), is_table=True))

    _log.debug(
        "docx_extraction_complete",
        blocks=len(content.blocks),
        tables=content.table_count,
    )
    return content
