"""Document extraction schemas."""

from __future__ import annotations

from pydantic import BaseModel


class ExtractedDocumentOut(BaseModel):
    filename: str
    content_type: str
    text: str
    char_count: int
