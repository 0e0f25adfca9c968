"""Report export schemas."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from lexidiff.schemas.analysis import LegalAnalysis
from lexidiff.schemas.compare import AlignedRowIn

# 9999-12-31T23:59:59.999Z
MAX_TIMESTAMP_MS = 253_402_300_799_999


class ReportFormat(StrEnum):
    TXT = "txt"
    DOCX = "docx"


class UserComment(BaseModel):
    """A reviewer note attached to one aligned row."""

    id: str
    diff_index: int = Field(..., ge=0)
    text: str = Field(..., min_length=1, max_length=4000)
    author: str
    timestamp: int = Field(
        ..., ge=0, le=MAX_TIMESTAMP_MS, description="Milliseconds since the Unix epoch"
    )


class ReportRequest(BaseModel):
    rows: list[AlignedRowIn] = Field(default_factory=list)
    insights: dict[int, str] = Field(default_factory=dict)
    comments: list[UserComment] = Field(default_factory=list)
    case_notes: str = Field(default="", max_length=20_000)
    analysis: LegalAnalysis | None = None
