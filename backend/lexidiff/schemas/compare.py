"""Comparison request and response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from lexidiff.services.diff.models import AlignedRow, ChangeKind, ChangeRecord, RowCategory


class ChangeRecordOut(BaseModel):
    """A run of text and its classification. Field names follow the client contract."""

    type: ChangeKind
    value: str

    @classmethod
    def from_record(cls, record: ChangeRecord) -> ChangeRecordOut:
        return cls(type=record.kind, value=record.text)

    def to_record(self) -> ChangeRecord:
        return ChangeRecord(self.type, self.value)


class AlignedRowIn(BaseModel):
    left: ChangeRecordOut | None = None
    right: ChangeRecordOut | None = None

    @model_validator(mode="after")
    def check_row_shape(self) -> AlignedRowIn:
        self.to_row()
        return self

    def to_row(self) -> AlignedRow:
        return AlignedRow(
            left=self.left.to_record() if self.left is not None else None,
            right=self.right.to_record() if self.right is not None else None,
        )


class AlignedRowOut(AlignedRowIn):
    category: RowCategory

    @classmethod
    def from_row(cls, row: AlignedRow) -> AlignedRowOut:
        return cls(
            left=ChangeRecordOut.from_record(row.left) if row.left is not None else None,
            right=ChangeRecordOut.from_record(row.right) if row.right is not None else None,
            category=row.category,
        )


class CompareRequest(BaseModel):
    text_a: str = Field(..., description="Version A (original) text")
    text_b: str = Field(..., description="Version B (modified) text")


class AlignedCompareRequest(CompareRequest):
    explain: bool = Field(
        default=False,
        description="Attach AI insights to changed rows. Missing insights are not an error.",
    )


class DiffStats(BaseModel):
    kept_chars: int
    inserted_chars: int
    deleted_chars: int
    inserted_runs: int
    deleted_runs: int


class CompareResponse(BaseModel):
    changes: list[ChangeRecordOut]
    has_changes: bool
    stats: DiffStats


class AlignedCompareResponse(BaseModel):
    rows: list[AlignedRowOut]
    changed_rows: list[int] = Field(
        default_factory=list, description="Indices of insertion and deletion rows"
    )
    stats: DiffStats
    insights: dict[int, str] = Field(
        default_factory=dict, description="AI insight text keyed by row index"
    )


class ExplainRequest(BaseModel):
    rows: list[AlignedRowIn]


class ExplainResponse(BaseModel):
    insights: dict[int, str]


class SamplesResponse(BaseModel):
    text_a: str
    text_b: str
