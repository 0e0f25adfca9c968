"""Legal analysis schemas."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Impact(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class RiskLevel(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class KeyChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clause: str
    impact: Impact
    description: str
    risk_score: int = Field(..., ge=1, le=10, alias="riskScore")


class RiskAssessment(BaseModel):
    level: RiskLevel
    explanation: str


class LegalAnalysis(BaseModel):
    """Structured report comparing two versions of an agreement."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    contract_type: str | None = Field(default=None, alias="contractType")
    key_changes: list[KeyChange] = Field(default_factory=list, alias="keyChanges")
    risk_assessment: RiskAssessment = Field(..., alias="riskAssessment")
    recommendations: list[str] = Field(default_factory=list)
