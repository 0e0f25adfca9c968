"""AI legal analysis endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from lexidiff.api.deps import LLMClientDep, SettingsDep, enforce_input_policy
from lexidiff.schemas.analysis import LegalAnalysis
from lexidiff.schemas.compare import CompareRequest
from lexidiff.services.analysis.analyzer import LegalAnalyzer

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("", response_model=LegalAnalysis, summary="Structured legal risk report")
async def analyze_documents(
    body: CompareRequest,
    settings: SettingsDep,
    llm: LLMClientDep,
) -> LegalAnalysis:
    """
    Ask the LLM to assess the shift between two versions.

    Fails with 503 when the model is unreachable and 502 when its reply
    cannot be parsed.
    """
    enforce_input_policy(body.text_a, body.text_b, settings)
    return await LegalAnalyzer(llm).analyze(body.text_a, body.text_b)
