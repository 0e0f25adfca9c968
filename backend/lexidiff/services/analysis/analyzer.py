"""
Legal analyzer: asks the LLM for a structured risk report on two versions.

Unlike row insights, a failed analysis is surfaced to the caller.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError as PydanticValidationError

from lexidiff.core.errors import UpstreamResponseError
from lexidiff.schemas.analysis import LegalAnalysis
from lexidiff.services.llm.client import OllamaClient
from lexidiff.services.llm.prompt_engine import PromptEngine, extract_json_payload

_log = structlog.get_logger(__name__)


def parse_analysis(raw_response: str) -> LegalAnalysis:
    """
    Validate a model reply as a LegalAnalysis.

    Raises:
        UpstreamResponseError: If the reply is not valid JSON or misses fields.
    """
    try:
        payload = extract_json_payload(raw_response)
        return LegalAnalysis.model_validate(payload)
    except (ValueError, PydanticValidationError) as err:
        raise UpstreamResponseError(
            "The legal analysis could not be parsed successfully."
        ) from err


class LegalAnalyzer:
    """Stateless wrapper around the analysis prompt and its parser."""

    def __init__(self, llm: OllamaClient) -> None:
        self._llm = llm
        self._prompt_engine = PromptEngine()

    async def analyze(self, document_a: str, document_b: str) -> LegalAnalysis:
        prompt = self._prompt_engine.compile_analysis(document_a, document_b)
        response = await self._llm.complete(
            prompt.system_prompt, prompt.user_prompt, json_mode=True
        )
        analysis = parse_analysis(response.content)
        _log.info(
            "legal_analysis_complete",
            prompt_hash=prompt.prompt_hash,
            key_changes=len(analysis.key_changes),
            risk_level=analysis.risk_assessment.level.value,
        )
        return analysis
