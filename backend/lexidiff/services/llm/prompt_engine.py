"""
Prompt compiler for the LLM collaborators.

Builds deterministic system/user prompt pairs for row insights, legal
analysis and OCR, and pulls JSON payloads back out of model replies.
"""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import structlog

_log = structlog.get_logger(__name__)

# Models sometimes wrap JSON in a Markdown fence despite JSON mode.
_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\s*```", re.DOTALL)

# ── Instructions (invariant) ──────────────────────────────────────────── #

_INSIGHT_SYSTEM_INSTRUCTIONS = """\
You are a high-level legal consultant. You will receive specific textual \
differences between two versions of a document. For each segment, provide a \
concise, 1-sentence explanation of why this change matters legally or commercially.

Return ONLY a JSON array of objects, each containing an "id" (the ID integer from \
the input list) and an "insight" (your explanation string). No commentary.
"""

_ANALYSIS_SYSTEM_INSTRUCTIONS = """\
You are elite legal counsel analysing the shifts between two versions of a document. \
Cover financial, liability, termination, intellectual property and governing law changes.

Return ONLY a JSON object with this shape:
{
  "summary": string,
  "contract_type": string,
  "key_changes": [
    {"clause": string, "impact": "positive" | "negative" | "neutral",
     "description": string, "risk_score": integer 1-10}
  ],
  "risk_assessment": {"level": "Low" | "Medium" | "High", "explanation": string},
  "recommendations": [string]
}
"""

_OCR_SYSTEM_INSTRUCTIONS = """\
You transcribe documents. Extract text precisely. Preserve formatting and legal \
numbering. Return ONLY the extracted text.
"""


@dataclass(frozen=True)
class ChangeSegment:
    """One changed row as presented to the model."""

    row_index: int
    left: str | None
    right: str | None


@dataclass
class CompiledPrompt:
    """The output of the PromptEngine compile methods."""

    system_prompt: str
    user_prompt: str
    prompt_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "system_prompt": self.system_prompt,
            "user_prompt": self.user_prompt,
            "prompt_hash": self.prompt_hash,
        }


def _hash_prompt(system_prompt: str, user_prompt: str) -> str:
    hash_input = json.dumps({"system": system_prompt, "user": user_prompt}, sort_keys=True)
    return hashlib.sha256(hash_input.encode()).hexdigest()


def _quote(text: str | None, absent: str) -> str:
    if text is None or not text.strip():
        return absent
    return text.replace('"', '\\"')


class PromptEngine:
    """
    Compiles prompts for the explanation, analysis and OCR collaborators.

    Same inputs always compile to the same prompt and hash.
    """

    def _finish(self, kind: str, system_prompt: str, user_prompt: str) -> CompiledPrompt:
        prompt_hash = _hash_prompt(system_prompt, user_prompt)
        _log.debug("prompt_compiled", kind=kind, prompt_hash=prompt_hash)
        return CompiledPrompt(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            prompt_hash=prompt_hash,
        )

    def compile_insights(self, segments: Sequence[ChangeSegment]) -> CompiledPrompt:
        """One line per changed row, keyed by its row index."""
        lines = [
            f'[ID {s.row_index}] Version A: "{_quote(s.left, "(None/Deleted)")}" '
            f'-> Version B: "{_quote(s.right, "(None/Added)")}"'
            for s in segments
        ]
        user_prompt = "DIFFERENCES TO ANALYZE:\n" + "\n".join(lines)
        return self._finish("insights", _INSIGHT_SYSTEM_INSTRUCTIONS, user_prompt)

    def compile_analysis(self, document_a: str, document_b: str) -> CompiledPrompt:
        user_prompt = (
            f"Document 1:\n{document_a}\n\n"
            f"Document 2:\n{document_b}\n\n"
            "Return the JSON report."
        )
        return self._finish("analysis", _ANALYSIS_SYSTEM_INSTRUCTIONS, user_prompt)

    def compile_ocr(self, page_label: str | None = None) -> CompiledPrompt:
        user_prompt = "Extract all text from the attached image."
        if page_label:
            user_prompt = f"{user_prompt} ({page_label})"
        return self._finish("ocr", _OCR_SYSTEM_INSTRUCTIONS, user_prompt)


def extract_json_payload(raw_response: str) -> Any:
    """
    Parse the JSON value in a model reply.

    Accepts a bare JSON document or one wrapped in a Markdown code fence.

    Raises:
        ValueError: If no JSON value can be decoded.
    """
    text = raw_response.strip()
    if not text:
        raise ValueError("Empty model response")

    m = _FENCED_JSON_RE.search(text)
    if m:
        text = m.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as err:
        _log.warning("llm_json_parse_failed", raw=text[:200])
        raise ValueError(f"Model response is not valid JSON: {err}") from err
