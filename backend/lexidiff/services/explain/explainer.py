"""
Explanation service: attaches a one-sentence AI insight to changed rows.

The result maps aligned-row index to insight text. Any LLM or parsing
failure yields an empty mapping; a comparison without insights is still
a complete, renderable result.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from lexidiff.config.settings import Settings, get_settings
from lexidiff.core.errors import AppError
from lexidiff.services.diff.models import AlignedRow
from lexidiff.services.llm.client import OllamaClient
from lexidiff.services.llm.prompt_engine import ChangeSegment, PromptEngine, extract_json_payload

_log = structlog.get_logger(__name__)


class RowInsight(BaseModel):
    id: int
    insight: str


_INSIGHTS_ADAPTER = TypeAdapter(list[RowInsight])


def select_segments(rows: Sequence[AlignedRow], limit: int) -> list[ChangeSegment]:
    """
    Pick the changed rows worth explaining, keeping their row indices.

    Match rows and rows whose text is only whitespace are skipped; at
    most ``limit`` segments are returned, in row order.
    """
    segments: list[ChangeSegment] = []
    for index, row in enumerate(rows):
        if not row.is_change:
            continue
        left, right = row.left_text, row.right_text
        if not ((left or "").strip() or (right or "").strip()):
            continue
        segments.append(ChangeSegment(row_index=index, left=left, right=right))
        if len(segments) >= limit:
            break
    return segments


def parse_insights(raw_response: str, allowed_ids: set[int]) -> dict[int, str]:
    """
    Map the model's ``[{"id", "insight"}]`` reply back to row indices.

    A top-level object holding the array (e.g. ``{"insights": [...]}``) is
    unwrapped. Ids that were not asked for are dropped.

    Raises:
        ValueError: If the reply is not a usable insight list.
    """
    payload = extract_json_payload(raw_response)
    if isinstance(payload, dict):
        arrays = [v for v in payload.values() if isinstance(v, list)]
        if len(arrays) != 1:
            raise ValueError("Expected a JSON array of insights")
        payload = arrays[0]

    try:
        items = _INSIGHTS_ADAPTER.validate_python(payload)
    except PydanticValidationError as err:
        raise ValueError(f"Malformed insight list: {err.error_count()} errors") from err

    return {
        item.id: item.insight.strip()
        for item in items
        if item.id in allowed_ids and item.insight.strip()
    }


class ExplanationService:
    """Asks the LLM to explain each changed row of an aligned diff."""

    def __init__(self, llm: OllamaClient, settings: Settings | None = None) -> None:
        self._llm = llm
        self._settings = settings or get_settings()
        self._prompt_engine = PromptEngine()

    async def explain(self, rows: Sequence[AlignedRow]) -> dict[int, str]:
        segments = select_segments(rows, self._settings.explanation_max_rows)
        if not segments:
            return {}

        prompt = self._prompt_engine.compile_insights(segments)
        log = _log.bind(prompt_hash=prompt.prompt_hash, segments=len(segments))

        try:
            response = await self._llm.complete(
                prompt.system_prompt, prompt.user_prompt, json_mode=True
            )
            insights = parse_insights(response.content, {s.row_index for s in segments})
        except (AppError, ValueError) as exc:
            log.warning("explanations_unavailable", error=str(exc))
            return {}

        log.info("explanations_generated", insights=len(insights))
        return insights
