"""
Comparison endpoints: flat diff, aligned rows and row insights.

The LCS alignment is CPU-bound, so it runs in a worker thread and the
event loop keeps serving other requests meanwhile.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter
from prometheus_client import Counter

from lexidiff.api.deps import LLMClientDep, SettingsDep, enforce_input_policy
from lexidiff.schemas.compare import (
    AlignedCompareRequest,
    AlignedCompareResponse,
    AlignedRowOut,
    ChangeRecordOut,
    CompareRequest,
    CompareResponse,
    DiffStats,
    ExplainRequest,
    ExplainResponse,
    SamplesResponse,
)
from lexidiff.services.diff.engine import (
    changed_row_indices,
    compare,
    compute_diff,
    diff_stats,
    has_changes,
)
from lexidiff.services.explain.explainer import ExplanationService

router = APIRouter(prefix="/compare", tags=["compare"])

_COMPARISONS = Counter(
    "lexidiff_comparisons_total",
    "Comparisons computed, by output view",
    ["view"],
)

SAMPLE_DOC_A = """SOFTWARE SERVICES AGREEMENT
1. SERVICES. Provider shall provide software services to Client.
2. FEES. Client shall pay Provider $5,000 per month.
3. TERM. The agreement shall be for 12 months.
4. LIABILITY. Provider's total liability shall not exceed $10,000."""

SAMPLE_DOC_B = """SOFTWARE SERVICES AGREEMENT
1. SERVICES. Provider shall provide enhanced software services to Client.
2. FEES. Client shall pay Provider $6,500 per month.
3. TERM. The agreement shall be for 24 months.
4. LIABILITY. Provider's total liability is uncapped for any breaches."""


@router.post("", response_model=CompareResponse, summary="Flat token-level diff")
async def compare_flat(body: CompareRequest, settings: SettingsDep) -> CompareResponse:
    """Return maximal runs of unchanged, added and removed text."""
    enforce_input_policy(body.text_a, body.text_b, settings)
    records = await asyncio.to_thread(compute_diff, body.text_a, body.text_b)
    _COMPARISONS.labels(view="flat").inc()
    return CompareResponse(
        changes=[ChangeRecordOut.from_record(r) for r in records],
        has_changes=has_changes(records),
        stats=DiffStats(**diff_stats(records)),
    )


@router.post(
    "/aligned",
    response_model=AlignedCompareResponse,
    summary="Two-column aligned diff, optionally with AI insights",
)
async def compare_aligned(
    body: AlignedCompareRequest,
    settings: SettingsDep,
    llm: LLMClientDep,
) -> AlignedCompareResponse:
    """
    Align both versions row by row, with flat-view stats from the same alignment.

    With ``explain`` set, changed rows are sent to the LLM; if that fails
    the rows are still returned, with an empty insight map.
    """
    enforce_input_policy(body.text_a, body.text_b, settings)
    comparison = await asyncio.to_thread(compare, body.text_a, body.text_b)
    rows = list(comparison.rows)
    _COMPARISONS.labels(view="aligned").inc()

    insights: dict[int, str] = {}
    if body.explain:
        insights = await ExplanationService(llm, settings).explain(rows)

    return AlignedCompareResponse(
        rows=[AlignedRowOut.from_row(r) for r in rows],
        changed_rows=changed_row_indices(rows),
        stats=DiffStats(**diff_stats(comparison.records)),
        insights=insights,
    )


@router.post("/explain", response_model=ExplainResponse, summary="AI insights for aligned rows")
async def explain_rows(
    body: ExplainRequest,
    settings: SettingsDep,
    llm: LLMClientDep,
) -> ExplainResponse:
    rows = [r.to_row() for r in body.rows]
    insights = await ExplanationService(llm, settings).explain(rows)
    return ExplainResponse(insights=insights)


@router.get("/samples", response_model=SamplesResponse, summary="Sample agreement pair")
async def samples() -> SamplesResponse:
    return SamplesResponse(text_a=SAMPLE_DOC_A, text_b=SAMPLE_DOC_B)
