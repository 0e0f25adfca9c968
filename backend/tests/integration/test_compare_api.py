"""Integration tests: comparison endpoints."""
import asyncio
import time

import pytest
from httpx import ASGITransport, AsyncClient

import lexidiff.api.v1.compare as compare_api
from lexidiff.core.errors import ErrorCode, ServiceUnavailableError
from lexidiff.main import create_app
from tests.conftest import TEST_SETTINGS

pytestmark = pytest.mark.asyncio


# ─── POST /compare ────────────────────────────────────────────────────────────

async def test_flat_compare(client):
    resp = await client.post("/api/v1/compare", json={"text_a": "A B", "text_b": "A C"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["changes"] == [
        {"type": "unchanged", "value": "A "},
        {"type": "removed", "value": "B"},
        {"type": "added", "value": "C"},
    ]
    assert body["has_changes"] is True
    assert body["stats"]["inserted_runs"] == 1


async def test_flat_compare_empty_inputs(client):
    resp = await client.post("/api/v1/compare", json={"text_a": "", "text_b": ""})
    assert resp.status_code == 200
    assert resp.json()["changes"] == []
    assert resp.json()["has_changes"] is False


async def test_compare_requires_both_texts(client):
    resp = await client.post("/api/v1/compare", json={"text_a": "only one"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == ErrorCode.VALIDATION_ERROR.value


async def test_compare_rejects_oversized_input(mock_llm):
    app = create_app(TEST_SETTINGS.model_copy(update={"max_document_chars": 5}))
    app.state.llm_client = mock_llm
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.post("/api/v1/compare", json={"text_a": "too long", "text_b": ""})
    assert resp.status_code == 413
    assert resp.json()["error"]["code"] == ErrorCode.COMPARE_INPUT_TOO_LARGE.value


async def test_compare_rejects_oversized_alignment(mock_llm):
    app = create_app(TEST_SETTINGS.model_copy(update={"max_alignment_cells": 10}))
    app.state.llm_client = mock_llm
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.post("/api/v1/compare/aligned", json={"text_a": "A B", "text_b": "A C"})
    assert resp.status_code == 413
    assert resp.json()["error"]["detail"]["cells"] == 16


# ─── POST /compare/aligned ────────────────────────────────────────────────────

async def test_aligned_compare_without_explanations(client, mock_llm):
    resp = await client.post("/api/v1/compare/aligned", json={"text_a": "A B", "text_b": "A C"})
    assert resp.status_code == 200
    body = resp.json()
    assert [r["category"] for r in body["rows"]] == ["match", "deletion", "insertion"]
    assert body["rows"][1] == {
        "left": {"type": "removed", "value": "B"},
        "right": None,
        "category": "deletion",
    }
    assert body["changed_rows"] == [1, 2]
    assert body["stats"]["deleted_chars"] == 1
    assert body["stats"]["inserted_runs"] == 1
    assert body["insights"] == {}
    mock_llm.complete.assert_not_awaited()


async def test_aligned_compare_with_explanations(client, mock_llm, llm_reply):
    mock_llm.complete.return_value = llm_reply('[{"id": 1, "insight": "B is gone."}]')
    resp = await client.post(
        "/api/v1/compare/aligned", json={"text_a": "A B", "text_b": "A C", "explain": True}
    )
    assert resp.status_code == 200
    assert resp.json()["insights"] == {"1": "B is gone."}


async def test_aligned_compare_survives_llm_outage(client, mock_llm):
    mock_llm.complete.side_effect = ServiceUnavailableError(ErrorCode.AI_UNAVAILABLE, "down")
    resp = await client.post(
        "/api/v1/compare/aligned", json={"text_a": "A B", "text_b": "A C", "explain": True}
    )
    assert resp.status_code == 200
    assert len(resp.json()["rows"]) == 3
    assert resp.json()["insights"] == {}


# ─── Event loop ──────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "engine_fn,path",
    [("compute_diff", "/api/v1/compare"), ("compare", "/api/v1/compare/aligned")],
)
async def test_alignment_runs_off_the_event_loop(client, monkeypatch, engine_fn, path):
    real = getattr(compare_api, engine_fn)

    def slow(text_a, text_b):
        time.sleep(0.3)
        return real(text_a, text_b)

    monkeypatch.setattr(compare_api, engine_fn, slow)
    ticks = 0

    async def ticker():
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    task = asyncio.create_task(ticker())
    try:
        resp = await client.post(path, json={"text_a": "A B", "text_b": "A C"})
    finally:
        task.cancel()

    assert resp.status_code == 200
    assert ticks >= 10


# ─── POST /compare/explain ────────────────────────────────────────────────────

async def test_explain_existing_rows(client, mock_llm, llm_reply):
    mock_llm.complete.return_value = llm_reply('[{"id": 0, "insight": "Fee raised."}]')
    rows = [
        {"left": {"type": "removed", "value": "$5,000"}, "right": None},
        {"left": None, "right": {"type": "added", "value": "$6,500"}},
    ]
    resp = await client.post("/api/v1/compare/explain", json={"rows": rows})
    assert resp.status_code == 200
    assert resp.json() == {"insights": {"0": "Fee raised."}}


async def test_explain_rejects_malformed_row(client):
    rows = [{"left": {"type": "added", "value": "x"}, "right": None}]
    resp = await client.post("/api/v1/compare/explain", json={"rows": rows})
    assert resp.status_code == 422


# ─── GET /compare/samples ─────────────────────────────────────────────────────

async def test_samples(client):
    resp = await client.get("/api/v1/compare/samples")
    assert resp.status_code == 200
    body = resp.json()
    assert body["text_a"].startswith("SOFTWARE SERVICES AGREEMENT")
    assert "$6,500" in body["text_b"]
