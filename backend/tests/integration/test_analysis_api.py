"""Integration tests: legal analysis endpoint."""
import json

import pytest

from lexidiff.core.errors import ErrorCode, ServiceUnavailableError

pytestmark = pytest.mark.asyncio

_REPLY = {
    "summary": "Liability is now uncapped.",
    "contract_type": "Software Services Agreement",
    "key_changes": [
        {"clause": "Liability", "impact": "negative", "description": "Cap removed.", "risk_score": 9}
    ],
    "risk_assessment": {"level": "High", "explanation": "Unlimited exposure."},
    "recommendations": ["Reinstate the cap."],
}


async def test_analysis_returns_camel_case_report(client, mock_llm, llm_reply):
    mock_llm.complete.return_value = llm_reply(json.dumps(_REPLY))
    resp = await client.post("/api/v1/analysis", json={"text_a": "old", "text_b": "new"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["contractType"] == "Software Services Agreement"
    assert body["riskAssessment"]["level"] == "High"
    assert body["keyChanges"][0]["riskScore"] == 9


async def test_analysis_unparseable_reply(client, mock_llm, llm_reply):
    mock_llm.complete.return_value = llm_reply("The contract looks fine to me.")
    resp = await client.post("/api/v1/analysis", json={"text_a": "old", "text_b": "new"})
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == ErrorCode.AI_RESPONSE_INVALID.value


async def test_analysis_llm_unavailable(client, mock_llm):
    mock_llm.complete.side_effect = ServiceUnavailableError(ErrorCode.AI_UNAVAILABLE, "down")
    resp = await client.post("/api/v1/analysis", json={"text_a": "old", "text_b": "new"})
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == ErrorCode.AI_UNAVAILABLE.value
