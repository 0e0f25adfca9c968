"""
Shared pytest fixtures for LexiDiff backend tests.

Provides:
  - test Settings (no .env, no rate limits, no retries)
  - FastAPI app + async HTTP client
  - mock LLM client (no real Ollama calls)
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lexidiff.config.settings import Settings
from lexidiff.main import create_app
from lexidiff.services.llm.client import LLMResponse


# ─── Settings override ────────────────────────────────────────────────────────

TEST_SETTINGS = Settings(
    _env_file=None,
    environment="testing",
    debug=True,
    log_json=False,
    rate_limit_enabled=False,
    ollama_max_retries=0,
    cors_origins=["http://localhost:5173"],
)


@pytest.fixture()
def settings() -> Settings:
    return TEST_SETTINGS


# ─── Mock LLM ─────────────────────────────────────────────────────────────────

@pytest.fixture()
def llm_reply() -> Callable[[str], LLMResponse]:
    """Factory for canned LLM responses."""

    def _make(content: str) -> LLMResponse:
        return LLMResponse(
            content=content, model="fake", prompt_eval_count=0, eval_count=0, done=True
        )

    return _make


@pytest.fixture()
def mock_llm(llm_reply) -> MagicMock:
    """Stand-in for OllamaClient. Replies with an empty JSON array by default."""
    mock = MagicMock()
    mock.complete = AsyncMock(return_value=llm_reply("[]"))
    mock.health_check = AsyncMock(return_value=True)
    return mock


# ─── App & HTTP client ────────────────────────────────────────────────────────

@pytest.fixture()
def app(mock_llm):
    """FastAPI test app with the LLM client replaced by ``mock_llm``."""
    app_ = create_app(settings=TEST_SETTINGS)
    app_.state.llm_client = mock_llm
    return app_


@pytest_asyncio.fixture()
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
