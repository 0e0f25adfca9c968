"""
Ollama HTTP client with circuit breaker and retry logic.

Used by the explanation, analysis and OCR collaborators. The diff
engine never calls it.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import httpx
import structlog
from ollama import AsyncClient, RequestError, ResponseError

from lexidiff.config.settings import Settings, get_settings
from lexidiff.core.errors import ErrorCode, ServiceUnavailableError

_log = structlog.get_logger(__name__)


# ── Circuit Breaker ───────────────────────────────────────────────────── #


class CircuitState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Consecutive-failure breaker shared by every LLM collaborator.

    ``threshold`` failures in a row open the circuit; after
    ``timeout_seconds`` it lets a probe call through (HALF_OPEN). The
    probe's outcome closes the circuit again or restarts the wait.
    """

    threshold: int
    timeout_seconds: int
    clock: Callable[[], float] = time.monotonic
    _failures: int = field(default=0, init=False)
    _opened_at: float | None = field(default=None, init=False)

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def state(self) -> CircuitState:
        if self._opened_at is None:
            return CircuitState.CLOSED
        if self.clock() - self._opened_at >= self.timeout_seconds:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def record_success(self) -> None:
        if self._opened_at is not None:
            _log.info("circuit_closed")
        self._failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.threshold:
            self._opened_at = self.clock()
            _log.warning("circuit_opened", failures=self._failures, threshold=self.threshold)

    def allow_request(self) -> bool:
        return self.state != CircuitState.OPEN


# ── Response dataclass ────────────────────────────────────────────────── #


@dataclass
class LLMResponse:
    content: str
    model: str
    prompt_eval_count: int
    eval_count: int
    done: bool


# ── Client ────────────────────────────────────────────────────────────── #


class OllamaClient:
    """
    Async Ollama API client.

    ``complete`` returns the full response of one chat call. It respects
    the circuit breaker and retries transient failures with exponential
    back-off. One instance is shared per application so the breaker
    state survives across requests.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._circuit = CircuitBreaker(
            threshold=self._settings.ollama_circuit_breaker_threshold,
            timeout_seconds=self._settings.ollama_circuit_breaker_timeout_seconds,
        )
        self._base_url = str(self._settings.ollama_base_url).rstrip("/")
        self._client = AsyncClient(host=self._base_url, timeout=self._settings.ollama_timeout_seconds)

    @property
    def circuit(self) -> CircuitBreaker:
        return self._circuit

    def _options(self) -> dict[str, Any]:
        return {
            "temperature": self._settings.llm_temperature,
            "num_predict": self._settings.llm_max_output_tokens,
        }

    @staticmethod
    def _build_messages(
        system_prompt: str, user_prompt: str, images: list[bytes] | None
    ) -> list[dict[str, Any]]:
        user_message: dict[str, Any] = {"role": "user", "content": user_prompt}
        if images:
            user_message["images"] = images
        return [{"role": "system", "content": system_prompt}, user_message]

    @staticmethod
    def _extract_chat_content(chat_response: Any) -> str:
        message = getattr(chat_response, "message", None)
        content = getattr(message, "content", None)
        if isinstance(content, str):
            return content
        if isinstance(chat_response, dict):
            return str(chat_response.get("message", {}).get("content", ""))
        return ""

    async def _v1_chat_completion(
        self, model: str, system_prompt: str, user_prompt: str, json_mode: bool
    ) -> str:
        """OpenAI-compatible endpoint, for Ollama builds without /api/chat."""
        payload: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "stream": False,
            "temperature": self._settings.llm_temperature,
            "max_tokens": self._settings.llm_max_output_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        async with httpx.AsyncClient(timeout=self._settings.ollama_timeout_seconds) as client:
            resp = await client.post(f"{self._base_url}/v1/chat/completions", json=payload)
            resp.raise_for_status()
            choices = resp.json().get("choices", [])
            if not choices:
                return ""
            return str(choices[0].get("message", {}).get("content", ""))

    async def health_check(self) -> bool:
        """Return True if Ollama is reachable and the configured model is installed."""
        try:
            list_response = await self._client.list()
            models = [m.model for m in getattr(list_response, "models", [])]
            model_base = self._settings.ollama_model.split(":")[0]
            return any(model_base in (m or "") for m in models)
        except (RequestError, ResponseError, httpx.HTTPError, ConnectionError) as exc:
            _log.debug("ollama_health_check_failed", error=str(exc))
            return False

    def _on_failure(self, attempt: int, max_retries: int, exc: Exception) -> None:
        self._circuit.record_failure()
        _log.warning(
            "ollama_complete_failed",
            attempt=attempt,
            max_retries=max_retries,
            error=str(exc),
        )
        if attempt > max_retries:
            raise ServiceUnavailableError(
                ErrorCode.AI_UNAVAILABLE,
                f"Ollama unreachable after {max_retries} retries: {exc}",
            ) from exc

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        json_mode: bool = False,
        images: list[bytes] | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """
        Non-streaming chat completion.

        Args:
            json_mode: Ask Ollama to constrain output to valid JSON.
            images: Raw image bytes attached to the user message (vision models).
            model: Override the configured text model.

        Raises:
            ServiceUnavailableError: If the circuit is open or all retries fail.
        """
        if not self._circuit.allow_request():
            raise ServiceUnavailableError(
                ErrorCode.AI_CIRCUIT_OPEN,
                "Ollama circuit breaker is open. Please wait before retrying.",
            )

        model_name = model or self._settings.ollama_model
        max_retries = self._settings.ollama_max_retries
        messages = self._build_messages(system_prompt, user_prompt, images)

        for attempt in range(1, max_retries + 2):
            try:
                response = await self._client.chat(
                    model=model_name,
                    messages=messages,
                    stream=False,
                    format="json" if json_mode else None,
                    options=self._options(),
                )
                self._circuit.record_success()
                return LLMResponse(
                    content=self._extract_chat_content(response),
                    model=getattr(response, "model", None) or model_name,
                    prompt_eval_count=getattr(response, "prompt_eval_count", None) or 0,
                    eval_count=getattr(response, "eval_count", None) or 0,
                    done=getattr(response, "done", True),
                )
            except ResponseError as exc:
                if getattr(exc, "status_code", None) == 404 and not images:
                    _log.warning("ollama_chat_endpoint_missing_fallback_v1")
                    try:
                        content = await self._v1_chat_completion(
                            model_name, system_prompt, user_prompt, json_mode
                        )
                    except httpx.HTTPError as fallback_exc:
                        self._on_failure(attempt, max_retries, fallback_exc)
                    else:
                        self._circuit.record_success()
                        return LLMResponse(
                            content=content,
                            model=model_name,
                            prompt_eval_count=0,
                            eval_count=0,
                            done=True,
                        )
                else:
                    self._on_failure(attempt, max_retries, exc)
            except (RequestError, httpx.HTTPError, ConnectionError) as exc:
                self._on_failure(attempt, max_retries, exc)
            # Exponential back-off: 1s, 2s, 4s
            await asyncio.sleep(2 ** (attempt - 1))

        raise ServiceUnavailableError(  # unreachable, satisfies type checker
            ErrorCode.AI_UNAVAILABLE, "Exhausted retries"
        )
