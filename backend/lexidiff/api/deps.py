"""
FastAPI dependency providers.

Settings and the shared LLM client live on ``app.state`` so tests can
swap them per application instance.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from lexidiff.config.settings import Settings
from lexidiff.core.errors import InputTooLargeError
from lexidiff.services.diff.engine import alignment_cells
from lexidiff.services.llm.client import OllamaClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_llm_client(request: Request) -> OllamaClient:
    return request.app.state.llm_client


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
LLMClientDep = Annotated[OllamaClient, Depends(get_llm_client)]


def enforce_input_policy(text_a: str, text_b: str, settings: Settings) -> None:
    """
    Reject document pairs whose alignment would be too expensive.

    The diff engine allocates an (n+1) x (m+1) table and has no limit of
    its own, so the bound is applied here before it is called.

    Raises:
        InputTooLargeError: If either document or the table is over the limit.
    """
    for label, text in (("text_a", text_a), ("text_b", text_b)):
        if len(text) > settings.max_document_chars:
            raise InputTooLargeError(
                f"{label} exceeds the maximum of {settings.max_document_chars} characters",
                detail={"field": label, "chars": len(text), "limit": settings.max_document_chars},
            )

    cells = alignment_cells(text_a, text_b)
    if cells > settings.max_alignment_cells:
        raise InputTooLargeError(
            "Documents are too large to align together",
            detail={"cells": cells, "limit": settings.max_alignment_cells},
        )
