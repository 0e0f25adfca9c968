"""Document import endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, UploadFile

from lexidiff.api.deps import LLMClientDep, SettingsDep
from lexidiff.schemas.document import ExtractedDocumentOut
from lexidiff.services.ingestion.extractor import DocumentExtractor

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "/extract",
    response_model=ExtractedDocumentOut,
    summary="Extract comparable text from a DOCX, PDF, image or text file",
)
async def extract_document(
    file: Annotated[UploadFile, File(description="DOCX, PDF, image or plain-text file")],
    settings: SettingsDep,
    llm: LLMClientDep,
) -> ExtractedDocumentOut:
    """
    Read an uploaded file and return its text.

    Nothing is stored; the text is meant to be fed straight into a comparison.
    """
    raw = await file.read()
    filename = file.filename or "upload"
    content_type = file.content_type or "application/octet-stream"

    text = await DocumentExtractor(llm, settings).extract(raw, filename, content_type)
    return ExtractedDocumentOut(
        filename=filename,
        content_type=content_type,
        text=text,
        char_count=len(text),
    )
