"""Report export endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import Response

from lexidiff.schemas.report import ReportFormat, ReportRequest
from lexidiff.services.report.builder import ReportBuilder, ReportInput

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", summary="Download a comparison report", response_class=Response)
async def export_report(
    body: ReportRequest,
    fmt: Annotated[str, Query(alias="format", description="txt | docx")] = ReportFormat.TXT.value,
) -> Response:
    """Render rows, insights, comments and the optional analysis as a file."""
    rendered = ReportBuilder().build(
        ReportInput(
            rows=[r.to_row() for r in body.rows],
            insights=body.insights,
            comments=body.comments,
            case_notes=body.case_notes,
            analysis=body.analysis,
        ),
        fmt,
    )
    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
    )
