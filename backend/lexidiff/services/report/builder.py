"""
Report builder: renders a comparison as a downloadable document.

Rules:
  - Rows are rendered in order; each row index is the key that insights
    and user comments attach to.
  - Missing insights are not an error; the row is simply rendered bare.
  - Comments pointing at a row index that does not exist are listed at
    the end rather than dropped.
  - Plain-text reports lead with the analysis as pretty JSON, when present.
  - DOCX text goes through _xml_safe, since python-docx rejects control
    characters such as the form feeds PDF pages are joined with.
"""

from __future__ import annotations

import io
import json
import re
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import structlog
from docx import Document  # type: ignore[import-untyped]
from docx.shared import Pt  # type: ignore[import-untyped]

from lexidiff.core.errors import ErrorCode, ValidationError
from lexidiff.schemas.analysis import LegalAnalysis
from lexidiff.schemas.report import ReportFormat, UserComment
from lexidiff.services.diff.models import AlignedRow, ChangeKind, ChangeRecord

_log = structlog.get_logger(__name__)

# Everything below 0x20 except tab, newline and carriage return
_XML_ILLEGAL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

_MEDIA_TYPES = {
    ReportFormat.TXT: "text/plain; charset=utf-8",
    ReportFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


@dataclass
class ReportInput:
    rows: Sequence[AlignedRow]
    insights: dict[int, str] = field(default_factory=dict)
    comments: Sequence[UserComment] = ()
    case_notes: str = ""
    analysis: LegalAnalysis | None = None
    generated_on: date | None = None


@dataclass
class RenderedReport:
    filename: str
    media_type: str
    content: bytes


def report_filename(fmt: ReportFormat, generated_on: date) -> str:
    return f"lexidiff-report-{generated_on.isoformat()}.{fmt.value}"


def _comments_by_row(
    comments: Sequence[UserComment], row_count: int
) -> tuple[dict[int, list[UserComment]], list[UserComment]]:
    by_row: dict[int, list[UserComment]] = defaultdict(list)
    orphans: list[UserComment] = []
    for comment in sorted(comments, key=lambda c: c.timestamp):
        if comment.diff_index < row_count:
            by_row[comment.diff_index].append(comment)
        else:
            orphans.append(comment)
    return by_row, orphans


def _format_timestamp(ms: int) -> str:
    try:
        return datetime.fromtimestamp(ms / 1000, tz=UTC).strftime("%Y-%m-%d %H:%M UTC")
    except (ValueError, OverflowError, OSError):
        return f"{ms} ms"


def _xml_safe(text: str) -> str:
    return _XML_ILLEGAL_RE.sub(" ", text)


class ReportBuilder:
    """Renders ReportInput as plain text or DOCX."""

    def build(self, report: ReportInput, fmt: ReportFormat | str) -> RenderedReport:
        try:
            fmt = ReportFormat(fmt)
        except ValueError as err:
            raise ValidationError(
                f"Unsupported report format: {fmt}",
                detail={"allowed": [f.value for f in ReportFormat]},
                code=ErrorCode.REPORT_FORMAT_UNSUPPORTED,
            ) from err

        generated_on = report.generated_on or datetime.now(UTC).date()
        if fmt == ReportFormat.TXT:
            content = self.build_text(report).encode("utf-8")
        else:
            content = self.build_docx(report)

        _log.info(
            "report_built",
            format=fmt.value,
            rows=len(report.rows),
            insights=len(report.insights),
            comments=len(report.comments),
            size=len(content),
        )
        return RenderedReport(
            filename=report_filename(fmt, generated_on),
            media_type=_MEDIA_TYPES[fmt],
            content=content,
        )

    # ── Plain text ────────────────────────────────────────────────────── #

    def build_text(self, report: ReportInput) -> str:
        lines: list[str] = []

        if report.analysis is not None:
            lines.append(
                json.dumps(report.analysis.model_dump(by_alias=True, mode="json"), indent=2)
            )
            lines.append("")

        by_row, orphans = _comments_by_row(report.comments, len(report.rows))
        changed = [(i, row) for i, row in enumerate(report.rows) if row.is_change or i in by_row]

        lines.append("CHANGES")
        if not changed:
            lines.append("  No differences found.")
        for index, row in changed:
            lines.append(f"[#{index}] {row.category.value.upper()}")
            if row.left is not None and row.left.kind == ChangeKind.DELETED:
                lines.append(f"  Version A: {row.left.text!r}")
            if row.right is not None and row.right.kind == ChangeKind.INSERTED:
                lines.append(f"  Version B: {row.right.text!r}")
            if index in report.insights:
                lines.append(f"  Insight: {report.insights[index]}")
            for comment in by_row.get(index, []):
                stamp = _format_timestamp(comment.timestamp)
                lines.append(f"  Note ({comment.author}, {stamp}): {comment.text}")

        if orphans:
            lines.append("")
            lines.append("OTHER NOTES")
            for comment in orphans:
                lines.append(f"  [#{comment.diff_index}] {comment.author}: {comment.text}")

        if report.case_notes.strip():
            lines.append("")
            lines.append("CASE NOTES")
            lines.append(report.case_notes.strip())

        return "\n".join(lines) + "\n"

    # ── DOCX ──────────────────────────────────────────────────────────── #

    def build_docx(self, report: ReportInput) -> bytes:
        doc = Document()
        style = doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(10)

        doc.add_heading("LexiDiff Comparison Report", level=0)

        if report.analysis is not None:
            self._add_analysis(doc, report.analysis)

        by_row, orphans = _comments_by_row(report.comments, len(report.rows))

        doc.add_heading("Aligned Versions", level=1)
        table = doc.add_table(rows=1, cols=3)
        table.style = "Table Grid"
        header = table.rows[0].cells
        header[0].text = "#"
        header[1].text = "Version A (Original)"
        header[2].text = "Version B (Modified)"

        for index, row in enumerate(report.rows):
            cells = table.add_row().cells
            cells[0].text = str(index)
            self._fill_cell(cells[1], row.left)
            self._fill_cell(cells[2], row.right)

            if index in report.insights:
                para = cells[2].add_paragraph()
                run = para.add_run(_xml_safe(f"AI insight: {report.insights[index]}"))
                run.italic = True
            for comment in by_row.get(index, []):
                para = cells[2].add_paragraph()
                run = para.add_run(_xml_safe(f"Note ({comment.author}): {comment.text}"))
                run.italic = True

        if orphans:
            doc.add_heading("Other Notes", level=1)
            for comment in orphans:
                doc.add_paragraph(
                    _xml_safe(f"[#{comment.diff_index}] {comment.author}: {comment.text}"),
                    style="List Bullet",
                )

        if report.case_notes.strip():
            doc.add_heading("Case Notes", level=1)
            for paragraph in report.case_notes.strip().split("\n"):
                doc.add_paragraph(_xml_safe(paragraph))

        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def _fill_cell(cell: object, record: ChangeRecord | None) -> None:
        """Write one side of a row; deletions struck through, insertions underlined."""
        para = cell.paragraphs[0]  # type: ignore[attr-defined]
        if record is None:
            return
        run = para.add_run(_xml_safe(record.text))
        if record.kind == ChangeKind.DELETED:
            run.font.strike = True
        elif record.kind == ChangeKind.INSERTED:
            run.underline = True
            run.bold = True

    @staticmethod
    def _add_analysis(doc: Document, analysis: LegalAnalysis) -> None:
        doc.add_heading("AI Legal Analysis", level=1)
        if analysis.contract_type:
            doc.add_paragraph(_xml_safe(f"Contract type: {analysis.contract_type}"))
        doc.add_paragraph(_xml_safe(analysis.summary))

        doc.add_heading(f"Risk: {analysis.risk_assessment.level.value}", level=2)
        doc.add_paragraph(_xml_safe(analysis.risk_assessment.explanation))

        if analysis.key_changes:
            doc.add_heading("Key Changes", level=2)
            table = doc.add_table(rows=1, cols=4)
            table.style = "Table Grid"
            for cell, title in zip(
                table.rows[0].cells, ("Clause", "Impact", "Risk", "Description"), strict=True
            ):
                cell.text = title
            for change in analysis.key_changes:
                cells = table.add_row().cells
                cells[0].text = _xml_safe(change.clause)
                cells[1].text = change.impact.value
                cells[2].text = f"{change.risk_score}/10"
                cells[3].text = _xml_safe(change.description)

        if analysis.recommendations:
            doc.add_heading("Recommendations", level=2)
            for recommendation in analysis.recommendations:
                doc.add_paragraph(_xml_safe(recommendation), style="List Bullet")
