"""
Diff engine facade.

Tokenizes both inputs once, aligns them once, and projects the single
classified token list into the flat and row views. Every function here
is pure: the same inputs always produce equal outputs and no state is
kept between calls.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

import structlog

from lexidiff.services.diff.alignment import classify_tokens
from lexidiff.services.diff.models import AlignedRow, ChangeKind, ChangeRecord
from lexidiff.services.diff.tokenizer import tokenize
from lexidiff.services.diff.views import align_rows, compact_runs

_log = structlog.get_logger(__name__)


class Side(StrEnum):
    """Which source document to rebuild from an output sequence."""

    A = "a"
    B = "b"


_SIDE_KINDS = {
    Side.A: (ChangeKind.KEPT, ChangeKind.DELETED),
    Side.B: (ChangeKind.KEPT, ChangeKind.INSERTED),
}


@dataclass(frozen=True)
class Comparison:
    """Both views of one alignment, plus the token-level classification."""

    tokens: tuple[ChangeRecord, ...]
    records: tuple[ChangeRecord, ...]
    rows: tuple[AlignedRow, ...]


def _classify(text_a: str, text_b: str) -> list[ChangeRecord]:
    tokens_a = tokenize(text_a)
    tokens_b = tokenize(text_b)
    classified = classify_tokens(tokens_a, tokens_b)
    _log.debug(
        "diff_computed",
        tokens_a=len(tokens_a),
        tokens_b=len(tokens_b),
        changed_tokens=sum(1 for r in classified if r.kind != ChangeKind.KEPT),
    )
    return classified


def compare(text_a: str, text_b: str) -> Comparison:
    """Align ``text_a`` against ``text_b`` and return both projections."""
    classified = _classify(text_a, text_b)
    return Comparison(
        tokens=tuple(classified),
        records=tuple(compact_runs(classified)),
        rows=tuple(align_rows(classified)),
    )


def compute_diff(text_a: str, text_b: str) -> list[ChangeRecord]:
    """
    Flat view: maximal runs of kept / inserted / deleted text.

    ``compute_diff("", "")`` is ``[]``; identical non-empty inputs give a
    single KEPT record.
    """
    return compact_runs(_classify(text_a, text_b))


def compute_aligned_diff(text_a: str, text_b: str) -> list[AlignedRow]:
    """Row view: match / deletion / insertion rows, merged by category."""
    return align_rows(_classify(text_a, text_b))


def alignment_cells(text_a: str, text_b: str) -> int:
    """Size of the LCS table that aligning these inputs would allocate."""
    return (len(tokenize(text_a)) + 1) * (len(tokenize(text_b)) + 1)


# ── Reconstruction & summaries ────────────────────────────────────────── #


def reconstruct(records: Iterable[ChangeRecord], side: Side) -> str:
    """Rebuild document A or B from a flat change list."""
    kinds = _SIDE_KINDS[side]
    return "".join(r.text for r in records if r.kind in kinds)


def reconstruct_rows(rows: Iterable[AlignedRow], side: Side) -> str:
    """Rebuild document A (left column) or B (right column) from rows."""
    if side == Side.A:
        return "".join(row.left.text for row in rows if row.left is not None)
    return "".join(row.right.text for row in rows if row.right is not None)


def has_changes(records: Iterable[ChangeRecord]) -> bool:
    """Return True if the diff contains anything other than kept text."""
    return any(r.kind != ChangeKind.KEPT for r in records)


def changed_row_indices(rows: Sequence[AlignedRow]) -> list[int]:
    return [index for index, row in enumerate(rows) if row.is_change]


def diff_stats(records: Iterable[ChangeRecord]) -> dict[str, int]:
    """Character and run counts per change kind."""
    stats = {
        "kept_chars": 0,
        "inserted_chars": 0,
        "deleted_chars": 0,
        "inserted_runs": 0,
        "deleted_runs": 0,
    }
    for record in records:
        if record.kind == ChangeKind.KEPT:
            stats["kept_chars"] += len(record.text)
        elif record.kind == ChangeKind.INSERTED:
            stats["inserted_chars"] += len(record.text)
            stats["inserted_runs"] += 1
        else:
            stats["deleted_chars"] += len(record.text)
            stats["deleted_runs"] += 1
    return stats

