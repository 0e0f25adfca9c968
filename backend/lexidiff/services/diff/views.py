"""
Projections of the classified token list.

compact_runs produces the flat change list; align_rows produces the
two-column row list. Both merge passes are maximal and idempotent:
applying them to their own output returns an equal list.
"""

from __future__ import annotations

from collections.abc import Iterable

from lexidiff.services.diff.models import AlignedRow, ChangeKind, ChangeRecord


def compact_runs(records: Iterable[ChangeRecord]) -> list[ChangeRecord]:
    """Merge adjacent records of the same kind, concatenating text in order."""
    merged: list[ChangeRecord] = []
    for record in records:
        if merged and merged[-1].kind == record.kind:
            last = merged[-1]
            merged[-1] = ChangeRecord(last.kind, last.text + record.text)
        else:
            merged.append(record)
    return merged


def row_for_record(record: ChangeRecord) -> AlignedRow:
    """Build the single-token row for one classified record."""
    if record.kind == ChangeKind.KEPT:
        return AlignedRow(left=record, right=record)
    if record.kind == ChangeKind.INSERTED:
        return AlignedRow(left=None, right=record)
    return AlignedRow(left=record, right=None)


def rows_from_records(records: Iterable[ChangeRecord]) -> list[AlignedRow]:
    return [row_for_record(record) for record in records]


def _join(first: ChangeRecord | None, second: ChangeRecord | None) -> ChangeRecord | None:
    if first is None or second is None:
        return first if second is None else second
    return ChangeRecord(first.kind, first.text + second.text)


def merge_rows(rows: Iterable[AlignedRow]) -> list[AlignedRow]:
    """
    Merge adjacent rows of the same category.

    Match rows concatenate both sides independently; insertion rows only
    grow on the right, deletion rows only on the left. A deletion next to
    an insertion is never merged.
    """
    merged: list[AlignedRow] = []
    for row in rows:
        if merged and merged[-1].category == row.category:
            last = merged[-1]
            merged[-1] = AlignedRow(
                left=_join(last.left, row.left),
                right=_join(last.right, row.right),
            )
        else:
            merged.append(row)
    return merged


def align_rows(records: Iterable[ChangeRecord]) -> list[AlignedRow]:
    """One row per classified token, then merged by category."""
    return merge_rows(rows_from_records(records))

