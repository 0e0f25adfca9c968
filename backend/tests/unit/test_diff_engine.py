"""Unit tests for lexidiff.services.diff.engine."""
import pytest

from lexidiff.services.diff import compute_aligned_diff, compute_diff
from lexidiff.services.diff.engine import (
    Side,
    alignment_cells,
    changed_row_indices,
    compare,
    diff_stats,
    has_changes,
    reconstruct,
    reconstruct_rows,
)
from lexidiff.services.diff.models import AlignedRow, ChangeKind, ChangeRecord, RowCategory
from lexidiff.services.diff.views import compact_runs, merge_rows

KEPT, INS, DEL = ChangeKind.KEPT, ChangeKind.INSERTED, ChangeKind.DELETED

SAMPLE_A = """SOFTWARE SERVICES AGREEMENT
1. SERVICES. Provider shall provide software services to Client.
2. FEES. Client shall pay Provider $5,000 per month.
3. TERM. The agreement shall be for 12 months."""

SAMPLE_B = """SOFTWARE SERVICES AGREEMENT
1. SERVICES. Provider shall provide enhanced software services to Client.
2. FEES. Client shall pay Provider $6,500 per month.
3. TERM. The agreement shall be for 24 months.
4. LIABILITY. Provider's total liability is uncapped."""

PAIRS = [
    ("", ""),
    ("", "abc"),
    ("abc", ""),
    ("A B", "A C"),
    ("The cat sat.", "The big cat sat."),
    ("  hello", "hello"),
    ("hello\n", "hello"),
    ("a b c", "c b a"),
    ("same words  different   spacing", "same words different spacing"),
    ("x", "y"),
    (SAMPLE_A, SAMPLE_B),
    (SAMPLE_B, SAMPLE_A),
]


# ─── Concrete results ─────────────────────────────────────────────────────────

def test_flat_scenario():
    assert compute_diff("A B", "A C") == [
        ChangeRecord(KEPT, "A "),
        ChangeRecord(DEL, "B"),
        ChangeRecord(INS, "C"),
    ]


def test_aligned_scenario_deletion_precedes_insertion():
    assert compute_aligned_diff("A B", "A C") == [
        AlignedRow(left=ChangeRecord(KEPT, "A "), right=ChangeRecord(KEPT, "A ")),
        AlignedRow(left=ChangeRecord(DEL, "B"), right=None),
        AlignedRow(left=None, right=ChangeRecord(INS, "C")),
    ]


def test_inserted_word():
    assert compute_diff("The cat sat.", "The big cat sat.") == [
        ChangeRecord(KEPT, "The"),
        ChangeRecord(INS, " big"),
        ChangeRecord(KEPT, " cat sat."),
    ]


def test_deleted_word():
    assert compute_diff("The big cat sat.", "The cat sat.") == [
        ChangeRecord(KEPT, "The"),
        ChangeRecord(DEL, " big"),
        ChangeRecord(KEPT, " cat sat."),
    ]


def test_leading_whitespace_difference():
    assert compute_diff("  hello", "hello") == [
        ChangeRecord(DEL, "  "),
        ChangeRecord(KEPT, "hello"),
    ]


# ─── Empty & identity ─────────────────────────────────────────────────────────

def test_both_empty():
    assert compute_diff("", "") == []
    assert compute_aligned_diff("", "") == []


def test_empty_a_is_one_insertion():
    assert compute_diff("", "abc") == [ChangeRecord(INS, "abc")]


def test_empty_b_is_one_deletion():
    assert compute_diff("abc", "") == [ChangeRecord(DEL, "abc")]


@pytest.mark.parametrize("text", ["abc", "A B", "  padded  ", SAMPLE_A, " "])
def test_identical_inputs(text):
    assert compute_diff(text, text) == [ChangeRecord(KEPT, text)]
    assert compute_aligned_diff(text, text) == [
        AlignedRow(left=ChangeRecord(KEPT, text), right=ChangeRecord(KEPT, text))
    ]


# ─── Invariants over a corpus ─────────────────────────────────────────────────

@pytest.mark.parametrize("text_a,text_b", PAIRS)
def test_flat_reconstructs_both_documents(text_a, text_b):
    records = compute_diff(text_a, text_b)
    assert reconstruct(records, Side.A) == text_a
    assert reconstruct(records, Side.B) == text_b


@pytest.mark.parametrize("text_a,text_b", PAIRS)
def test_rows_reconstruct_both_documents(text_a, text_b):
    rows = compute_aligned_diff(text_a, text_b)
    assert reconstruct_rows(rows, Side.A) == text_a
    assert reconstruct_rows(rows, Side.B) == text_b


@pytest.mark.parametrize("text_a,text_b", PAIRS)
def test_outputs_are_maximally_compacted(text_a, text_b):
    records = compute_diff(text_a, text_b)
    rows = compute_aligned_diff(text_a, text_b)
    assert all(x.kind != y.kind for x, y in zip(records, records[1:]))
    assert all(x.category != y.category for x, y in zip(rows, rows[1:]))
    assert compact_runs(records) == records
    assert merge_rows(rows) == rows


@pytest.mark.parametrize("text_a,text_b", PAIRS)
def test_repeated_calls_are_equal(text_a, text_b):
    assert compute_diff(text_a, text_b) == compute_diff(text_a, text_b)
    assert compute_aligned_diff(text_a, text_b) == compute_aligned_diff(text_a, text_b)


@pytest.mark.parametrize("text_a,text_b", PAIRS)
def test_compare_projects_same_views(text_a, text_b):
    result = compare(text_a, text_b)
    assert list(result.records) == compute_diff(text_a, text_b)
    assert list(result.rows) == compute_aligned_diff(text_a, text_b)
    assert compact_runs(result.tokens) == list(result.records)


def test_match_rows_have_equal_sides():
    for row in compute_aligned_diff(SAMPLE_A, SAMPLE_B):
        if row.category == RowCategory.MATCH:
            assert row.left == row.right


def test_sample_changes_found():
    records = compute_diff(SAMPLE_A, SAMPLE_B)
    inserted = "".join(r.text for r in records if r.kind == INS)
    deleted = "".join(r.text for r in records if r.kind == DEL)
    assert "enhanced" in inserted
    assert "$6,500" in inserted and "$5,000" in deleted
    assert "24" in inserted and "12" in deleted


# ─── Helpers ──────────────────────────────────────────────────────────────────

def test_alignment_cells():
    assert alignment_cells("A B", "A C") == 16
    assert alignment_cells("", "") == 1


def test_has_changes():
    assert not has_changes(compute_diff("same", "same"))
    assert has_changes(compute_diff("same", "different"))
    assert not has_changes([])


def test_changed_row_indices():
    assert changed_row_indices(compute_aligned_diff("A B", "A C")) == [1, 2]


def test_diff_stats():
    stats = diff_stats(compute_diff("A B", "A C"))
    assert stats == {
        "kept_chars": 2,
        "inserted_chars": 1,
        "deleted_chars": 1,
        "inserted_runs": 1,
        "deleted_runs": 1,
    }
