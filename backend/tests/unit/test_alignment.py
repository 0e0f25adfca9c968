"""Unit tests for lexidiff.services.diff.alignment."""
from lexidiff.services.diff.alignment import (
    backtrack,
    build_lcs_table,
    classify_tokens,
)
from lexidiff.services.diff.models import ChangeKind, ChangeRecord

KEPT, INS, DEL = ChangeKind.KEPT, ChangeKind.INSERTED, ChangeKind.DELETED


# ─── LCS table ────────────────────────────────────────────────────────────────

def test_table_dimensions_and_zero_borders():
    dp = build_lcs_table(["a", "b"], ["a", "c", "b"])
    assert len(dp) == 3
    assert all(len(row) == 4 for row in dp)
    assert dp[0] == [0, 0, 0, 0]
    assert [row[0] for row in dp] == [0, 0, 0]


def test_table_values_follow_recurrence():
    a = ["A", " ", "B"]
    b = ["A", " ", "C"]
    dp = build_lcs_table(a, b)
    assert dp[1][1] == 1
    assert dp[2][2] == 2
    assert dp[3][3] == 2
    # genuine tie at the bottom-right corner
    assert dp[3][2] == dp[2][3] == 2


def test_table_for_empty_sequences():
    assert build_lcs_table([], []) == [[0]]
    assert build_lcs_table([], ["x"]) == [[0, 0]]
    assert build_lcs_table(["x"], []) == [[0], [0]]


def test_lcs_length_in_bottom_right_corner():
    a, b = list("ABCBDAB"), list("BDCABA")
    assert build_lcs_table(a, b)[len(a)][len(b)] == 4
    assert build_lcs_table([], ["a"])[0][1] == 0


# ─── Backtracking ─────────────────────────────────────────────────────────────

def test_tie_prefers_insertion_so_deletion_comes_first():
    a, b = ["x"], ["y"]
    records = backtrack(a, b, build_lcs_table(a, b))
    assert records == [ChangeRecord(DEL, "x"), ChangeRecord(INS, "y")]


def test_scenario_with_shared_prefix():
    records = classify_tokens(["A", " ", "B"], ["A", " ", "C"])
    assert records == [
        ChangeRecord(KEPT, "A"),
        ChangeRecord(KEPT, " "),
        ChangeRecord(DEL, "B"),
        ChangeRecord(INS, "C"),
    ]


def test_every_token_classified_exactly_once():
    a = ["a", " ", "b", " ", "c"]
    b = ["x", " ", "b", " ", "y"]
    records = classify_tokens(a, b)
    from_a = [r.text for r in records if r.kind in (KEPT, DEL)]
    from_b = [r.text for r in records if r.kind in (KEPT, INS)]
    assert from_a == a
    assert from_b == b


def test_interleaved_changes_order():
    records = classify_tokens(["a", " ", "b", " ", "c"], ["x", " ", "b", " ", "y"])
    assert [(r.kind, r.text) for r in records] == [
        (DEL, "a"),
        (INS, "x"),
        (KEPT, " "),
        (KEPT, "b"),
        (KEPT, " "),
        (DEL, "c"),
        (INS, "y"),
    ]


def test_only_insertions_when_a_is_empty():
    records = classify_tokens([], ["p", " ", "q"])
    assert [r.kind for r in records] == [INS, INS, INS]
    assert [r.text for r in records] == ["p", " ", "q"]


def test_only_deletions_when_b_is_empty():
    records = classify_tokens(["p", " ", "q"], [])
    assert [r.kind for r in records] == [DEL, DEL, DEL]


def test_both_empty():
    assert classify_tokens([], []) == []


def test_kept_count_equals_lcs_length():
    a = "the quick brown fox jumps".split(" ")
    b = "the slow brown dog jumps".split(" ")
    records = classify_tokens(a, b)
    assert sum(1 for r in records if r.kind == KEPT) == build_lcs_table(a, b)[len(a)][len(b)]
