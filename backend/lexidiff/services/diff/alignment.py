"""
LCS alignment over token sequences.

build_lcs_table computes the (n+1) x (m+1) longest-common-subsequence
length table; backtrack walks it from the bottom-right corner and
classifies every token of both sequences exactly once.

Both are O(n·m) in time and memory. Callers bound input size.
"""

from __future__ import annotations

from collections.abc import Sequence

from lexidiff.services.diff.models import ChangeKind, ChangeRecord

LcsTable = list[list[int]]


def build_lcs_table(a: Sequence[str], b: Sequence[str]) -> LcsTable:
    """
    Return ``dp`` where ``dp[i][j]`` is the LCS length of ``a[:i]`` and ``b[:j]``.

    Row 0 and column 0 are all zeros.
    """
    n, m = len(a), len(b)
    dp: LcsTable = [[0] * (m + 1) for _ in range(n + 1)]

    for i in range(1, n + 1):
        token_a = a[i - 1]
        row = dp[i]
        prev = dp[i - 1]
        for j in range(1, m + 1):
            if token_a == b[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = prev[j] if prev[j] > row[j - 1] else row[j - 1]
    return dp


def backtrack(a: Sequence[str], b: Sequence[str], dp: LcsTable) -> list[ChangeRecord]:
    """
    Classify every token by walking ``dp`` from ``(n, m)`` back to ``(0, 0)``.

    Each step classifies one token:
      - equal tokens          → KEPT, consume both
      - dp[i][j-1] >= dp[i-1][j] (or a exhausted) → INSERTED, consume b
      - otherwise             → DELETED, consume a

    Insertion wins ties. Records are collected back to front and reversed
    before returning, so the result is in document order.
    """
    i, j = len(a), len(b)
    reversed_records: list[ChangeRecord] = []

    while i > 0 or j > 0:
        if i > 0 and j > 0 and a[i - 1] == b[j - 1]:
            reversed_records.append(ChangeRecord(ChangeKind.KEPT, a[i - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            reversed_records.append(ChangeRecord(ChangeKind.INSERTED, b[j - 1]))
            j -= 1
        else:
            # i > 0 and (j == 0 or dp[i - 1][j] > dp[i][j - 1])
            reversed_records.append(ChangeRecord(ChangeKind.DELETED, a[i - 1]))
            i -= 1

    reversed_records.reverse()
    return reversed_records


def classify_tokens(a: Sequence[str], b: Sequence[str]) -> list[ChangeRecord]:
    """Build the LCS table for ``a`` and ``b`` and backtrack it."""
    return backtrack(a, b, build_lcs_table(a, b))

