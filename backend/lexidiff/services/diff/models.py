"""Value types produced by the diff engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ChangeKind(StrEnum):
    """Classification of a token or run. Values match the client contract."""

    KEPT = "unchanged"
    INSERTED = "added"
    DELETED = "removed"


class RowCategory(StrEnum):
    MATCH = "match"
    INSERTION = "insertion"
    DELETION = "deletion"


@dataclass(frozen=True)
class ChangeRecord:
    """A contiguous run of same-kind text."""

    kind: ChangeKind
    text: str


@dataclass(frozen=True)
class AlignedRow:
    """
    A two-column row pairing a fragment of document A with document B.

    Legal shapes:
      MATCH     → left and right both KEPT
      INSERTION → left absent, right INSERTED
      DELETION  → left DELETED, right absent
    """

    left: ChangeRecord | None
    right: ChangeRecord | None

    def __post_init__(self) -> None:
        # Raises for illegal shapes
        self.category  # noqa: B018

    @property
    def category(self) -> RowCategory:
        left, right = self.left, self.right
        if left is not None and right is not None:
            if left.kind == ChangeKind.KEPT and right.kind == ChangeKind.KEPT:
                return RowCategory.MATCH
        elif left is None and right is not None and right.kind == ChangeKind.INSERTED:
            return RowCategory.INSERTION
        elif right is None and left is not None and left.kind == ChangeKind.DELETED:
            return RowCategory.DELETION
        raise ValueError(f"Illegal aligned row: left={left!r}, right={right!r}")

    @property
    def is_change(self) -> bool:
        return self.category != RowCategory.MATCH

    @property
    def left_text(self) -> str | None:
        return self.left.text if self.left is not None else None

    @property
    def right_text(self) -> str | None:
        return self.right.text if self.right is not None else None
