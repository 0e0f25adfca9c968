"""Token-level text alignment engine."""

from lexidiff.services.diff.engine import (
    Comparison,
    compare,
    compute_aligned_diff,
    compute_diff,
)
from lexidiff.services.diff.models import AlignedRow, ChangeKind, ChangeRecord, RowCategory

__all__ = [
    "AlignedRow",
    "ChangeKind",
    "ChangeRecord",
    "Comparison",
    "RowCategory",
    "compare",
    "compute_aligned_diff",
    "compute_diff",
]
