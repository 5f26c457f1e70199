from __future__ import annotations

from dataclasses import dataclass, field

from .review_status import RowReviewReason

"""Sheet analytics model consumed by dashboards and filter UIs.

Row-index sets let a UI filter without re-deriving attention per row on every
interaction. All collections are immutable.
"""

__all__ = [
    "SheetAnalytics",
]


@dataclass(frozen=True)
class SheetAnalytics:
    total_rows: int = 0
    completed_rows: int = 0
    progress_percent: int = 0
    rfi_row_count: int = 0
    system_change_row_count: int = 0
    manual_edit_row_count: int = 0
    anomaly_row_count: int = 0
    blacklist_hit_row_count: int = 0
    needs_attention_row_count: int = 0
    verified_cell_count: int = 0
    total_editable_cells: int = 0
    rows_with_rfi: frozenset[int] = frozenset()
    rows_with_system_changes: frozenset[int] = frozenset()
    rows_with_manual_edits: frozenset[int] = frozenset()
    rows_with_anomalies: frozenset[int] = frozenset()
    rows_with_blacklist_hits: frozenset[int] = frozenset()
    rows_needing_attention: frozenset[int] = frozenset()
    # review status derived counts (only filled when statuses are supplied)
    rows_with_manual_review_required: frozenset[int] = frozenset()
    reason_counts: dict[RowReviewReason, int] = field(default_factory=dict)
    pending_review_count: int = 0  # blocking rows
    manual_pdf_review_count: int = 0
    manual_review_required_count: int = 0
    ready_to_finalize_count: int = 0
    finalized_count: int = 0
