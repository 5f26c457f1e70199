from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from ..models.analytics import SheetAnalytics
from ..models.anomaly import AnomalyMap
from ..models.keys import CellKey, RowKey
from ..models.review_status import RowReviewReason, RowReviewStatus
from ..models.sheet import Sheet
from ..models.signals import FieldStatus, ModificationType, ReviewSignals
from .attention import get_row_attention

"""Sheet analytics aggregation.

One pass over a sheet's rows producing the counters and row-index sets used
by dashboards: progress, RFI / system-change / manual-edit / anomaly /
blacklist / attention rows, verified cells, and (when review statuses are
supplied) the review-reason tallies.
"""

__all__ = [
    "MANUAL_REVIEW_REASONS",
    "progress_percent",
    "compute_sheet_analytics",
]

logger = logging.getLogger(__name__)

MANUAL_REVIEW_REASONS = frozenset({
    RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED,
    RowReviewReason.MANUAL_DATA_REVIEW_REQUIRED,
    RowReviewReason.DOCUMENT_NOT_APPLICABLE,
})

_SYSTEM_CHANGE_TYPES = frozenset({
    ModificationType.ADDRESS_STANDARDIZED,
    ModificationType.INCOMPLETE_ADDRESS,
})


def progress_percent(completed: int, total: int) -> int:
    """round(completed / total * 100) with halves rounded up; 0 for an empty sheet."""
    if total <= 0:
        return 0
    value = Decimal(completed) * 100 / Decimal(total)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _find_sheet(sheets: Iterable[Sheet], sheet_name: str) -> Sheet | None:
    for sheet in sheets:
        if sheet.name == sheet_name:
            return sheet
    return None


def compute_sheet_analytics(
    sheets: Iterable[Sheet],
    sheet_name: str,
    signals: ReviewSignals,
    anomalies: AnomalyMap | None = None,
    review_statuses: Mapping[RowKey, RowReviewStatus] | None = None,
) -> SheetAnalytics:
    """Compute SheetAnalytics for one sheet of the dataset.

    Args:
        sheets: all sheets of the dataset
        sheet_name: sheet to aggregate; unknown names yield empty analytics
        signals: application signal snapshot
        anomalies: derived anomaly map (None = no anomalies)
        review_statuses: derived row statuses keyed by RowKey; the reason
            counters stay zero when omitted

    A cell is verified when its row is complete and the cell has no RFI, no
    modification of any kind and no anomaly of any type.
    """
    sheet = _find_sheet(sheets, sheet_name)
    if sheet is None:
        return SheetAnalytics()
    anomalies = anomalies if anomalies is not None else AnomalyMap()

    total_rows = sheet.row_count
    editable = sheet.editable_headers
    completed_rows = 0
    verified = 0

    rows_with_rfi: set[int] = set()
    rows_with_system_changes: set[int] = set()
    rows_with_manual_edits: set[int] = set()
    rows_with_anomalies: set[int] = set()
    rows_with_blacklist_hits: set[int] = set()
    rows_needing_attention: set[int] = set()

    for row_index in range(total_rows):
        row_complete = signals.is_row_complete(sheet_name, row_index)
        if row_complete:
            completed_rows += 1

        attention = get_row_attention(sheet_name, row_index, sheet.headers, signals, anomalies)
        if attention.rfi_count > 0:
            rows_with_rfi.add(row_index)
        if attention.anomaly_count > 0:
            rows_with_anomalies.add(row_index)
        if attention.blacklist_hit_count > 0:
            rows_with_blacklist_hits.add(row_index)
        if attention.manual_edit_count > 0:
            rows_with_manual_edits.add(row_index)
        if attention.needs_attention:
            rows_needing_attention.add(row_index)

        row_anomalies = anomalies.for_row(sheet_name, row_index)
        for header in editable:
            key = CellKey(sheet_name, row_index, header)
            modification = signals.modification(key)
            if modification is not None and modification.modification_type in _SYSTEM_CHANGE_TYPES:
                rows_with_system_changes.add(row_index)
            if not row_complete:
                continue
            if modification is not None:
                continue
            if signals.field_status(key) is FieldStatus.RFI or signals.rfi_comment(key):
                continue
            if row_anomalies.get(header):
                continue
            verified += 1

    reason_counts: dict[RowReviewReason, int] = {}
    manual_review_rows: set[int] = set()
    pending = manual_pdf = ready = finalized = 0
    if review_statuses is not None:
        for row_index in range(total_rows):
            status = review_statuses.get(RowKey(sheet_name, row_index))
            if status is None:
                continue
            reason_counts[status.reason] = reason_counts.get(status.reason, 0) + 1
            if status.is_blocking:
                pending += 1
            if status.reason is RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED:
                manual_pdf += 1
            if status.reason in MANUAL_REVIEW_REASONS:
                manual_review_rows.add(row_index)
            elif status.reason is RowReviewReason.READY_TO_FINALIZE:
                ready += 1
            elif status.reason is RowReviewReason.FINALIZED:
                finalized += 1

    logger.debug(
        f"analytics sheet={sheet_name} rows={total_rows} completed={completed_rows} "
        f"attention={len(rows_needing_attention)} verified={verified}"
    )

    return SheetAnalytics(
        total_rows=total_rows,
        completed_rows=completed_rows,
        progress_percent=progress_percent(completed_rows, total_rows),
        rfi_row_count=len(rows_with_rfi),
        system_change_row_count=len(rows_with_system_changes),
        manual_edit_row_count=len(rows_with_manual_edits),
        anomaly_row_count=len(rows_with_anomalies),
        blacklist_hit_row_count=len(rows_with_blacklist_hits),
        needs_attention_row_count=len(rows_needing_attention),
        verified_cell_count=verified,
        total_editable_cells=total_rows * len(editable),
        rows_with_rfi=frozenset(rows_with_rfi),
        rows_with_system_changes=frozenset(rows_with_system_changes),
        rows_with_manual_edits=frozenset(rows_with_manual_edits),
        rows_with_anomalies=frozenset(rows_with_anomalies),
        rows_with_blacklist_hits=frozenset(rows_with_blacklist_hits),
        rows_needing_attention=frozenset(rows_needing_attention),
        rows_with_manual_review_required=frozenset(manual_review_rows),
        reason_counts=reason_counts,
        pending_review_count=pending,
        manual_pdf_review_count=manual_pdf,
        manual_review_required_count=len(manual_review_rows),
        ready_to_finalize_count=ready,
        finalized_count=finalized,
    )
