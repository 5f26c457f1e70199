from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..models.anomaly import CONTRACT_ANOMALY_TYPES, Anomaly, AnomalyMap, AnomalyType
from ..models.manual_review import (
    AnomalyCounts,
    BadgeSeverity,
    ManualReviewBadge,
    ManualReviewReason,
    ManualReviewRow,
    ReviewPriority,
)
from ..models.sheet import Sheet
from ..models.signals import FieldStatus, ReviewSignals

"""Manual-review helpers.

Contract-level anomaly types (load error, unreadable text, suspect
extraction, not applicable) put a row into the manual-review queue. These
helpers label them, pick the badge to display and build the queue ordered
by priority, sheet and row.
"""

__all__ = [
    "MANUAL_REVIEW_ANOMALY_TYPES",
    "is_manual_review_anomaly_type",
    "is_manual_review_required",
    "get_manual_review_priority",
    "get_manual_review_label",
    "get_manual_review_reasons",
    "get_manual_review_badge",
    "get_anomaly_counts",
    "get_rows_needing_manual_review",
]

MANUAL_REVIEW_ANOMALY_TYPES = CONTRACT_ANOMALY_TYPES

_PRIORITY = {
    AnomalyType.CONTRACT_LOAD_ERROR: 1,
    AnomalyType.CONTRACT_TEXT_UNREADABLE: 2,
    AnomalyType.CONTRACT_EXTRACTION_SUSPECT: 3,
    AnomalyType.CONTRACT_NOT_APPLICABLE: 4,
    AnomalyType.BLACKLIST_HIT: 5,
    AnomalyType.INVALID_ALLOWED_VALUE: 6,
    AnomalyType.UNEXPECTED_MISSING: 7,
}

_LABELS = {
    AnomalyType.CONTRACT_LOAD_ERROR: "Manual PDF Review: Contract failed to load",
    AnomalyType.CONTRACT_TEXT_UNREADABLE: "Manual PDF Review: Unreadable text layer",
    AnomalyType.CONTRACT_EXTRACTION_SUSPECT: "Manual Data Review: Suspect extraction",
    AnomalyType.CONTRACT_NOT_APPLICABLE: "Manual Review: Not applicable document",
    AnomalyType.BLACKLIST_HIT: "Blacklist hit",
    AnomalyType.INVALID_ALLOWED_VALUE: "Invalid option value",
    AnomalyType.UNEXPECTED_MISSING: "Unexpected missing value",
}

_SHORT_LABELS = {
    AnomalyType.CONTRACT_LOAD_ERROR: "PDF Load Error",
    AnomalyType.CONTRACT_TEXT_UNREADABLE: "Unreadable PDF",
    AnomalyType.CONTRACT_EXTRACTION_SUSPECT: "Suspect Data",
    AnomalyType.CONTRACT_NOT_APPLICABLE: "Not Applicable",
    AnomalyType.BLACKLIST_HIT: "Blacklist",
    AnomalyType.INVALID_ALLOWED_VALUE: "Invalid Value",
    AnomalyType.UNEXPECTED_MISSING: "Missing Value",
}

_PRIORITY_ORDER = {ReviewPriority.HIGH: 0, ReviewPriority.MEDIUM: 1, ReviewPriority.LOW: 2}


def is_manual_review_anomaly_type(anomaly_type: AnomalyType) -> bool:
    return anomaly_type in MANUAL_REVIEW_ANOMALY_TYPES


def is_manual_review_required(anomalies: Iterable[Anomaly]) -> bool:
    return any(is_manual_review_anomaly_type(a.type) for a in anomalies)


def get_manual_review_priority(anomaly_type: AnomalyType) -> int:
    return _PRIORITY.get(anomaly_type, 99)


def get_manual_review_label(anomaly_type: AnomalyType) -> str:
    return _LABELS[anomaly_type]


def get_manual_review_reasons(anomalies: Iterable[Anomaly]) -> list[str]:
    """Distinct manual-review labels, most urgent first."""
    types = {a.type for a in anomalies if is_manual_review_anomaly_type(a.type)}
    return [_LABELS[t] for t in sorted(types, key=get_manual_review_priority)]


def get_manual_review_badge(anomalies: Iterable[Anomaly]) -> ManualReviewBadge | None:
    candidates = [a.type for a in anomalies if is_manual_review_anomaly_type(a.type)]
    if not candidates:
        return None
    highest = min(candidates, key=get_manual_review_priority)
    if highest in (AnomalyType.CONTRACT_LOAD_ERROR, AnomalyType.CONTRACT_TEXT_UNREADABLE):
        severity = BadgeSeverity.ERROR
    elif highest is AnomalyType.CONTRACT_EXTRACTION_SUSPECT:
        severity = BadgeSeverity.WARNING
    else:
        severity = BadgeSeverity.INFO
    return ManualReviewBadge(
        label=_LABELS[highest],
        short_label=_SHORT_LABELS[highest],
        severity=severity,
        anomaly_type=highest,
    )


def get_anomaly_counts(sheets: Iterable[Sheet], anomalies: AnomalyMap, signals: ReviewSignals) -> AnomalyCounts:
    """Tally contract anomalies, blacklist hits, RFI cells and manual-review rows.

    A cell counts once toward total_rfis whether it has the rfi status, a
    comment, or both.
    """
    names = {s.name for s in sheets}
    by_type = {t: 0 for t in AnomalyType}
    manual_rows = 0
    for sheet_name in anomalies.sheets():
        if sheet_name not in names:
            continue
        for row_key in anomalies.row_keys(sheet_name):
            row_manual = False
            for cell_anomalies in anomalies.for_row(*row_key).values():
                for anomaly in cell_anomalies:
                    by_type[anomaly.type] += 1
                    if is_manual_review_anomaly_type(anomaly.type):
                        row_manual = True
            if row_manual:
                manual_rows += 1

    rfi_cells = {k for k, v in signals.rfi_comments.items() if v and k.sheet in names}
    rfi_cells.update(k for k, v in signals.field_statuses.items() if v is FieldStatus.RFI and k.sheet in names)

    return AnomalyCounts(
        contract_load_error=by_type[AnomalyType.CONTRACT_LOAD_ERROR],
        contract_text_unreadable=by_type[AnomalyType.CONTRACT_TEXT_UNREADABLE],
        contract_extraction_suspect=by_type[AnomalyType.CONTRACT_EXTRACTION_SUSPECT],
        contract_not_applicable=by_type[AnomalyType.CONTRACT_NOT_APPLICABLE],
        blacklist_hit=by_type[AnomalyType.BLACKLIST_HIT],
        total_rfis=len(rfi_cells),
        total_manual_review_rows=manual_rows,
    )


def _priority_from_reasons(reasons: Sequence[ManualReviewReason]) -> ReviewPriority:
    types = {r.type for r in reasons}
    if types & {AnomalyType.CONTRACT_LOAD_ERROR, AnomalyType.CONTRACT_TEXT_UNREADABLE}:
        return ReviewPriority.HIGH
    if types & {AnomalyType.CONTRACT_EXTRACTION_SUSPECT, AnomalyType.BLACKLIST_HIT}:
        return ReviewPriority.MEDIUM
    return ReviewPriority.LOW


def _reason_for(anomaly: Anomaly) -> ManualReviewReason:
    meta = anomaly.failure_meta
    return ManualReviewReason(
        type=anomaly.type,
        message=anomaly.message,
        confidence=meta.confidence if meta else None,
        detected_at=meta.detected_at if meta else None,
    )


def get_rows_needing_manual_review(sheets: Iterable[Sheet], anomalies: AnomalyMap) -> list[ManualReviewRow]:
    """Rows carrying at least one contract-level anomaly.

    One reason per anomaly type (first occurrence), reasons ordered by
    urgency. Rows are ordered by priority (high, medium, low), then sheet
    name, then row index. The file name comes from the file-id column
    (headers[0]) and the URL from the contract column (headers[1]).
    """
    rows: list[ManualReviewRow] = []
    for sheet in sheets:
        file_header = sheet.headers[0] if sheet.headers else None
        url_header = sheet.contract_header
        for row_key in anomalies.row_keys(sheet.name):
            if row_key.row >= sheet.row_count:
                continue
            reasons: dict[AnomalyType, ManualReviewReason] = {}
            for cell_anomalies in anomalies.for_row(*row_key).values():
                for anomaly in cell_anomalies:
                    if is_manual_review_anomaly_type(anomaly.type) and anomaly.type not in reasons:
                        reasons[anomaly.type] = _reason_for(anomaly)
            if not reasons:
                continue
            ordered = tuple(sorted(reasons.values(), key=lambda r: get_manual_review_priority(r.type)))
            file_name = sheet.cell(row_key.row, file_header).as_text() if file_header else ""
            rows.append(ManualReviewRow(
                sheet_name=sheet.name,
                row_index=row_key.row,
                contract_url=sheet.cell(row_key.row, url_header).as_text() if url_header else "",
                contract_file_name=file_name or f"Row {row_key.row + 1}",
                reasons=ordered,
                priority=_priority_from_reasons(ordered),
            ))

    rows.sort(key=lambda r: (_PRIORITY_ORDER[r.priority], r.sheet_name, r.row_index))
    return rows
