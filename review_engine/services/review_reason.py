from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

from ..models.anomaly import AnomalyMap
from ..models.attention import RowAttentionResult
from ..models.keys import RowKey
from ..models.review_status import RowReviewReason, RowReviewStatus
from ..models.sheet import Sheet
from ..models.signals import ReviewSignals, RowStatus
from .attention import get_row_attention

"""Row review-reason derivation.

Maps a row's attention counts and manual completion status to exactly one
RowReviewReason through an ordered rule table (first match wins). The
result is a projection: nothing is stored, and calling it twice with the
same inputs yields the same reason, blocking flag and details (only
derived_at follows the clock).
"""

__all__ = [
    "ReviewRule",
    "REVIEW_REASON_TABLE",
    "BLOCKING_REASONS",
    "derive_row_review_status",
    "derive_row_review_reason",
    "derive_sheet_review_statuses",
    "get_review_reason_label",
    "get_review_reason_priority",
    "is_blocking_reason",
]

Clock = Callable[[], datetime]


class ReviewRule:
    """One row of the review-reason table."""

    __slots__ = ("reason", "blocking", "applies", "details")

    def __init__(
        self,
        reason: RowReviewReason,
        blocking: bool,
        applies: Callable[[RowAttentionResult, RowStatus], bool],
        details: Callable[[RowAttentionResult], str],
    ) -> None:
        self.reason = reason
        self.blocking = blocking
        self.applies = applies
        self.details = details

    def __repr__(self) -> str:  # pragma: no cover
        return f"ReviewRule({self.reason.value}, blocking={self.blocking})"


REVIEW_REASON_TABLE: tuple[ReviewRule, ...] = (
    ReviewRule(
        RowReviewReason.DOCUMENT_NOT_APPLICABLE, True,
        lambda a, s: a.not_applicable_count > 0,
        lambda a: "Document flagged as not applicable",
    ),
    ReviewRule(
        RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED, True,
        lambda a, s: a.contract_error_count > 0,
        lambda a: f"{a.contract_error_count} contract(s) failed to load and need manual review",
    ),
    ReviewRule(
        RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED, True,
        lambda a, s: a.unreadable_text_count > 0,
        lambda a: f"{a.unreadable_text_count} contract(s) have unreadable text layers",
    ),
    ReviewRule(
        RowReviewReason.MANUAL_DATA_REVIEW_REQUIRED, True,
        lambda a, s: a.extraction_suspect_count > 0,
        lambda a: f"{a.extraction_suspect_count} field(s) have suspect data extraction",
    ),
    ReviewRule(
        RowReviewReason.BLACKLIST_HIT, True,
        lambda a, s: a.blacklist_hit_count > 0,
        lambda a: f"{a.blacklist_hit_count} field(s) contain blacklisted values",
    ),
    ReviewRule(
        RowReviewReason.RFI_REQUIRED, True,
        lambda a, s: a.rfi_count > 0,
        lambda a: f"{a.rfi_count} field(s) require additional information",
    ),
    ReviewRule(
        RowReviewReason.ANOMALY_DETECTED, True,
        lambda a, s: a.anomaly_count > 0,
        lambda a: f"{a.anomaly_count} field(s) have anomalies that need review",
    ),
    ReviewRule(
        RowReviewReason.FINALIZED, False,
        lambda a, s: s is RowStatus.COMPLETE,
        lambda a: "Row has been reviewed and finalized",
    ),
    ReviewRule(
        RowReviewReason.READY_TO_FINALIZE, False,
        lambda a, s: True,
        lambda a: "All blocking issues resolved, ready to finalize",
    ),
)

BLOCKING_REASONS = frozenset(rule.reason for rule in REVIEW_REASON_TABLE if rule.blocking)

_LABELS = {
    RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED: "Manual PDF Review",
    RowReviewReason.MANUAL_DATA_REVIEW_REQUIRED: "Manual Data Review",
    RowReviewReason.DOCUMENT_NOT_APPLICABLE: "Not Applicable",
    RowReviewReason.BLACKLIST_HIT: "Blacklist Hit",
    RowReviewReason.RFI_REQUIRED: "RFI Required",
    RowReviewReason.ANOMALY_DETECTED: "Anomaly Detected",
    RowReviewReason.READY_TO_FINALIZE: "Ready to Finalize",
    RowReviewReason.FINALIZED: "Finalized",
}

_PRIORITIES = {
    RowReviewReason.DOCUMENT_NOT_APPLICABLE: 0,
    RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED: 1,
    RowReviewReason.MANUAL_DATA_REVIEW_REQUIRED: 2,
    RowReviewReason.BLACKLIST_HIT: 3,
    RowReviewReason.RFI_REQUIRED: 4,
    RowReviewReason.ANOMALY_DETECTED: 5,
    RowReviewReason.READY_TO_FINALIZE: 6,
    RowReviewReason.FINALIZED: 7,
}


def _iso_z(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def derive_row_review_status(
    attention: RowAttentionResult,
    row_status: RowStatus | str | None,
    *,
    now: datetime | Clock | None = None,
) -> RowReviewStatus:
    """Evaluate REVIEW_REASON_TABLE for one row.

    now: fixed datetime or zero-arg clock; defaults to the current UTC time.
    Naive datetimes are taken as UTC.
    """
    status = RowStatus.parse(row_status)
    if callable(now):
        now = now()
    stamp = _iso_z(now or datetime.now(UTC))
    for rule in REVIEW_REASON_TABLE:
        if rule.applies(attention, status):
            return RowReviewStatus(
                reason=rule.reason,
                is_blocking=rule.blocking,
                derived_at=stamp,
                details=rule.details(attention),
            )
    # 最終行は常に一致する
    raise AssertionError("review reason table has no fallback rule")


def derive_row_review_reason(
    sheet_name: str,
    row_index: int,
    headers: Sequence[str],
    signals: ReviewSignals,
    anomalies: AnomalyMap,
    *,
    now: datetime | Clock | None = None,
) -> RowReviewStatus:
    """Aggregate row attention from the signal maps, then derive its status."""
    attention = get_row_attention(sheet_name, row_index, headers, signals, anomalies)
    return derive_row_review_status(attention, signals.row_status(sheet_name, row_index), now=now)


def derive_sheet_review_statuses(
    sheets: Iterable[Sheet],
    signals: ReviewSignals,
    anomalies: AnomalyMap,
    *,
    now: datetime | Clock | None = None,
) -> dict[RowKey, RowReviewStatus]:
    """Statuses for every row of every sheet, keyed by RowKey in sheet/row order.

    One timestamp is taken per call so every row of the batch shares it.
    """
    if callable(now):
        now = now()
    moment = now or datetime.now(UTC)
    statuses: dict[RowKey, RowReviewStatus] = {}
    for sheet in sheets:
        for row_index in range(sheet.row_count):
            statuses[RowKey(sheet.name, row_index)] = derive_row_review_reason(
                sheet.name, row_index, sheet.headers, signals, anomalies, now=moment,
            )
    return statuses


def get_review_reason_label(reason: RowReviewReason) -> str:
    return _LABELS[reason]


def get_review_reason_priority(reason: RowReviewReason) -> int:
    return _PRIORITIES[reason]


def is_blocking_reason(reason: RowReviewReason) -> bool:
    return reason in BLOCKING_REASONS
