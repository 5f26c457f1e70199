from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from enum import Enum

"""Row review status model.

RowReviewStatus is a projection recomputed from the current signal maps on
every call. It is not the source of truth for review state and is safe to
discard.
"""

__all__ = [
    "RowReviewReason",
    "RowReviewStatus",
    "ReviewStatusRecord",
]


class RowReviewReason(Enum):
    """Eight mutually exclusive review reasons."""
    DOCUMENT_NOT_APPLICABLE = "document_not_applicable"
    MANUAL_PDF_REVIEW_REQUIRED = "manual_pdf_review_required"
    MANUAL_DATA_REVIEW_REQUIRED = "manual_data_review_required"
    BLACKLIST_HIT = "blacklist_hit"
    RFI_REQUIRED = "rfi_required"
    ANOMALY_DETECTED = "anomaly_detected"
    FINALIZED = "finalized"
    READY_TO_FINALIZE = "ready_to_finalize"


@dataclass(frozen=True)
class RowReviewStatus:
    reason: RowReviewReason
    is_blocking: bool
    derived_at: str  # ISO8601 UTC ('Z' suffix)
    details: str = ""


@dataclass(frozen=True)
class ReviewStatusRecord:
    """Flat JSON Lines record of a derived row status (audit export).

    Fixed schema: no extra keys beyond the dataclass fields.
    """
    sheet: str
    row: int  # 0-based data row index
    reason: str
    is_blocking: bool
    derived_at: str
    details: str

    @staticmethod
    def create(sheet: str, row: int, status: RowReviewStatus) -> ReviewStatusRecord:
        return ReviewStatusRecord(
            sheet=sheet,
            row=row,
            reason=status.reason.value,
            is_blocking=status.is_blocking,
            derived_at=status.derived_at,
            details=status.details,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
