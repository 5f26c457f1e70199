from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .anomaly import AnomalyType

"""Manual-review queue models (QA dashboard view of contract-level failures)."""

__all__ = [
    "ReviewPriority",
    "BadgeSeverity",
    "ManualReviewBadge",
    "ManualReviewReason",
    "ManualReviewRow",
    "AnomalyCounts",
]


class ReviewPriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BadgeSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ManualReviewBadge:
    label: str
    short_label: str
    severity: BadgeSeverity
    anomaly_type: AnomalyType


@dataclass(frozen=True)
class ManualReviewReason:
    type: AnomalyType
    message: str
    confidence: str | None = None
    detected_at: str | None = None


@dataclass(frozen=True)
class ManualReviewRow:
    sheet_name: str
    row_index: int
    contract_url: str
    contract_file_name: str
    reasons: tuple[ManualReviewReason, ...]
    priority: ReviewPriority


@dataclass(frozen=True)
class AnomalyCounts:
    """Dataset-wide anomaly / RFI tallies for the QA dashboard."""
    contract_load_error: int = 0
    contract_text_unreadable: int = 0
    contract_extraction_suspect: int = 0
    contract_not_applicable: int = 0
    blacklist_hit: int = 0
    total_rfis: int = 0  # cells with rfi status or a non-empty RFI comment
    total_manual_review_rows: int = 0
