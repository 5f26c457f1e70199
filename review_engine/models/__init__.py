"""Domain models for the contract review-state engine.

This package contains the value types passed into and returned from the pure
derivation services: sheets and cell values, signal maps, anomalies,
attention results, review statuses and sheet analytics.
"""

from .analytics import SheetAnalytics
from .anomaly import CONTRACT_ANOMALY_TYPES, Anomaly, AnomalyMap, AnomalyType, FailureMeta, PreflightRecord
from .attention import AttentionCategory, FieldAttentionResult, RowAttentionResult
from .cell import CellKind, CellValue
from .config_models import DetectionThresholds, EngineConfig
from .glossary import GlossaryEntry, InputType
from .keys import CellKey, RowKey
from .manual_review import (
    AnomalyCounts,
    BadgeSeverity,
    ManualReviewBadge,
    ManualReviewReason,
    ManualReviewRow,
    ReviewPriority,
)
from .review_status import ReviewStatusRecord, RowReviewReason, RowReviewStatus
from .sheet import Sheet
from .signals import (
    BlacklistEntry,
    BlacklistMatchMode,
    BlacklistScope,
    FieldStatus,
    ModificationRecord,
    ModificationType,
    ReviewSignals,
    RowStatus,
)

__all__ = [
    # Configuration
    "DetectionThresholds",
    "EngineConfig",
    # Sheet data
    "Sheet",
    "CellKind",
    "CellValue",
    "CellKey",
    "RowKey",
    # Signals
    "RowStatus",
    "FieldStatus",
    "ModificationType",
    "ModificationRecord",
    "BlacklistEntry",
    "BlacklistMatchMode",
    "BlacklistScope",
    "ReviewSignals",
    "GlossaryEntry",
    "InputType",
    # Derived
    "AnomalyType",
    "CONTRACT_ANOMALY_TYPES",
    "Anomaly",
    "AnomalyMap",
    "FailureMeta",
    "PreflightRecord",
    "AttentionCategory",
    "FieldAttentionResult",
    "RowAttentionResult",
    "RowReviewReason",
    "RowReviewStatus",
    "ReviewStatusRecord",
    "SheetAnalytics",
    # Manual review queue
    "ReviewPriority",
    "BadgeSeverity",
    "ManualReviewBadge",
    "ManualReviewReason",
    "ManualReviewRow",
    "AnomalyCounts",
]
