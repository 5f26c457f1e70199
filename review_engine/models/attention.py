from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Attention result models (field level and row level)."""

__all__ = [
    "AttentionCategory",
    "FieldAttentionResult",
    "RowAttentionResult",
]


class AttentionCategory(Enum):
    """Single highest-precedence reason a row shows up in attention lists."""
    RFI = "rfi"
    CONTRACT_ERROR = "contract_error"
    CONTRACT_TEXT_UNREADABLE = "contract_text_unreadable"
    CONTRACT_EXTRACTION_SUSPECT = "contract_extraction_suspect"
    CONTRACT_NOT_APPLICABLE = "contract_not_applicable"
    BLACKLIST_HIT = "blacklist_hit"
    ANOMALY = "anomaly"
    INCOMPLETE_ADDRESS = "incomplete_address"
    MANUAL_EDIT_UNREVIEWED = "manual_edit_unreviewed"
    NONE = "none"


@dataclass(frozen=True)
class FieldAttentionResult:
    """Per-(sheet, row, field) attention flags."""
    needs_attention: bool
    has_rfi: bool = False
    has_must_review_anomaly: bool = False
    has_blacklist_hit: bool = False
    has_incomplete_address: bool = False
    has_manual_edit: bool = False
    has_contract_error: bool = False
    has_unreadable_text: bool = False
    has_extraction_suspect: bool = False
    has_not_applicable: bool = False


@dataclass(frozen=True)
class RowAttentionResult:
    """Per-(sheet, row) counts of field-level flags plus derived category.

    Contract counts also include the contract-source column, which is checked
    outside the editable-field loop.
    """
    needs_attention: bool
    category: AttentionCategory
    rfi_count: int = 0
    anomaly_count: int = 0
    blacklist_hit_count: int = 0
    incomplete_address_count: int = 0
    manual_edit_count: int = 0
    contract_error_count: int = 0
    unreadable_text_count: int = 0
    extraction_suspect_count: int = 0
    not_applicable_count: int = 0
