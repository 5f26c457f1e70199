from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

from ..models.anomaly import AnomalyMap, AnomalyType
from ..models.attention import AttentionCategory, FieldAttentionResult, RowAttentionResult
from ..models.keys import CellKey
from ..models.sheet import RESERVED_HEADER_COUNT
from ..models.signals import FieldStatus, ModificationType, ReviewSignals, RowStatus

"""Attention aggregation service.

Combines the application's signal maps (field statuses, RFI comments,
modification history) with the derived AnomalyMap into per-field flags,
per-row counts, a single highest-precedence row category and a sort key.

Both precedence orders are plain ordered tables so the rule order is
visible in one place.
"""

__all__ = [
    "MUST_REVIEW_ANOMALY_TYPES",
    "CATEGORY_PRECEDENCE",
    "SORT_PRIORITY",
    "is_must_review_anomaly_type",
    "is_system_format_only_modification",
    "get_field_attention",
    "get_row_attention",
    "get_attention_sort_priority",
    "sort_rows_by_attention",
]

# 現状は全タイプが要レビュー
MUST_REVIEW_ANOMALY_TYPES = frozenset(AnomalyType)

RowPredicate = Callable[[RowAttentionResult], bool]

# First matching row wins.
CATEGORY_PRECEDENCE: tuple[tuple[RowPredicate, AttentionCategory], ...] = (
    (lambda a: a.rfi_count > 0, AttentionCategory.RFI),
    (lambda a: a.contract_error_count > 0, AttentionCategory.CONTRACT_ERROR),
    (lambda a: a.unreadable_text_count > 0, AttentionCategory.CONTRACT_TEXT_UNREADABLE),
    (lambda a: a.extraction_suspect_count > 0, AttentionCategory.CONTRACT_EXTRACTION_SUSPECT),
    (lambda a: a.not_applicable_count > 0, AttentionCategory.CONTRACT_NOT_APPLICABLE),
    (lambda a: a.blacklist_hit_count > 0, AttentionCategory.BLACKLIST_HIT),
    (lambda a: a.anomaly_count > 0, AttentionCategory.ANOMALY),
    (lambda a: a.incomplete_address_count > 0, AttentionCategory.INCOMPLETE_ADDRESS),
    (lambda a: a.manual_edit_count > 0, AttentionCategory.MANUAL_EDIT_UNREVIEWED),
)

# Only consulted for rows that need attention.
SORT_PRIORITY: tuple[tuple[RowPredicate, int], ...] = (
    (lambda a: a.rfi_count > 0, 0),
    (lambda a: a.contract_error_count > 0, 1),
    (lambda a: a.unreadable_text_count > 0, 2),
    (lambda a: a.extraction_suspect_count > 0, 3),
    (lambda a: a.not_applicable_count > 0, 4),
    (lambda a: a.blacklist_hit_count > 0, 5),
    (lambda a: a.anomaly_count > 0, 6),
    (lambda a: a.incomplete_address_count > 0, 7),
)
OTHER_ATTENTION_PRIORITY = 8
INCOMPLETE_ROW_PRIORITY = 10
COMPLETE_ROW_PRIORITY = 20

_CONTRACT_FLAG_BY_TYPE = {
    AnomalyType.CONTRACT_LOAD_ERROR: "contract_error_count",
    AnomalyType.CONTRACT_TEXT_UNREADABLE: "unreadable_text_count",
    AnomalyType.CONTRACT_EXTRACTION_SUSPECT: "extraction_suspect_count",
    AnomalyType.CONTRACT_NOT_APPLICABLE: "not_applicable_count",
}

# FieldAttentionResult flag -> RowAttentionResult counter
_FLAG_TO_COUNTER = {
    "has_rfi": "rfi_count",
    "has_must_review_anomaly": "anomaly_count",
    "has_blacklist_hit": "blacklist_hit_count",
    "has_incomplete_address": "incomplete_address_count",
    "has_manual_edit": "manual_edit_count",
    "has_contract_error": "contract_error_count",
    "has_unreadable_text": "unreadable_text_count",
    "has_extraction_suspect": "extraction_suspect_count",
    "has_not_applicable": "not_applicable_count",
}

_NO_ATTENTION = FieldAttentionResult(needs_attention=False)


def is_must_review_anomaly_type(anomaly_type: AnomalyType) -> bool:
    return anomaly_type in MUST_REVIEW_ANOMALY_TYPES


def is_system_format_only_modification(modification_type: ModificationType) -> bool:
    return modification_type is ModificationType.ADDRESS_STANDARDIZED


def get_field_attention(key: CellKey, signals: ReviewSignals, anomalies: AnomalyMap) -> FieldAttentionResult:
    """Derive the attention flags of one cell.

    Args:
        key: (sheet, row, field) of the cell
        signals: application signal snapshot
        anomalies: derived anomaly map

    Returns:
        FieldAttentionResult; a cell without any signal returns the shared
        all-False result.
    """
    key = CellKey(*key)
    has_rfi = signals.field_status(key) is FieldStatus.RFI or bool(signals.rfi_comment(key))

    types = {a.type for a in anomalies.for_cell(*key)}
    modification = signals.modification(key)
    mod_type = modification.modification_type if modification is not None else None

    if not has_rfi and not types and mod_type is None:
        return _NO_ATTENTION

    has_must_review = any(is_must_review_anomaly_type(t) for t in types)
    has_incomplete_address = mod_type is ModificationType.INCOMPLETE_ADDRESS
    has_manual_edit = mod_type is ModificationType.MANUAL_EDIT
    has_contract_error = AnomalyType.CONTRACT_LOAD_ERROR in types
    has_unreadable = AnomalyType.CONTRACT_TEXT_UNREADABLE in types
    has_suspect = AnomalyType.CONTRACT_EXTRACTION_SUSPECT in types
    has_not_applicable = AnomalyType.CONTRACT_NOT_APPLICABLE in types

    return FieldAttentionResult(
        needs_attention=(
            has_rfi or has_must_review or has_incomplete_address or has_manual_edit
            or has_contract_error or has_unreadable or has_suspect or has_not_applicable
        ),
        has_rfi=has_rfi,
        has_must_review_anomaly=has_must_review,
        has_blacklist_hit=AnomalyType.BLACKLIST_HIT in types,
        has_incomplete_address=has_incomplete_address,
        has_manual_edit=has_manual_edit,
        has_contract_error=has_contract_error,
        has_unreadable_text=has_unreadable,
        has_extraction_suspect=has_suspect,
        has_not_applicable=has_not_applicable,
    )


def _category_for(result: RowAttentionResult) -> AttentionCategory:
    for predicate, category in CATEGORY_PRECEDENCE:
        if predicate(result):
            return category
    return AttentionCategory.NONE


def get_row_attention(
    sheet_name: str,
    row_index: int,
    headers: Sequence[str],
    signals: ReviewSignals,
    anomalies: AnomalyMap,
) -> RowAttentionResult:
    """Aggregate field attention over a row.

    Each counter counts fields (not anomalies). The contract-source column
    (headers[1]) is not an editable field but its contract anomaly types
    are counted on top of the editable fields.

    A row with only manual edits gets category manual_edit_unreviewed but
    needs_attention stays False.
    """
    counts = {name: 0 for name in _FLAG_TO_COUNTER.values()}

    for header in headers[RESERVED_HEADER_COUNT:]:
        flags = get_field_attention(CellKey(sheet_name, row_index, header), signals, anomalies)
        if not flags.needs_attention and not flags.has_blacklist_hit:
            continue
        for flag, counter in _FLAG_TO_COUNTER.items():
            if getattr(flags, flag):
                counts[counter] += 1

    if len(headers) > 1:
        contract_types = {a.type for a in anomalies.for_cell(sheet_name, row_index, headers[1])}
        for anomaly_type, counter in _CONTRACT_FLAG_BY_TYPE.items():
            if anomaly_type in contract_types:
                counts[counter] += 1

    needs_attention = any(
        counts[c] > 0 for c in (
            "rfi_count",
            "anomaly_count",
            "incomplete_address_count",
            "contract_error_count",
            "unreadable_text_count",
            "extraction_suspect_count",
            "not_applicable_count",
        )
    )
    partial = RowAttentionResult(needs_attention=needs_attention, category=AttentionCategory.NONE, **counts)
    return replace(partial, category=_category_for(partial))


def get_attention_sort_priority(attention: RowAttentionResult, row_status: RowStatus | str) -> int:
    """Lower sorts first: 0-8 attention rows, 10 incomplete, 20 complete."""
    if attention.needs_attention:
        for predicate, priority in SORT_PRIORITY:
            if predicate(attention):
                return priority
        return OTHER_ATTENTION_PRIORITY
    if RowStatus.parse(row_status) is RowStatus.INCOMPLETE:
        return INCOMPLETE_ROW_PRIORITY
    return COMPLETE_ROW_PRIORITY


def sort_rows_by_attention(
    sheet_name: str,
    row_indexes: Iterable[int],
    headers: Sequence[str],
    signals: ReviewSignals,
    anomalies: AnomalyMap,
) -> list[int]:
    """Return row indexes ordered by attention priority (ties keep row order)."""
    def _key(row_index: int) -> tuple[int, int]:
        attention = get_row_attention(sheet_name, row_index, headers, signals, anomalies)
        return get_attention_sort_priority(attention, signals.row_status(sheet_name, row_index)), row_index

    return sorted(row_indexes, key=_key)
