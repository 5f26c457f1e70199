from __future__ import annotations

import pytest

from review_engine.models import AttentionCategory, RowAttentionResult, RowReviewReason, RowStatus
from review_engine.services.attention import CATEGORY_PRECEDENCE, SORT_PRIORITY, get_attention_sort_priority
from review_engine.services.review_reason import REVIEW_REASON_TABLE, derive_row_review_status

"""Rule table contracts: category precedence, sort priority and review reasons.

Each counter alone must land on its own table row; combined with every
lower-ranked counter it must still win.
"""

COUNTERS_BY_CATEGORY = [
    ("rfi_count", AttentionCategory.RFI, 0),
    ("contract_error_count", AttentionCategory.CONTRACT_ERROR, 1),
    ("unreadable_text_count", AttentionCategory.CONTRACT_TEXT_UNREADABLE, 2),
    ("extraction_suspect_count", AttentionCategory.CONTRACT_EXTRACTION_SUSPECT, 3),
    ("not_applicable_count", AttentionCategory.CONTRACT_NOT_APPLICABLE, 4),
    ("blacklist_hit_count", AttentionCategory.BLACKLIST_HIT, 5),
    ("anomaly_count", AttentionCategory.ANOMALY, 6),
    ("incomplete_address_count", AttentionCategory.INCOMPLETE_ADDRESS, 7),
]

REASONS_BY_COUNTER = [
    ("not_applicable_count", RowReviewReason.DOCUMENT_NOT_APPLICABLE),
    ("contract_error_count", RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED),
    ("unreadable_text_count", RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED),
    ("extraction_suspect_count", RowReviewReason.MANUAL_DATA_REVIEW_REQUIRED),
    ("blacklist_hit_count", RowReviewReason.BLACKLIST_HIT),
    ("rfi_count", RowReviewReason.RFI_REQUIRED),
    ("anomaly_count", RowReviewReason.ANOMALY_DETECTED),
]


def _category(result: RowAttentionResult) -> AttentionCategory:
    for predicate, category in CATEGORY_PRECEDENCE:
        if predicate(result):
            return category
    return AttentionCategory.NONE


@pytest.mark.parametrize("index", range(len(COUNTERS_BY_CATEGORY)))
def test_category_and_sort_priority(index):
    counter, category, priority = COUNTERS_BY_CATEGORY[index]
    lower = {name: 1 for name, _, _ in COUNTERS_BY_CATEGORY[index:]}
    result = RowAttentionResult(needs_attention=True, category=AttentionCategory.NONE, **lower)
    assert _category(result) is category
    assert get_attention_sort_priority(result, RowStatus.INCOMPLETE) == priority


@pytest.mark.parametrize("index", range(len(REASONS_BY_COUNTER)))
def test_review_reason_order(index):
    counter, reason = REASONS_BY_COUNTER[index]
    lower = {name: 1 for name, _ in REASONS_BY_COUNTER[index:]}
    attention = RowAttentionResult(needs_attention=True, category=AttentionCategory.NONE, **lower)
    status = derive_row_review_status(attention, RowStatus.COMPLETE)
    assert status.reason is reason
    assert status.is_blocking is True


def test_table_sizes():
    assert len(CATEGORY_PRECEDENCE) == 9
    assert len(SORT_PRIORITY) == 8
    assert len(REVIEW_REASON_TABLE) == 9
