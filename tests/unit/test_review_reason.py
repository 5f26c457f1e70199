from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from review_engine.models import (
    Anomaly,
    AnomalyMap,
    AnomalyType,
    AttentionCategory,
    CellKey,
    ModificationRecord,
    ModificationType,
    ReviewSignals,
    RowAttentionResult,
    RowKey,
    RowReviewReason,
    RowStatus,
    Sheet,
)
from review_engine.services.review_reason import (
    BLOCKING_REASONS,
    REVIEW_REASON_TABLE,
    derive_row_review_reason,
    derive_row_review_status,
    derive_sheet_review_statuses,
    get_review_reason_label,
    get_review_reason_priority,
    is_blocking_reason,
)

NOW = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=UTC)
HEADERS = ("File", "URL", "A", "B")


def _attention(**counts) -> RowAttentionResult:
    return RowAttentionResult(needs_attention=bool(counts), category=AttentionCategory.NONE, **counts)


@pytest.mark.parametrize(
    "counts, reason, details",
    [
        ({"not_applicable_count": 1}, RowReviewReason.DOCUMENT_NOT_APPLICABLE, "Document flagged as not applicable"),
        ({"contract_error_count": 2}, RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED,
         "2 contract(s) failed to load and need manual review"),
        ({"unreadable_text_count": 1}, RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED,
         "1 contract(s) have unreadable text layers"),
        ({"extraction_suspect_count": 3}, RowReviewReason.MANUAL_DATA_REVIEW_REQUIRED,
         "3 field(s) have suspect data extraction"),
        ({"blacklist_hit_count": 1}, RowReviewReason.BLACKLIST_HIT, "1 field(s) contain blacklisted values"),
        ({"rfi_count": 2}, RowReviewReason.RFI_REQUIRED, "2 field(s) require additional information"),
        ({"anomaly_count": 4}, RowReviewReason.ANOMALY_DETECTED, "4 field(s) have anomalies that need review"),
    ],
)
def test_blocking_reasons(counts, reason, details):
    status = derive_row_review_status(_attention(**counts), RowStatus.COMPLETE, now=NOW)
    assert status.reason is reason
    assert status.is_blocking is True
    assert status.details == details


def test_not_applicable_beats_rfi():
    status = derive_row_review_status(_attention(rfi_count=1, not_applicable_count=1), "incomplete", now=NOW)
    assert status.reason is RowReviewReason.DOCUMENT_NOT_APPLICABLE


def test_load_error_details_win_over_unreadable():
    status = derive_row_review_status(_attention(contract_error_count=1, unreadable_text_count=1), None, now=NOW)
    assert status.details == "1 contract(s) failed to load and need manual review"


def test_blacklist_beats_rfi_in_review_reason():
    status = derive_row_review_status(_attention(rfi_count=1, blacklist_hit_count=1), None, now=NOW)
    assert status.reason is RowReviewReason.BLACKLIST_HIT


def test_finalized_and_ready():
    finalized = derive_row_review_status(_attention(), "complete", now=NOW)
    ready = derive_row_review_status(_attention(), None, now=NOW)
    assert (finalized.reason, finalized.is_blocking) == (RowReviewReason.FINALIZED, False)
    assert finalized.details == "Row has been reviewed and finalized"
    assert (ready.reason, ready.is_blocking) == (RowReviewReason.READY_TO_FINALIZE, False)
    assert ready.details == "All blocking issues resolved, ready to finalize"


def test_manual_edit_counts_do_not_block():
    status = derive_row_review_status(_attention(manual_edit_count=3, incomplete_address_count=1), None, now=NOW)
    assert status.reason is RowReviewReason.READY_TO_FINALIZE


class TestDerivedAt:
    def test_millisecond_utc_with_z(self):
        status = derive_row_review_status(_attention(), None, now=NOW)
        assert status.derived_at == "2024-05-06T07:08:09.123Z"

    def test_naive_is_utc_and_offsets_convert(self):
        naive = derive_row_review_status(_attention(), None, now=datetime(2024, 1, 1, 9, 0))
        tokyo = derive_row_review_status(
            _attention(), None, now=datetime(2024, 1, 1, 18, 0, tzinfo=timezone(timedelta(hours=9))),
        )
        assert naive.derived_at == "2024-01-01T09:00:00.000Z"
        assert tokyo.derived_at == "2024-01-01T09:00:00.000Z"

    def test_clock_callable(self):
        status = derive_row_review_status(_attention(), None, now=lambda: NOW)
        assert status.derived_at == "2024-05-06T07:08:09.123Z"

    def test_default_clock(self):
        assert derive_row_review_status(_attention(), None).derived_at.endswith("Z")


def test_deterministic_except_timestamp():
    attention = _attention(anomaly_count=1)
    first = derive_row_review_status(attention, None, now=NOW)
    second = derive_row_review_status(attention, None, now=NOW + timedelta(seconds=5))
    assert (first.reason, first.is_blocking, first.details) == (second.reason, second.is_blocking, second.details)


def test_derive_row_review_reason_from_signals():
    signals = ReviewSignals.create(
        modifications={CellKey("S", 0, "A"): ModificationRecord("a", "b", ModificationType.MANUAL_EDIT)},
    )
    status = derive_row_review_reason("S", 0, HEADERS, signals, AnomalyMap(), now=NOW)
    assert status.reason is RowReviewReason.READY_TO_FINALIZE
    assert status.is_blocking is False


def test_derive_sheet_review_statuses_share_timestamp():
    sheet = Sheet.from_records("S", HEADERS, [["a", "u", 1, 2], ["b", "u", 3, 4]])
    amap = AnomalyMap([(CellKey("S", 1, "B"), [Anomaly(AnomalyType.BLACKLIST_HIT, "hit")])])
    signals = ReviewSignals.create(row_statuses={RowKey("S", 0): "complete"})
    statuses = derive_sheet_review_statuses([sheet], signals, amap, now=NOW)
    assert list(statuses) == [RowKey("S", 0), RowKey("S", 1)]
    assert statuses[RowKey("S", 0)].reason is RowReviewReason.FINALIZED
    assert statuses[RowKey("S", 1)].reason is RowReviewReason.BLACKLIST_HIT
    assert {s.derived_at for s in statuses.values()} == {"2024-05-06T07:08:09.123Z"}


def test_table_shape():
    assert REVIEW_REASON_TABLE[-1].reason is RowReviewReason.READY_TO_FINALIZE
    assert BLOCKING_REASONS == frozenset(RowReviewReason) - {RowReviewReason.FINALIZED, RowReviewReason.READY_TO_FINALIZE}
    assert is_blocking_reason(RowReviewReason.RFI_REQUIRED)
    assert not is_blocking_reason(RowReviewReason.FINALIZED)


def test_labels_and_priorities():
    assert get_review_reason_label(RowReviewReason.MANUAL_PDF_REVIEW_REQUIRED) == "Manual PDF Review"
    assert get_review_reason_label(RowReviewReason.READY_TO_FINALIZE) == "Ready to Finalize"
    ordered = sorted(RowReviewReason, key=get_review_reason_priority)
    assert ordered[0] is RowReviewReason.DOCUMENT_NOT_APPLICABLE
    assert ordered[-1] is RowReviewReason.FINALIZED
