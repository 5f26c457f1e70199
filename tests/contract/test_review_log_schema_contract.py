from __future__ import annotations

import json
from dataclasses import fields

from review_engine.models import ReviewStatusRecord, RowReviewReason, RowReviewStatus

"""Review status JSON Lines contract (fixed key set, no extras)."""

EXPECTED_KEYS = {"sheet", "row", "reason", "is_blocking", "derived_at", "details"}


def test_record_fields_are_fixed():
    assert {f.name for f in fields(ReviewStatusRecord)} == EXPECTED_KEYS


def test_json_line_shape():
    status = RowReviewStatus(RowReviewReason.FINALIZED, False, "2024-01-01T00:00:00.000Z", "Row has been reviewed and finalized")
    line = ReviewStatusRecord.create("Contracts", 3, status).to_json_line()
    assert "\n" not in line
    payload = json.loads(line)
    assert set(payload) == EXPECTED_KEYS
    assert payload["row"] == 3
    assert payload["reason"] == "finalized"
    assert payload["is_blocking"] is False
    assert payload["derived_at"].endswith("Z")
