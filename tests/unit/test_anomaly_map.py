from __future__ import annotations

from review_engine.models import Anomaly, AnomalyMap, AnomalyType, CellKey, FailureMeta, RowKey

INVALID = Anomaly(AnomalyType.INVALID_ALLOWED_VALUE, "Value not in allowed options", allowed_values=("CA",))
MISSING = Anomaly(AnomalyType.UNEXPECTED_MISSING, "Unexpectedly empty (field usually has values)")


def test_empty_lists_are_not_stored():
    amap = AnomalyMap([(CellKey("S", 0, "A"), []), (CellKey("S", 1, "A"), [MISSING])])
    assert len(amap) == 1
    assert CellKey("S", 0, "A") not in amap
    assert amap.for_cell("S", 0, "A") == ()


def test_for_row_and_row_keys():
    amap = AnomalyMap([
        (CellKey("S", 0, "A"), [INVALID]),
        (CellKey("S", 0, "B"), [MISSING]),
        (CellKey("T", 3, "A"), [MISSING]),
    ])
    assert amap.for_row("S", 0) == {"A": (INVALID,), "B": (MISSING,)}
    assert amap.for_row("S", 9) == {}
    assert amap.row_keys("S") == [RowKey("S", 0)]
    assert amap.row_keys() == [RowKey("S", 0), RowKey("T", 3)]
    assert amap.sheets() == ["S", "T"]


def test_merged_returns_new_map():
    base = AnomalyMap([(CellKey("S", 0, "A"), [INVALID])])
    merged = base.merged([(CellKey("S", 0, "A"), [MISSING])])
    assert base.for_cell("S", 0, "A") == (INVALID,)
    assert merged.for_cell("S", 0, "A") == (INVALID, MISSING)


def test_nested_conversion():
    nested = {"S": {"2": {"State": [INVALID]}}}
    amap = AnomalyMap.from_nested(nested)
    assert amap[CellKey("S", 2, "State")] == (INVALID,)
    assert amap.to_nested() == {"S": {2: {"State": [INVALID]}}}


def test_to_dict_omits_unset_metadata():
    assert MISSING.to_dict() == {
        "type": "unexpected_missing",
        "severity": "warn",
        "message": "Unexpectedly empty (field usually has values)",
    }
    assert INVALID.to_dict()["allowed_values"] == ["CA"]


def test_to_dict_failure_meta():
    meta = FailureMeta("invalid_url", "high", "bad", "2024-01-01T00:00:00Z", url="ftp://x")
    anomaly = Anomaly(AnomalyType.CONTRACT_LOAD_ERROR, "bad", failure_meta=meta)
    out = anomaly.to_dict()
    assert out["failure_meta"] == {
        "category": "invalid_url",
        "confidence": "high",
        "message": "bad",
        "detected_at": "2024-01-01T00:00:00Z",
        "url": "ftp://x",
    }
