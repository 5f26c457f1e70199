from __future__ import annotations

from unittest.mock import patch

import pytest

from review_engine.models import (
    BlacklistEntry,
    BlacklistMatchMode,
    BlacklistScope,
    CellKey,
    FieldStatus,
    ModificationRecord,
    ModificationType,
    ReviewSignals,
    RowKey,
    RowStatus,
)


def test_row_status_parse_defaults_to_incomplete():
    assert RowStatus.parse("complete") is RowStatus.COMPLETE
    assert RowStatus.parse(" Complete ") is RowStatus.COMPLETE
    assert RowStatus.parse("done") is RowStatus.INCOMPLETE
    assert RowStatus.parse(None) is RowStatus.INCOMPLETE


def test_field_status_parse():
    assert FieldStatus.parse("RFI") is FieldStatus.RFI
    assert FieldStatus.parse("bogus") is FieldStatus.INCOMPLETE


def test_create_snapshot_is_read_only():
    source = {RowKey("S", 0): RowStatus.COMPLETE}
    signals = ReviewSignals.create(row_statuses=source)
    source[RowKey("S", 1)] = RowStatus.COMPLETE  # 呼び出し側の変更は反映されない
    assert signals.is_row_complete("S", 0)
    assert not signals.is_row_complete("S", 1)
    with pytest.raises(TypeError):
        signals.row_statuses[RowKey("S", 2)] = RowStatus.COMPLETE  # type: ignore[index]


def test_missing_entries_mean_no_signal():
    signals = ReviewSignals()
    key = CellKey("S", 0, "State")
    assert signals.row_status("S", 0) is RowStatus.INCOMPLETE
    assert signals.field_status(key) is None
    assert signals.rfi_comment(key) == ""
    assert signals.modification(key) is None


def test_from_nested_shape():
    data = {
        "row_statuses": {"S": {"0": "complete"}},
        "field_statuses": {"S": {"1": {"State": "rfi"}}},
        "rfi_comments": {"S": {"1": {"Amount": "please confirm"}}},
        "modification_history": {
            "S": {"2": {"State": {
                "originalValue": "California",
                "newValue": "CA",
                "modificationType": "address_standardized",
                "reason": "format",
            }}},
        },
    }
    signals = ReviewSignals.from_nested(data)
    assert signals.is_row_complete("S", 0)
    assert signals.field_status(CellKey("S", 1, "State")) is FieldStatus.RFI
    assert signals.rfi_comment(CellKey("S", 1, "Amount")) == "please confirm"
    mod = signals.modification(CellKey("S", 2, "State"))
    assert mod is not None
    assert mod.modification_type is ModificationType.ADDRESS_STANDARDIZED
    assert mod.is_system_change
    assert mod.original_value == "California"


def test_from_nested_skips_malformed_entries():
    data = {
        "row_statuses": {"S": {"0": "complete", "first": "complete"}},
        "field_statuses": {"S": ["not", "an", "object"]},
        "rfi_comments": {"S": {"x1": {"State": "?"}, "1": {"State": "which?"}}},
        "modification_history": {"S": {
            "0": {"State": {"original_value": "a", "new_value": "b", "modification_type": "bogus"}},
            "1": {"State": {"original_value": "a", "new_value": "b", "modification_type": "manual_edit"}},
            "2": {"State": "not a record"},
        }},
    }
    with patch("review_engine.models.signals.logger") as log:
        signals = ReviewSignals.from_nested(data)

    assert dict(signals.row_statuses) == {RowKey("S", 0): RowStatus.COMPLETE}
    assert len(signals.field_statuses) == 0
    assert dict(signals.rfi_comments) == {CellKey("S", 1, "State"): "which?"}
    assert list(signals.modifications) == [CellKey("S", 1, "State")]
    assert signals.modification(CellKey("S", 0, "State")) is None
    messages = [c.args[0] for c in log.warning.call_args_list]
    assert len(messages) == 5
    assert any("row_statuses/S/first" in m for m in messages)
    assert any("modification_history/S/0/State" in m and "bogus" in m for m in messages)


def test_manual_edit_is_not_system_change():
    record = ModificationRecord("a", "b", ModificationType.MANUAL_EDIT)
    assert not record.is_system_change


def test_blacklist_entry_from_dict_defaults():
    entry = BlacklistEntry.from_dict({"id": "x", "value": "Acme"})
    assert entry.match_mode is BlacklistMatchMode.CONTAINS
    assert entry.scope is BlacklistScope.GLOBAL
    assert entry.enabled is True
    assert entry.fields == ()


def test_blacklist_entry_from_dict_camel_case():
    entry = BlacklistEntry.from_dict({
        "id": "x", "value": "Acme", "matchMode": "exact", "scope": "field_specific",
        "fields": ["Party"], "enabled": False,
    })
    assert entry.match_mode is BlacklistMatchMode.EXACT
    assert entry.scope is BlacklistScope.FIELD_SPECIFIC
    assert entry.fields == ("Party",)
    assert entry.enabled is False
