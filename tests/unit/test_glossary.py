from __future__ import annotations

import pytest

from review_engine.models import GlossaryEntry, InputType
from review_engine.services.glossary import (
    Glossary,
    entry_from_dict,
    find_matching_glossary_sheet,
    normalize_field_key,
    parse_data_type,
    parse_required_status,
)


@pytest.mark.parametrize(
    "header, key",
    [
        ("State", "state"),
        ("Payment Terms", "payment_terms"),
        ("Payment Terms__c", "payment_terms"),
        ("Contract-Type", "contract_type"),
        ("  Amount (USD) ", "amount_usd"),
    ],
)
def test_normalize_field_key(header, key):
    assert normalize_field_key(header) == key


def test_glossary_matches_key_then_synonym():
    terms = GlossaryEntry("payment_terms", synonyms=("Terms",), allowed_values=("Net 30",))
    state = GlossaryEntry("state", allowed_values=("CA", "NY"))
    glossary = Glossary([state, terms])
    assert glossary("State") is state
    assert glossary.match("Payment Terms") is terms
    assert glossary.match("terms") is terms
    assert glossary.match("Unknown Column") is None
    assert glossary.allowed_values("STATE") == ("CA", "NY")
    assert glossary.allowed_values("Unknown Column") is None
    assert len(glossary) == 2


def test_first_entry_wins_for_duplicate_keys():
    first = GlossaryEntry("state", allowed_values=("CA",))
    second = GlossaryEntry("State", allowed_values=("NY",))
    assert Glossary([first, second]).match("state") is first


def test_entry_from_dict_parses_delimited_strings():
    entry = entry_from_dict({
        "field_key": "payment_terms",
        "allowed_values": "Net 30; Net 60",
        "synonyms": "Terms, Payment",
        "input_type": "Select",
        "required_status": "mandatory",
        "data_type": "varchar",
    })
    assert entry.allowed_values == ("Net 30", "Net 60")
    assert entry.synonyms == ("Terms", "Payment")
    assert entry.input_type is InputType.SELECT
    assert entry.required_status == "Required"
    assert entry.data_type == "text"


def test_entry_from_dict_without_allowed_values():
    entry = entry_from_dict({"field_key": "notes"})
    assert entry.allowed_values is None
    assert entry.input_type is None


def test_parse_helpers():
    assert parse_required_status("n/a") == "Not Needed"
    assert parse_required_status("maybe") is None
    assert parse_data_type("Timestamp") == "date"
    assert parse_data_type("custom") == "custom"


def test_find_matching_glossary_sheet():
    assert find_matching_glossary_sheet("Contracts", ["Vendors", "Contract Fields"]) == "Contract Fields"
    assert find_matching_glossary_sheet("Master_Agreements", ["master agreements"]) == "master agreements"
    assert find_matching_glossary_sheet("Vendors", ["Invoices"]) is None
