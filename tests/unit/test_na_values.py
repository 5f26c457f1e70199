from __future__ import annotations

import pytest

from review_engine.services.na_values import NARecognizer, is_canonical_na, normalize_na_for_display


@pytest.mark.parametrize("raw", ["N/A", "n/a", " Not Applicable ", "NA", "none", "NULL", "unknown", "n.a."])
def test_default_tokens_are_na(raw):
    assert is_canonical_na(raw)


@pytest.mark.parametrize("raw", [None, "", "-", "CA", 0, False, "n / a"])
def test_non_na_values(raw):
    assert not is_canonical_na(raw)


def test_custom_tokens_replace_defaults():
    recognizer = NARecognizer(["TBD", "  "])
    assert recognizer("tbd")
    assert not recognizer("none")
    # canonical token is always recognized
    assert recognizer("N/A")
    assert recognizer.tokens == frozenset({"tbd"})


def test_normalize_for_display():
    assert normalize_na_for_display("not applicable") == "N/A"
    assert normalize_na_for_display(1000.0) == "1000"
    assert normalize_na_for_display(None) == ""
