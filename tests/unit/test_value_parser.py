from __future__ import annotations

from review_engine.services.value_parser import (
    filter_allowed_values,
    has_delimiter,
    is_placeholder_value,
    parse_delimited,
    smart_parse_values,
)


def test_filter_removes_placeholders_and_duplicates():
    assert filter_allowed_values(["Optional", "CA", "ca", " N/A ", "NY", "", None]) == ["CA", "NY"]


def test_filter_empty_input():
    assert filter_allowed_values(None) == []
    assert filter_allowed_values([]) == []


def test_filter_custom_placeholders():
    assert filter_allowed_values(["TBD", "Optional", "CA"], placeholders=["tbd"]) == ["Optional", "CA"]


def test_filter_expands_long_undelimited_value():
    raw = "California Texas New York Florida Washington"
    result = filter_allowed_values([raw])
    assert set(result) == {"California", "Texas", "New York", "Florida", "Washington"}


def test_short_undelimited_value_is_kept_whole():
    assert filter_allowed_values(["Net 30 Net 60"]) == ["Net 30 Net 60"]


def test_smart_parse_without_confident_split():
    assert smart_parse_values("completely free text with no known options at all") is None
    assert smart_parse_values("") is None
    assert smart_parse_values(None) is None


def test_parse_delimited_separator_preference():
    assert parse_delimited("a, b ,c") == ["a", "b", "c"]
    assert parse_delimited("a;b") == ["a", "b"]
    assert parse_delimited("a,b;c") == ["a", "b;c"]
    assert parse_delimited("x|y") == ["x", "y"]
    assert parse_delimited("x\ny") == ["x", "y"]
    assert parse_delimited("single") == ["single"]
    assert parse_delimited("") == []


def test_helpers():
    assert has_delimiter("a|b")
    assert not has_delimiter("a b")
    assert is_placeholder_value(" Required ")
    assert not is_placeholder_value("CA")
