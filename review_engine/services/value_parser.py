from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

"""Allowed-value filtering and multi-value expansion.

Glossary authors sometimes put administrative tokens ("Optional",
"Required", "N/A") into an allowed-values column, or paste several options
into one long cell without delimiters ("California Texas New York ...").
filter_allowed_values() removes the former and expands the latter using
known value vocabularies, so the allowed-value check compares against real
options only.

All functions here are total: they never raise on odd input.
"""

__all__ = [
    "DEFAULT_PLACEHOLDER_TOKENS",
    "LONG_VALUE_THRESHOLD",
    "PatternSet",
    "PATTERN_SETS",
    "has_delimiter",
    "is_placeholder_value",
    "smart_parse_values",
    "filter_allowed_values",
    "parse_delimited",
]

DEFAULT_PLACEHOLDER_TOKENS = frozenset({
    "optional",
    "required",
    "mandatory",
    "n/a",
    "na",
    "null",
    "empty",
    "-",
})

LONG_VALUE_THRESHOLD = 40  # これを超える区切りなし文字列のみ展開対象
SINGLE_SET_MIN_COVERAGE = 0.7
COMBINED_MIN_COVERAGE = 0.6

_DELIMITER_RE = re.compile(r"[,;|\n]")
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class PatternSet:
    name: str
    values: tuple[str, ...]
    case_sensitive: bool = False


US_STATES = (
    "Alabama", "Alaska", "Arizona", "Arkansas", "California", "Colorado", "Connecticut",
    "Delaware", "Florida", "Georgia", "Hawaii", "Idaho", "Illinois", "Indiana", "Iowa",
    "Kansas", "Kentucky", "Louisiana", "Maine", "Maryland", "Massachusetts", "Michigan",
    "Minnesota", "Mississippi", "Missouri", "Montana", "Nebraska", "Nevada", "New Hampshire",
    "New Jersey", "New Mexico", "New York", "North Carolina", "North Dakota", "Ohio",
    "Oklahoma", "Oregon", "Pennsylvania", "Rhode Island", "South Carolina", "South Dakota",
    "Tennessee", "Texas", "Utah", "Vermont", "Virginia", "Washington", "West Virginia",
    "Wisconsin", "Wyoming", "District of Columbia",
)

US_STATE_ABBREVIATIONS = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA", "HI", "ID", "IL", "IN",
    "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV",
    "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC", "SD", "TN",
    "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY", "DC",
)

BUSINESS_ENTITY_TYPES = (
    "Partnership", "Limited Partnership", "Limited Liability Partnership", "LLP",
    "Corporation", "C Corporation", "C Corp", "S Corporation", "S Corp",
    "Limited Liability Company", "LLC", "Limited Company", "Ltd",
    "Sole Proprietorship", "Sole Proprietor", "General Partnership", "Joint Venture",
    "Trust", "Estate", "Non-Profit", "Nonprofit", "Not-for-Profit",
    "Professional Corporation", "PC", "Professional Limited Liability Company", "PLLC",
    "Limited Liability Limited Partnership", "LLLP", "Cooperative", "Co-op",
    "Association", "Government", "Government Entity", "Municipal", "Individual",
    "Not Legally Formed", "Unincorporated",
)

YES_NO = ("Yes", "No", "Y", "N", "True", "False")

STATUS_VALUES = (
    "Active", "Inactive", "Pending", "Approved", "Rejected", "Cancelled", "Canceled",
    "Complete", "Completed", "In Progress", "Draft", "Submitted", "Under Review",
    "On Hold", "Expired", "Terminated", "Suspended", "Open", "Closed",
)

PRIORITY_VALUES = ("High", "Medium", "Low", "Critical", "Urgent", "Normal", "None")

PAYMENT_TERMS = (
    "Net 15", "Net 30", "Net 45", "Net 60", "Net 90",
    "Due on Receipt", "Due Upon Receipt", "COD", "Cash on Delivery",
    "Prepaid", "Advance Payment", "50% Upfront", "2/10 Net 30",
    "End of Month", "EOM", "15th of Month", "1st of Month",
)

CURRENCY_CODES = ("USD", "EUR", "GBP", "CAD", "AUD", "JPY", "CHF", "CNY", "INR", "MXN", "BRL")

CONTRACT_TYPES = (
    "Fixed Price", "Fixed-Price", "Time and Materials", "T&M", "Cost Plus",
    "Cost-Plus", "Firm Fixed Price", "FFP", "Cost Reimbursement", "Unit Price",
    "Indefinite Delivery", "IDIQ", "Master Service Agreement", "MSA",
    "Statement of Work", "SOW", "Purchase Order", "PO", "Blanket Purchase Agreement",
    "BPA", "Framework Agreement", "Retainer", "Subscription", "License Agreement",
)

INDUSTRY_TYPES = (
    "Technology", "Healthcare", "Finance", "Manufacturing", "Retail", "Education",
    "Construction", "Real Estate", "Transportation", "Energy", "Agriculture",
    "Hospitality", "Media", "Entertainment", "Telecommunications", "Pharmaceuticals",
    "Insurance", "Legal Services", "Consulting", "Government", "Non-Profit",
)

PATTERN_SETS: tuple[PatternSet, ...] = (
    PatternSet("US States", US_STATES),
    PatternSet("US State Abbreviations", US_STATE_ABBREVIATIONS, case_sensitive=True),
    PatternSet("Business Entity Types", BUSINESS_ENTITY_TYPES),
    PatternSet("Yes/No", YES_NO),
    PatternSet("Status Values", STATUS_VALUES),
    PatternSet("Priority Values", PRIORITY_VALUES),
    PatternSet("Payment Terms", PAYMENT_TERMS),
    PatternSet("Currency Codes", CURRENCY_CODES, case_sensitive=True),
    PatternSet("Contract Types", CONTRACT_TYPES),
    PatternSet("Industry Types", INDUSTRY_TYPES),
)


def _word_regex(value: str, case_sensitive: bool) -> re.Pattern[str]:
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(rf"\b{re.escape(value)}\b", flags)


def _coverage(matches: Sequence[str], text: str) -> float:
    cleaned = _WS_RE.sub("", text)
    if not cleaned:
        return 0.0
    return sum(len(m) for m in matches) / len(cleaned)


def _find_pattern_matches(text: str, pattern_set: PatternSet) -> list[str]:
    found: list[str] = []
    remaining = text
    # 長い値から先に消費 ("New York" を "York" より優先)
    for value in sorted(pattern_set.values, key=len, reverse=True):
        regex = _word_regex(value, pattern_set.case_sensitive)
        if regex.search(remaining):
            found.append(value)
            remaining = regex.sub(" ", remaining)
    return found


def _extract_single_set(text: str) -> list[str] | None:
    best: list[str] | None = None
    for pattern_set in PATTERN_SETS:
        matches = _find_pattern_matches(text, pattern_set)
        if len(matches) > 1 and _coverage(matches, text) > SINGLE_SET_MIN_COVERAGE:
            if best is None or len(matches) > len(best):
                best = matches
    return best


def _extract_combined(text: str) -> list[str] | None:
    all_matches: list[str] = []
    seen: set[str] = set()
    remaining = text
    ordered = sorted(PATTERN_SETS, key=lambda ps: max(len(v) for v in ps.values), reverse=True)
    for pattern_set in ordered:
        for match in _find_pattern_matches(remaining, pattern_set):
            if match.lower() in seen:
                continue
            seen.add(match.lower())
            all_matches.append(match)
            remaining = _word_regex(match, pattern_set.case_sensitive).sub(" ", remaining)
    if len(all_matches) > 1 and _coverage(all_matches, text) > COMBINED_MIN_COVERAGE:
        return all_matches
    return None


def smart_parse_values(raw: str | None) -> list[str] | None:
    """Split an undelimited multi-value string using the known vocabularies.

    Returns None when no confident split exists.
    """
    if not raw or not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    single = _extract_single_set(text)
    if single and len(single) > 1:
        return single
    return _extract_combined(text)


def has_delimiter(value: str) -> bool:
    return bool(_DELIMITER_RE.search(value))


def is_placeholder_value(value: str, placeholders: Iterable[str] | None = None) -> bool:
    tokens = DEFAULT_PLACEHOLDER_TOKENS if placeholders is None else frozenset(placeholders)
    return value.strip().lower() in tokens


def filter_allowed_values(
    values: Iterable[str] | None,
    placeholders: Iterable[str] | None = None,
) -> list[str]:
    """Remove placeholder tokens and expand pattern-encoded multi-value strings.

    Order of first appearance is preserved; duplicates (case-insensitive) are
    dropped. Non-string items are stringified.
    """
    if not values:
        return []
    tokens = DEFAULT_PLACEHOLDER_TOKENS if placeholders is None else frozenset(
        p.strip().lower() for p in placeholders
    )
    result: list[str] = []
    seen: set[str] = set()
    for v in values:
        if v is None:
            continue
        trimmed = str(v).strip()
        if not trimmed or trimmed.lower() in tokens:
            continue

        if len(trimmed) > LONG_VALUE_THRESHOLD and not has_delimiter(trimmed):
            parsed = smart_parse_values(trimmed)
            if parsed and len(parsed) > 1:
                for item in parsed:
                    item_trimmed = item.strip()
                    key = item_trimmed.lower()
                    if item_trimmed and key not in seen and key not in tokens:
                        seen.add(key)
                        result.append(item_trimmed)
                continue

        key = trimmed.lower()
        if key not in seen:
            seen.add(key)
            result.append(trimmed)
    return result


def parse_delimited(value: str | None) -> list[str]:
    """Parse a glossary allowed-values cell into a list.

    Separator preference: ',' then ';' then '|' then newline. Without any
    delimiter the smart parser is tried, falling back to the single value.
    """
    if not value or not isinstance(value, str):
        return []
    text = value.strip()
    if not text:
        return []
    if has_delimiter(text):
        separator = ","
        if ";" in text and "," not in text:
            separator = ";"
        elif "|" in text and "," not in text and ";" not in text:
            separator = "|"
        elif "\n" in text and "," not in text and ";" not in text and "|" not in text:
            separator = "\n"
        return [s.strip() for s in text.split(separator) if s.strip()]
    parsed = smart_parse_values(text)
    if parsed and len(parsed) > 1:
        return parsed
    return [text]
