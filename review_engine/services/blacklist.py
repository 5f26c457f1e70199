from __future__ import annotations

import re
from collections.abc import Iterable

from ..models.anomaly import Anomaly, AnomalyType
from ..models.signals import BlacklistEntry, BlacklistMatchMode, BlacklistScope

"""Blacklist matcher.

A blacklist entry matches a cell iff it is enabled, the cell is non-blank,
the field is in scope, and the normalized cell text equals (exact) or
contains (contains) the normalized entry value. Normalization trims,
collapses internal whitespace and lowercases both sides.
"""

__all__ = [
    "normalize_for_match",
    "applies_to_field",
    "matches_blacklist_entry",
    "detect_blacklist_hits",
    "create_blacklist_anomaly",
    "detect_blacklist_anomalies",
]

_WS_RE = re.compile(r"\s+")


def normalize_for_match(value: str | None) -> str:
    if not value:
        return ""
    return _WS_RE.sub(" ", value.strip()).lower()


def applies_to_field(entry: BlacklistEntry, field_name: str) -> bool:
    """Scope check only. Field-specific entries with an empty field list act as global."""
    if entry.scope is BlacklistScope.FIELD_SPECIFIC and entry.fields:
        target = field_name.lower()
        return any(f.lower() == target for f in entry.fields)
    return True


def matches_blacklist_entry(cell_text: str, entry: BlacklistEntry, field_name: str) -> bool:
    if not entry.enabled:
        return False
    if not cell_text or not cell_text.strip():
        return False
    if not applies_to_field(entry, field_name):
        return False

    normalized_entry = normalize_for_match(entry.value)
    if not normalized_entry:
        return False
    normalized_cell = normalize_for_match(cell_text)

    if entry.match_mode is BlacklistMatchMode.EXACT:
        return normalized_cell == normalized_entry
    return normalized_entry in normalized_cell


def detect_blacklist_hits(cell_text: str, field_name: str, entries: Iterable[BlacklistEntry]) -> list[BlacklistEntry]:
    """Matching entries in configuration order, one per entry id."""
    if not cell_text:
        return []
    hits: list[BlacklistEntry] = []
    seen: set[str] = set()
    for entry in entries:
        if entry.id in seen:
            continue
        if matches_blacklist_entry(cell_text, entry, field_name):
            seen.add(entry.id)
            hits.append(entry)
    return hits


def create_blacklist_anomaly(entry: BlacklistEntry) -> Anomaly:
    if entry.scope is BlacklistScope.FIELD_SPECIFIC:
        scope_label = f"fields: {', '.join(entry.fields)}"
    else:
        scope_label = "all fields"
    match_label = "exact match" if entry.match_mode is BlacklistMatchMode.EXACT else "contains"
    return Anomaly(
        type=AnomalyType.BLACKLIST_HIT,
        message=f'Blacklist match: "{entry.value}" ({match_label}, {scope_label})',
        blacklist_entry_id=entry.id,
        blacklist_value=entry.value,
        blacklist_match_mode=entry.match_mode.value,
        blacklist_scope=entry.scope.value,
    )


def detect_blacklist_anomalies(cell_text: str, field_name: str, entries: Iterable[BlacklistEntry]) -> list[Anomaly]:
    return [create_blacklist_anomaly(e) for e in detect_blacklist_hits(cell_text, field_name, entries)]
