from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..models.glossary import GlossaryEntry, InputType
from .value_parser import parse_delimited

"""Glossary matching: raw column header -> glossary entry.

The matcher normalizes headers to field keys (lowercase, underscores,
Salesforce-style "__c" suffix removed), looks up the key directly and then
through each entry's synonyms. No match is a valid result: the field simply
has no allowed-value rule.
"""

__all__ = [
    "GlossaryMatcher",
    "Glossary",
    "normalize_field_key",
    "parse_input_type",
    "parse_required_status",
    "parse_data_type",
    "entry_from_dict",
    "find_matching_glossary_sheet",
]

GlossaryMatcher = Callable[[str], GlossaryEntry | None]

_SPACE_DASH_RE = re.compile(r"[\s-]+")
_MULTI_US_RE = re.compile(r"_+")
_NON_WORD_RE = re.compile(r"[^\w_]")
_SF_SUFFIX_RE = re.compile(r"(__c|_c)$", re.IGNORECASE)


def normalize_field_key(field_name: str) -> str:
    key = field_name.lower().strip()
    key = _SPACE_DASH_RE.sub("_", key)
    key = _MULTI_US_RE.sub("_", key)
    key = _NON_WORD_RE.sub("", key)
    key = _SF_SUFFIX_RE.sub("", key)
    key = _MULTI_US_RE.sub("_", key)
    return key.strip("_")


class Glossary:
    """Normalized glossary for one sheet (normalized key -> entry)."""

    def __init__(self, entries: Iterable[GlossaryEntry] = ()) -> None:
        self._entries: dict[str, GlossaryEntry] = {}
        for entry in entries:
            self._entries.setdefault(normalize_field_key(entry.field_key), entry)
        # synonym index built once; first entry wins on collisions
        self._synonyms: dict[str, GlossaryEntry] = {}
        for entry in self._entries.values():
            for syn in entry.synonyms:
                self._synonyms.setdefault(normalize_field_key(syn), entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __call__(self, header: str) -> GlossaryEntry | None:
        return self.match(header)

    def match(self, header: str) -> GlossaryEntry | None:
        key = normalize_field_key(header)
        entry = self._entries.get(key)
        if entry is not None:
            return entry
        return self._synonyms.get(key)

    def allowed_values(self, header: str) -> tuple[str, ...] | None:
        entry = self.match(header)
        return entry.allowed_values if entry else None


def parse_input_type(value: str | None) -> InputType | None:
    if not value:
        return None
    normalized = value.lower().strip()
    for it in InputType:
        if it.value == normalized:
            return it
    return None


def parse_required_status(value: str | None) -> str | None:
    if not value:
        return None
    normalized = value.lower().strip()
    if normalized in ("required", "mandatory", "req", "must", "yes", "y"):
        return "Required"
    if normalized in ("optional", "opt", "no", "n"):
        return "Optional"
    if normalized in ("n/a", "na", "not needed", "not applicable", "none", "-"):
        return "Not Needed"
    return None


_DATA_TYPE_ALIASES: dict[str, tuple[str, ...]] = {
    "text": ("text", "string", "str", "varchar", "char"),
    "number": ("number", "numeric", "num", "int", "integer", "float", "decimal"),
    "date": ("date", "datetime", "timestamp", "time"),
    "address": ("address", "addr", "location"),
    "identifier": ("identifier", "id", "key", "uid", "uuid"),
    "enum": ("enum", "option", "select", "dropdown", "choice", "list"),
    "boolean": ("boolean", "bool", "flag", "yes/no"),
}


def parse_data_type(value: str | None) -> str | None:
    if not value:
        return None
    normalized = value.lower().strip()
    for canonical, aliases in _DATA_TYPE_ALIASES.items():
        if normalized in aliases:
            return canonical
    return normalized


def entry_from_dict(data: Mapping[str, Any]) -> GlossaryEntry:
    """Build a GlossaryEntry from a config / JSON mapping.

    allowed_values may be a list or a single delimited string.
    """
    raw_allowed = data.get("allowed_values")
    allowed: tuple[str, ...] | None
    if raw_allowed is None:
        allowed = None
    elif isinstance(raw_allowed, str):
        allowed = tuple(parse_delimited(raw_allowed))
    else:
        allowed = tuple(str(v) for v in raw_allowed)
    synonyms = data.get("synonyms") or ()
    if isinstance(synonyms, str):
        synonyms = parse_delimited(synonyms)
    return GlossaryEntry(
        field_key=str(data["field_key"]),
        label=data.get("label"),
        definition=data.get("definition"),
        allowed_values=allowed,
        input_type=parse_input_type(data.get("input_type")),
        synonyms=tuple(str(s) for s in synonyms),
        required_status=parse_required_status(data.get("required_status")),
        data_type=parse_data_type(data.get("data_type")),
    )


# --- sheet name matching (contract sheet -> glossary sheet) ---

_SHEET_SEP_RE = re.compile(r"[\s_-]+")
_CORE_NOISE_RE = re.compile(r"\s*(fields?|definitions?|glossary|data|info|list)\s*", re.IGNORECASE)
_CORE_VERSION_RE = re.compile(r"\s*(v\d+|[-_]\d+|\d+)$", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


def _normalize_sheet_name(name: str) -> str:
    return _SHEET_SEP_RE.sub("", name.lower())


def _singularize(word: str) -> str:
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("es") and not word.endswith("ses"):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def _core_name(sheet_name: str) -> str:
    name = _SHEET_SEP_RE.sub(" ", sheet_name.lower()).strip()
    name = _CORE_NOISE_RE.sub(" ", name)
    name = _CORE_VERSION_RE.sub("", name)
    return _WS_RE.sub(" ", name).strip()


def find_matching_glossary_sheet(contract_sheet: str, glossary_sheets: Iterable[str]) -> str | None:
    """Pick the glossary sheet that best matches a contract sheet name.

    Exact (normalized) or singular-core matches win immediately; otherwise
    the best containment / word-overlap score >= 0.3 is returned.
    """
    norm_contract = _normalize_sheet_name(contract_sheet)
    contract_core = _core_name(contract_sheet)
    contract_singular = _singularize(contract_core.replace(" ", ""))

    best: str | None = None
    best_score = 0.0
    for candidate in glossary_sheets:
        norm_glossary = _normalize_sheet_name(candidate)
        glossary_core = _core_name(candidate)
        if norm_glossary == norm_contract:
            return candidate
        if _singularize(glossary_core.replace(" ", "")) == contract_singular:
            return candidate

        if glossary_core and contract_core and (glossary_core in contract_core or contract_core in glossary_core):
            score = min(len(glossary_core), len(contract_core)) / max(len(glossary_core), len(contract_core))
            if score > best_score:
                best_score, best = score, candidate

        if norm_glossary and norm_contract and (norm_glossary in norm_contract or norm_contract in norm_glossary):
            score = min(len(norm_glossary), len(norm_contract)) / max(len(norm_glossary), len(norm_contract)) * 0.8
            if score > best_score:
                best_score, best = score, candidate

        contract_words = [w for w in contract_core.split(" ") if len(w) > 2]
        glossary_words = [w for w in glossary_core.split(" ") if len(w) > 2]
        matching = [
            cw for cw in contract_words
            if any(_singularize(gw) == _singularize(cw) or gw in cw or cw in gw for gw in glossary_words)
        ]
        if matching and contract_words:
            score = len(matching) / max(len(contract_words), len(glossary_words)) * 0.7
            if score > best_score:
                best_score, best = score, candidate

    return best if best_score >= 0.3 else None
