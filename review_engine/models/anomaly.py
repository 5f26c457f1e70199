from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .keys import CellKey, RowKey

"""Anomaly domain model and the sparse AnomalyMap.

An Anomaly is an immutable "this cell looks wrong" fact. Anomalies are
produced fresh on every detection pass and never mutated. AnomalyMap keys
them by CellKey; a missing key means no anomalies for that cell.
"""

__all__ = [
    "AnomalyType",
    "CONTRACT_ANOMALY_TYPES",
    "FailureMeta",
    "Anomaly",
    "AnomalyMap",
    "PreflightRecord",
]


class AnomalyType(Enum):
    """Closed set of anomaly types."""
    INVALID_ALLOWED_VALUE = "invalid_allowed_value"
    UNEXPECTED_MISSING = "unexpected_missing"
    BLACKLIST_HIT = "blacklist_hit"
    CONTRACT_LOAD_ERROR = "contract_load_error"
    CONTRACT_TEXT_UNREADABLE = "contract_text_unreadable"
    CONTRACT_EXTRACTION_SUSPECT = "contract_extraction_suspect"
    CONTRACT_NOT_APPLICABLE = "contract_not_applicable"


# Document-level failures (checked on the contract-source column as well)
CONTRACT_ANOMALY_TYPES = frozenset({
    AnomalyType.CONTRACT_LOAD_ERROR,
    AnomalyType.CONTRACT_TEXT_UNREADABLE,
    AnomalyType.CONTRACT_EXTRACTION_SUSPECT,
    AnomalyType.CONTRACT_NOT_APPLICABLE,
})


@dataclass(frozen=True)
class FailureMeta:
    """Classification metadata attached to contract-failure anomalies."""
    category: str  # e.g. http_not_found, invalid_url, hidden_chars
    confidence: str  # high / medium / low / manual
    message: str
    detected_at: str  # ISO8601 UTC
    url: str | None = None
    http_status: int | None = None
    content_type: str | None = None
    size_bytes: int | None = None


@dataclass(frozen=True)
class Anomaly:
    """Tagged anomaly value.

    Type-specific metadata is optional: allowed_values for
    invalid_allowed_value, blacklist_* for blacklist_hit, failure_meta for
    contract failure types.
    """
    type: AnomalyType
    message: str
    severity: str = "warn"  # 現状は常に warn
    allowed_values: tuple[str, ...] | None = None
    blacklist_entry_id: str | None = None
    blacklist_value: str | None = None
    blacklist_match_mode: str | None = None
    blacklist_scope: str | None = None
    failure_meta: FailureMeta | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for JSON export (None-valued metadata omitted)."""
        out: dict[str, Any] = {
            "type": self.type.value,
            "severity": self.severity,
            "message": self.message,
        }
        if self.allowed_values is not None:
            out["allowed_values"] = list(self.allowed_values)
        if self.blacklist_entry_id is not None:
            out["blacklist_entry_id"] = self.blacklist_entry_id
            out["blacklist_value"] = self.blacklist_value
            out["blacklist_match_mode"] = self.blacklist_match_mode
            out["blacklist_scope"] = self.blacklist_scope
        if self.failure_meta is not None:
            meta = self.failure_meta
            out["failure_meta"] = {
                k: v for k, v in {
                    "category": meta.category,
                    "confidence": meta.confidence,
                    "message": meta.message,
                    "detected_at": meta.detected_at,
                    "url": meta.url,
                    "http_status": meta.http_status,
                    "content_type": meta.content_type,
                    "size_bytes": meta.size_bytes,
                }.items() if v is not None
            }
        return out


class AnomalyMap(Mapping[CellKey, tuple[Anomaly, ...]]):
    """Sparse, read-only CellKey -> anomalies mapping.

    Only non-empty anomaly lists are stored. Iteration follows insertion
    order, which the detector keeps as sheet -> row -> header order.
    """

    __slots__ = ("_cells", "_rows")

    def __init__(self, cells: Iterable[tuple[CellKey, Iterable[Anomaly]]] = ()) -> None:
        store: dict[CellKey, tuple[Anomaly, ...]] = {}
        for key, anomalies in cells:
            values = tuple(anomalies)
            if not values:
                continue
            k = CellKey(*key)
            store[k] = store.get(k, ()) + values
        self._cells = store
        rows: dict[RowKey, list[CellKey]] = {}
        for k in store:
            rows.setdefault(k.row_key, []).append(k)
        self._rows = rows

    # Mapping protocol
    def __getitem__(self, key: CellKey) -> tuple[Anomaly, ...]:
        return self._cells[CellKey(*key)]

    def __iter__(self) -> Iterator[CellKey]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:  # pragma: no cover (debug aid)
        return f"AnomalyMap({len(self._cells)} cells)"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AnomalyMap):
            return self._cells == other._cells
        return NotImplemented

    def __hash__(self) -> int:  # pragma: no cover
        return hash(tuple(self._cells.items()))

    def for_cell(self, sheet: str, row: int, field: str) -> tuple[Anomaly, ...]:
        return self._cells.get(CellKey(sheet, row, field), ())

    def for_row(self, sheet: str, row: int) -> dict[str, tuple[Anomaly, ...]]:
        """Field -> anomalies for one row (empty dict when the row is clean)."""
        return {k.field: self._cells[k] for k in self._rows.get(RowKey(sheet, row), ())}

    def row_keys(self, sheet: str | None = None) -> list[RowKey]:
        return [rk for rk in self._rows if sheet is None or rk.sheet == sheet]

    def sheets(self) -> list[str]:
        seen: dict[str, None] = {}
        for rk in self._rows:
            seen.setdefault(rk.sheet, None)
        return list(seen)

    def merged(self, other: Iterable[tuple[CellKey, Iterable[Anomaly]]]) -> AnomalyMap:
        """Return a new map with other's anomalies appended (self is untouched)."""
        return AnomalyMap([*self._cells.items(), *other])

    @staticmethod
    def from_nested(data: Mapping[str, Mapping[Any, Mapping[str, Iterable[Anomaly]]]]) -> AnomalyMap:
        """Build from the sheet -> row -> field -> anomalies shape."""
        cells = []
        for sheet, rows in (data or {}).items():
            for row, fields in (rows or {}).items():
                for field_name, anomalies in (fields or {}).items():
                    cells.append((CellKey(sheet, int(row), field_name), anomalies))
        return AnomalyMap(cells)

    def to_nested(self) -> dict[str, dict[int, dict[str, list[Anomaly]]]]:
        out: dict[str, dict[int, dict[str, list[Anomaly]]]] = {}
        for k, anomalies in self._cells.items():
            out.setdefault(k.sheet, {}).setdefault(k.row, {})[k.field] = list(anomalies)
        return out


@dataclass(frozen=True)
class PreflightRecord:
    """One contract-URL preflight verdict supplied by the preflight classifier.

    Invalid records are merged into the AnomalyMap. anomaly_type defaults to
    contract_load_error; classifiers that detect unreadable or suspect
    documents may report the other contract types.
    """
    sheet_name: str
    row_index: int
    field_name: str
    valid: bool
    category: str | None = None
    message: str | None = None
    confidence: str | None = None
    url: str | None = None
    anomaly_type: AnomalyType = AnomalyType.CONTRACT_LOAD_ERROR
