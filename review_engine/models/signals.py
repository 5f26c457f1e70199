from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .keys import CellKey, RowKey

"""Application-owned signal maps (read-only inputs of the engine).

The surrounding application mutates these (marking rows complete, raising
RFIs, committing edits, managing the blacklist). The engine only ever reads
an immutable snapshot of them and never writes back.
"""

__all__ = [
    "RowStatus",
    "FieldStatus",
    "ModificationType",
    "ModificationRecord",
    "BlacklistMatchMode",
    "BlacklistScope",
    "BlacklistEntry",
    "ReviewSignals",
]

logger = logging.getLogger(__name__)


class RowStatus(Enum):
    """Manual completion status of a row. Missing entries mean INCOMPLETE."""
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"

    @staticmethod
    def parse(value: Any) -> RowStatus:
        if isinstance(value, RowStatus):
            return value
        if isinstance(value, str) and value.strip().lower() == "complete":
            return RowStatus.COMPLETE
        return RowStatus.INCOMPLETE


class FieldStatus(Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    RFI = "rfi"

    @staticmethod
    def parse(value: Any) -> FieldStatus:
        if isinstance(value, FieldStatus):
            return value
        text = str(value).strip().lower() if value is not None else ""
        for status in FieldStatus:
            if status.value == text:
                return status
        return FieldStatus.INCOMPLETE


class ModificationType(Enum):
    """How a cell value changed.

    ADDRESS_STANDARDIZED is system formatting only and never needs attention.
    """
    ADDRESS_STANDARDIZED = "address_standardized"
    INCOMPLETE_ADDRESS = "incomplete_address"
    MANUAL_EDIT = "manual_edit"


@dataclass(frozen=True)
class ModificationRecord:
    """One entry of the modification history for a cell."""
    original_value: str | int | float | bool | None
    new_value: str | int | float | bool | None
    modification_type: ModificationType
    reason: str = ""
    timestamp: str = ""  # ISO8601

    @property
    def is_system_change(self) -> bool:
        return self.modification_type in (
            ModificationType.ADDRESS_STANDARDIZED,
            ModificationType.INCOMPLETE_ADDRESS,
        )

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> ModificationRecord:
        raw_type = data.get("modification_type", data.get("modificationType"))
        return ModificationRecord(
            original_value=data.get("original_value", data.get("originalValue")),
            new_value=data.get("new_value", data.get("newValue")),
            modification_type=ModificationType(raw_type),
            reason=str(data.get("reason") or ""),
            timestamp=str(data.get("timestamp") or ""),
        )


class BlacklistMatchMode(Enum):
    EXACT = "exact"
    CONTAINS = "contains"


class BlacklistScope(Enum):
    GLOBAL = "global"
    FIELD_SPECIFIC = "field_specific"


@dataclass(frozen=True)
class BlacklistEntry:
    """Configured value that must be surfaced for review wherever it appears."""
    id: str
    value: str
    type: str = "custom"  # name / address / email / domain / custom
    match_mode: BlacklistMatchMode = BlacklistMatchMode.CONTAINS
    scope: BlacklistScope = BlacklistScope.GLOBAL
    fields: tuple[str, ...] = ()
    enabled: bool = True
    created_at: str = ""
    updated_at: str = ""

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> BlacklistEntry:
        return BlacklistEntry(
            id=str(data["id"]),
            value=str(data.get("value") or ""),
            type=str(data.get("type") or "custom"),
            match_mode=BlacklistMatchMode(data.get("match_mode", data.get("matchMode", "contains"))),
            scope=BlacklistScope(data.get("scope", "global")),
            fields=tuple(str(f) for f in data.get("fields") or ()),
            enabled=bool(data.get("enabled", True)),
            created_at=str(data.get("created_at", data.get("createdAt")) or ""),
            updated_at=str(data.get("updated_at", data.get("updatedAt")) or ""),
        )


def _freeze(d: dict[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(d)


def _section(value: Any, where: str) -> Mapping[Any, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    logger.warning(f"skipping {where}: expected an object, got {type(value).__name__}")
    return {}


def _row_index(row: Any, where: str) -> int | None:
    try:
        return int(row)
    except (TypeError, ValueError):
        logger.warning(f"skipping {where}/{row}: row key is not an integer")
        return None


@dataclass(frozen=True)
class ReviewSignals:
    """Immutable snapshot of the four application-owned signal maps.

    row_statuses: RowKey -> RowStatus (missing = incomplete)
    field_statuses: CellKey -> FieldStatus
    rfi_comments: CellKey -> comment text (empty text = no comment)
    modifications: CellKey -> ModificationRecord
    """
    row_statuses: Mapping[RowKey, RowStatus] = field(default_factory=lambda: _freeze({}))
    field_statuses: Mapping[CellKey, FieldStatus] = field(default_factory=lambda: _freeze({}))
    rfi_comments: Mapping[CellKey, str] = field(default_factory=lambda: _freeze({}))
    modifications: Mapping[CellKey, ModificationRecord] = field(default_factory=lambda: _freeze({}))

    @staticmethod
    def create(
        row_statuses: Iterable[tuple[RowKey, RowStatus]] | Mapping[RowKey, RowStatus] | None = None,
        field_statuses: Iterable[tuple[CellKey, FieldStatus]] | Mapping[CellKey, FieldStatus] | None = None,
        rfi_comments: Iterable[tuple[CellKey, str]] | Mapping[CellKey, str] | None = None,
        modifications: Iterable[tuple[CellKey, ModificationRecord]] | Mapping[CellKey, ModificationRecord] | None = None,
    ) -> ReviewSignals:
        """Copy the given maps into a frozen snapshot (callers keep ownership of theirs)."""
        def _items(src: Any) -> Iterable[tuple[Any, Any]]:
            if src is None:
                return ()
            if isinstance(src, Mapping):
                return src.items()
            return src

        return ReviewSignals(
            row_statuses=_freeze({RowKey(*k): RowStatus.parse(v) for k, v in _items(row_statuses)}),
            field_statuses=_freeze({CellKey(*k): FieldStatus.parse(v) for k, v in _items(field_statuses)}),
            rfi_comments=_freeze({CellKey(*k): str(v or "") for k, v in _items(rfi_comments)}),
            modifications=_freeze({CellKey(*k): v for k, v in _items(modifications)}),
        )

    @staticmethod
    def from_nested(data: Mapping[str, Any] | None) -> ReviewSignals:
        """Build from the nested JSON shape used by the application state.

        Expected keys (all optional): row_statuses, field_statuses,
        rfi_comments, modification_history. Each is sheet -> row -> (field ->)
        value; row indexes may be strings (JSON object keys).

        Malformed entries (non-integer row keys, non-object sections, unknown
        modification types) are skipped with a warning and read as no signal.
        """
        data = data or {}
        rows: dict[RowKey, RowStatus] = {}
        for sheet, by_row in _section(data.get("row_statuses"), "row_statuses").items():
            for row, status in _section(by_row, f"row_statuses/{sheet}").items():
                index = _row_index(row, f"row_statuses/{sheet}")
                if index is not None:
                    rows[RowKey(sheet, index)] = RowStatus.parse(status)

        def _cells(name: str) -> Iterable[tuple[CellKey, Any]]:
            for sheet, by_row in _section(data.get(name), name).items():
                for row, by_field in _section(by_row, f"{name}/{sheet}").items():
                    index = _row_index(row, f"{name}/{sheet}")
                    if index is None:
                        continue
                    for field_name, value in _section(by_field, f"{name}/{sheet}/{row}").items():
                        yield CellKey(sheet, index, field_name), value

        modifications: list[tuple[CellKey, ModificationRecord]] = []
        for key, value in _cells("modification_history"):
            if isinstance(value, ModificationRecord):
                modifications.append((key, value))
                continue
            try:
                modifications.append((key, ModificationRecord.from_dict(value)))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"skipping modification_history/{key.sheet}/{key.row}/{key.field}: {e}")

        return ReviewSignals.create(
            row_statuses=rows,
            field_statuses=list(_cells("field_statuses")),
            rfi_comments=list(_cells("rfi_comments")),
            modifications=modifications,
        )

    def row_status(self, sheet: str, row: int) -> RowStatus:
        return self.row_statuses.get(RowKey(sheet, row), RowStatus.INCOMPLETE)

    def is_row_complete(self, sheet: str, row: int) -> bool:
        return self.row_status(sheet, row) is RowStatus.COMPLETE

    def field_status(self, key: CellKey) -> FieldStatus | None:
        return self.field_statuses.get(key)

    def rfi_comment(self, key: CellKey) -> str:
        return self.rfi_comments.get(key, "")

    def modification(self, key: CellKey) -> ModificationRecord | None:
        return self.modifications.get(key)
