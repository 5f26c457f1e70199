from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .cell import CellValue

"""Sheet model for the review-state engine.

A Sheet is created once at ingestion and is read-only from the engine's point
of view. Header order is significant: index 0 is the file-identifier column,
index 1 the contract-source column. Both are reserved and never take part in
field-level anomaly detection or attention classification.
"""

__all__ = [
    "RESERVED_HEADER_COUNT",
    "Sheet",
]

RESERVED_HEADER_COUNT = 2  # file id + contract source


@dataclass(frozen=True)
class Sheet:
    """One worksheet: ordered headers plus ordered rows (header -> raw scalar)."""
    name: str
    headers: tuple[str, ...]
    rows: tuple[Mapping[str, Any], ...] = field(default_factory=tuple)

    @staticmethod
    def create(name: str, headers: Sequence[str], rows: Sequence[Mapping[str, Any]] | None = None) -> Sheet:
        return Sheet(name=name, headers=tuple(headers), rows=tuple(rows or ()))

    @staticmethod
    def from_records(name: str, headers: Sequence[str], records: Sequence[Sequence[Any]]) -> Sheet:
        """Build a sheet from positional records (one list per row).

        Short records are padded with absent cells; extra trailing values are dropped.
        """
        hdrs = tuple(headers)
        rows = []
        for rec in records:
            row = {h: (rec[i] if i < len(rec) else None) for i, h in enumerate(hdrs)}
            rows.append(row)
        return Sheet(name=name, headers=hdrs, rows=tuple(rows))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def editable_headers(self) -> tuple[str, ...]:
        return self.headers[RESERVED_HEADER_COUNT:]

    @property
    def contract_header(self) -> str | None:
        """Header of the contract-source column (index 1) or None for narrow sheets."""
        if len(self.headers) > 1:
            return self.headers[1]
        return None

    def cell(self, row_index: int, header: str) -> CellValue:
        """Return the cell at (row_index, header); out-of-range access yields ABSENT."""
        if row_index < 0 or row_index >= len(self.rows):
            return CellValue.absent()
        row = self.rows[row_index]
        if row is None:
            return CellValue.absent()
        return CellValue.of(row.get(header))
