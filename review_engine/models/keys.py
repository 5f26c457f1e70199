from __future__ import annotations

from typing import NamedTuple

"""Composite keys for sparse per-row / per-cell maps.

Replaces the sheet -> row -> field nesting with flat tuple keys. Absence of a
key in any map keyed by these means "no signal", never "unknown".
"""

__all__ = [
    "RowKey",
    "CellKey",
]


class RowKey(NamedTuple):
    sheet: str
    row: int  # 0-based data row index


class CellKey(NamedTuple):
    sheet: str
    row: int  # 0-based data row index
    field: str  # header name

    @property
    def row_key(self) -> RowKey:
        return RowKey(self.sheet, self.row)
