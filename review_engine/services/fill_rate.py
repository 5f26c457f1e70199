from __future__ import annotations

from dataclasses import dataclass

from ..models.sheet import Sheet
from .na_values import NAPredicate, is_canonical_na

"""Fill-rate profiler.

Per editable field: the fraction of rows holding a real value (non-empty and
not canonical NA). Drives the unexpected_missing rule: a field that is
almost always filled is suspicious when a cell is left empty.
"""

__all__ = [
    "FieldFillRate",
    "compute_field_fill_rates",
]


@dataclass(frozen=True)
class FieldFillRate:
    fill_rate: float  # non_empty_non_na / total_rows
    na_rate: float  # na / total_rows
    total_rows: int
    non_empty_non_na: int


def compute_field_fill_rates(sheet: Sheet, *, is_na: NAPredicate = is_canonical_na) -> dict[str, FieldFillRate]:
    """Compute fill statistics for every editable header of the sheet.

    Cells repeating their own header are not counted as filled (mis-parsed
    header rows), but still count toward total_rows. Duplicate headers are
    profiled once.
    """
    total_rows = sheet.row_count
    rates: dict[str, FieldFillRate] = {}
    for header in sheet.editable_headers:
        if header in rates:
            continue
        filled = 0
        na = 0
        for row_index in range(total_rows):
            cell = sheet.cell(row_index, header)
            if cell.matches_header(header):
                continue
            if is_na(cell):
                na += 1
            elif not cell.is_empty():
                filled += 1
        rates[header] = FieldFillRate(
            fill_rate=filled / total_rows if total_rows > 0 else 0.0,
            na_rate=na / total_rows if total_rows > 0 else 0.0,
            total_rows=total_rows,
            non_empty_non_na=filled,
        )
    return rates
