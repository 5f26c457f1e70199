from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

"""CellValue model for the review-state engine.

Spreadsheet cells arrive as loosely typed scalars (str / int / float / bool /
None, or pandas NaN after ingestion). CellValue closes that set into four
explicit kinds so every comparison and formatting site has to handle each
variant instead of relying on implicit string coercion.
"""

__all__ = [
    "CellKind",
    "CellValue",
]


class CellKind(Enum):
    """Closed set of cell value variants.

    - TEXT: any string (including empty / whitespace-only)
    - NUMBER: int or float (finite)
    - BOOLEAN: True / False
    - ABSENT: missing cell (None, NaN, key not present in row)
    """
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ABSENT = "absent"


@dataclass(frozen=True)
class CellValue:
    """Tagged cell value (one of CellKind)."""
    kind: CellKind
    raw: str | int | float | bool | None = None

    @staticmethod
    def of(raw: Any) -> CellValue:
        """Build a CellValue from a raw scalar.

        bool is checked before int because bool is an int subclass.
        NaN / inf floats (pandas empty cells) become ABSENT.
        Unknown objects (datetime etc.) are kept as TEXT via str().
        """
        if raw is None:
            return _ABSENT
        if isinstance(raw, CellValue):
            return raw
        if isinstance(raw, bool):
            return CellValue(CellKind.BOOLEAN, raw)
        if isinstance(raw, (int, float)):
            if isinstance(raw, float) and not math.isfinite(raw):
                return _ABSENT
            return CellValue(CellKind.NUMBER, raw)
        if isinstance(raw, str):
            return CellValue(CellKind.TEXT, raw)
        # numpy scalar 等
        item = getattr(raw, "item", None)
        if callable(item):
            try:
                return CellValue.of(item())
            except (TypeError, ValueError):
                pass
        return CellValue(CellKind.TEXT, str(raw))

    @staticmethod
    def absent() -> CellValue:
        return _ABSENT

    @property
    def is_absent(self) -> bool:
        return self.kind is CellKind.ABSENT

    def as_text(self) -> str:
        """Render the value as display text.

        - TEXT: unchanged
        - NUMBER: integral values without fraction ("1000", not "1000.0")
        - BOOLEAN: "true" / "false"
        - ABSENT: ""
        """
        if self.kind is CellKind.TEXT:
            return str(self.raw)
        if self.kind is CellKind.NUMBER:
            if isinstance(self.raw, float) and self.raw.is_integer():
                return str(int(self.raw))
            return str(self.raw)
        if self.kind is CellKind.BOOLEAN:
            return "true" if self.raw else "false"
        return ""

    def is_empty(self) -> bool:
        """True for ABSENT and for TEXT that is blank or a lone "-".

        Numbers and booleans are never empty.
        """
        if self.kind is CellKind.ABSENT:
            return True
        if self.kind is CellKind.TEXT:
            stripped = str(self.raw).strip()
            return stripped == "" or stripped == "-"
        return False

    def matches_header(self, header: str) -> bool:
        """True when the cell literally repeats its column header (mis-parsed header row)."""
        if self.kind is CellKind.ABSENT:
            return False
        return self.as_text().strip().lower() == header.lower()


_ABSENT = CellValue(CellKind.ABSENT, None)
