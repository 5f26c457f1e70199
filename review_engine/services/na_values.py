from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from ..models.cell import CellKind, CellValue

"""Canonical-NA recognition.

A canonical NA token ("N/A", "not applicable", ...) is an intentional "this
does not apply" answer. It is distinct from an accidentally empty cell:
NA cells never trigger unexpected_missing and never count as filled.
Only TEXT cells can be NA.
"""

__all__ = [
    "CANONICAL_NA",
    "DEFAULT_NA_TOKENS",
    "NARecognizer",
    "is_canonical_na",
    "normalize_na_for_display",
]

CANONICAL_NA = "N/A"

DEFAULT_NA_TOKENS = frozenset({
    "n/a",
    "na",
    "not applicable",
    "not app",
    "not needed",
    "n.a.",
    "none",
    "null",
    "unknown",
})

NAPredicate = Callable[[CellValue], bool]


class NARecognizer:
    """Case-insensitive NA token matcher (tokens compared after strip())."""

    def __init__(self, tokens: Iterable[str] | None = None) -> None:
        source = DEFAULT_NA_TOKENS if tokens is None else tokens
        self.tokens = frozenset(t.strip().lower() for t in source if t and t.strip())

    def __call__(self, value: Any) -> bool:
        cell = CellValue.of(value)
        if cell.kind is not CellKind.TEXT:
            return False
        text = str(cell.raw).strip()
        return text == CANONICAL_NA or text.lower() in self.tokens

    def normalize_for_display(self, value: Any) -> str:
        cell = CellValue.of(value)
        if self(cell):
            return CANONICAL_NA
        return cell.as_text()


_default = NARecognizer()


def is_canonical_na(value: Any) -> bool:
    return _default(value)


def normalize_na_for_display(value: Any) -> str:
    return _default.normalize_for_display(value)
