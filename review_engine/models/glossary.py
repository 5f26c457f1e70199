from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Glossary entry model (field definitions with allowed values)."""

__all__ = [
    "InputType",
    "GlossaryEntry",
]


class InputType(Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


@dataclass(frozen=True)
class GlossaryEntry:
    """One glossary row describing a field.

    allowed_values is the raw list as authored; placeholder filtering and
    multi-value expansion happen at detection time.
    """
    field_key: str
    label: str | None = None
    definition: str | None = None
    allowed_values: tuple[str, ...] | None = None
    input_type: InputType | None = None
    synonyms: tuple[str, ...] = ()
    required_status: str | None = None  # Required / Optional / Not Needed
    data_type: str | None = None
