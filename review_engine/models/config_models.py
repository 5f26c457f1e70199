from __future__ import annotations

from dataclasses import dataclass, field

from .glossary import GlossaryEntry
from .signals import BlacklistEntry

"""Config dataclasses for the review-state engine.

These are the typed, validated form of config/engine.yml produced by
review_engine.config.loader. Every field has a default so the engine also
runs without a config file.
"""

__all__ = [
    "DEFAULT_MIN_ROWS_FOR_FILL_RATE",
    "DEFAULT_FILL_RATE_THRESHOLD",
    "DetectionThresholds",
    "EngineConfig",
]

DEFAULT_MIN_ROWS_FOR_FILL_RATE = 10
DEFAULT_FILL_RATE_THRESHOLD = 0.90


@dataclass(frozen=True)
class DetectionThresholds:
    """Statistical thresholds for the unexpected_missing rule.

    A field is "normally always filled" when the sheet has at least
    min_rows_for_fill_rate rows and the field's fill rate is at least
    fill_rate_threshold. Below the row minimum the rate is too noisy to use.
    """
    min_rows_for_fill_rate: int = DEFAULT_MIN_ROWS_FOR_FILL_RATE
    fill_rate_threshold: float = DEFAULT_FILL_RATE_THRESHOLD


@dataclass(frozen=True)
class EngineConfig:
    """Root configuration object (config/engine.yml)."""
    thresholds: DetectionThresholds = field(default_factory=DetectionThresholds)
    na_tokens: frozenset[str] | None = None  # None -> built-in NA token set
    placeholder_tokens: frozenset[str] | None = None  # None -> built-in placeholder set
    glossary: dict[str, tuple[GlossaryEntry, ...]] = field(default_factory=dict)  # sheet -> entries ("*" = all sheets)
    blacklist: tuple[BlacklistEntry, ...] = ()
    header_row: int = 0  # 0-based header row index in the workbook
    run_url_preflight: bool = True
