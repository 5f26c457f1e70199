from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial

from ..models.analytics import SheetAnalytics
from ..models.anomaly import AnomalyMap, PreflightRecord
from ..models.attention import RowAttentionResult
from ..models.config_models import EngineConfig
from ..models.glossary import GlossaryEntry
from ..models.keys import RowKey
from ..models.review_status import RowReviewStatus
from ..models.sheet import Sheet
from ..models.signals import ReviewSignals
from .analytics import compute_sheet_analytics
from .anomaly_detection import compute_dataset_anomalies
from .attention import get_row_attention
from .glossary import Glossary, find_matching_glossary_sheet
from .na_values import NARecognizer
from .progress import ProgressTracker
from .review_reason import derive_row_review_status
from .value_parser import filter_allowed_values

"""Evaluation pipeline.

Runs the full derivation for a dataset in dependency order:

1. anomalies (fill rates, allowed values, blacklist, contract preflight)
2. row attention
3. row review statuses
4. sheet analytics

Every stage is a pure function of the sheets, the signal snapshot and the
config; the returned ReviewSnapshot can be discarded and recomputed at any
time.
"""

__all__ = [
    "WILDCARD_GLOSSARY",
    "ReviewSnapshot",
    "resolve_glossaries",
    "evaluate_dataset",
]

logger = logging.getLogger(__name__)

# config.glossary key applying to every sheet without its own entries
WILDCARD_GLOSSARY = "*"


@dataclass(frozen=True)
class ReviewSnapshot:
    """Everything derived for one dataset evaluation."""
    sheets: tuple[Sheet, ...]
    anomalies: AnomalyMap
    attention: dict[RowKey, RowAttentionResult] = field(default_factory=dict)
    review_statuses: dict[RowKey, RowReviewStatus] = field(default_factory=dict)
    analytics: dict[str, SheetAnalytics] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def blocking_count(self) -> int:
        return sum(1 for s in self.review_statuses.values() if s.is_blocking)

    @property
    def has_blocking(self) -> bool:
        return any(s.is_blocking for s in self.review_statuses.values())

    def statuses_for(self, sheet_name: str) -> dict[int, RowReviewStatus]:
        return {k.row: v for k, v in self.review_statuses.items() if k.sheet == sheet_name}


def resolve_glossaries(
    sheets: Iterable[Sheet],
    glossary: Mapping[str, Iterable[GlossaryEntry]],
) -> dict[str, Glossary]:
    """Pick glossary entries per sheet.

    Exact sheet name first, then the best fuzzy match among the named
    glossary sheets, then the wildcard entry. Sheets with none of these get
    no glossary.
    """
    named = [name for name in glossary if name != WILDCARD_GLOSSARY]
    wildcard = glossary.get(WILDCARD_GLOSSARY)
    resolved: dict[str, Glossary] = {}
    for sheet in sheets:
        entries = glossary.get(sheet.name)
        if entries is None:
            match = find_matching_glossary_sheet(sheet.name, named)
            entries = glossary[match] if match is not None else wildcard
        if entries is not None:
            resolved[sheet.name] = Glossary(entries)
    return resolved


def evaluate_dataset(
    sheets: Iterable[Sheet],
    signals: ReviewSignals | None = None,
    config: EngineConfig | None = None,
    *,
    preflight: Iterable[PreflightRecord] | None = None,
    now: datetime | None = None,
    progress: ProgressTracker | None = None,
) -> ReviewSnapshot:
    """Evaluate all sheets and return the derived ReviewSnapshot.

    Args:
        sheets: dataset sheets in display order
        signals: application signal snapshot (None = no signals)
        config: engine configuration (None = defaults)
        preflight: externally classified contract-URL records; when None the
            built-in syntactic preflight runs if config.run_url_preflight
        now: timestamp for derived_at / detected_at (default: current UTC)
        progress: optional tracker advanced once per sheet
    """
    started = time.perf_counter()
    sheet_list = tuple(sheets)
    signals = signals or ReviewSignals()
    config = config or EngineConfig()
    moment = now or datetime.now(UTC)

    is_na = NARecognizer(config.na_tokens)
    allowed_value_filter = partial(filter_allowed_values, placeholders=config.placeholder_tokens)
    glossaries = resolve_glossaries(sheet_list, config.glossary)

    anomalies = compute_dataset_anomalies(
        sheet_list,
        glossaries,
        config.blacklist,
        preflight=preflight,
        run_url_preflight=config.run_url_preflight,
        thresholds=config.thresholds,
        is_na=is_na,
        allowed_value_filter=allowed_value_filter,
        now=moment,
    )
    logger.debug(f"anomaly pass done cells={len(anomalies)} sheets={len(sheet_list)}")

    attention: dict[RowKey, RowAttentionResult] = {}
    statuses: dict[RowKey, RowReviewStatus] = {}
    analytics: dict[str, SheetAnalytics] = {}
    for sheet in sheet_list:
        if progress is not None:
            progress.start_sheet(sheet.name)
        blocking = 0
        for row_index in range(sheet.row_count):
            key = RowKey(sheet.name, row_index)
            row_attention = get_row_attention(sheet.name, row_index, sheet.headers, signals, anomalies)
            attention[key] = row_attention
            status = derive_row_review_status(row_attention, signals.row_status(sheet.name, row_index), now=moment)
            statuses[key] = status
            if status.is_blocking:
                blocking += 1
        analytics[sheet.name] = compute_sheet_analytics(sheet_list, sheet.name, signals, anomalies, statuses)
        if progress is not None:
            progress.set_postfix(rows=sheet.row_count, blocking=blocking)
            progress.finish_sheet()

    elapsed = time.perf_counter() - started
    logger.debug(f"evaluate_dataset sheets={len(sheet_list)} rows={len(statuses)} elapsed_sec={elapsed:.3f}")
    return ReviewSnapshot(
        sheets=sheet_list,
        anomalies=anomalies,
        attention=attention,
        review_statuses=statuses,
        analytics=analytics,
        elapsed_seconds=elapsed,
    )
