from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from ..models.anomaly import Anomaly, AnomalyMap, AnomalyType, FailureMeta, PreflightRecord
from ..models.cell import CellValue
from ..models.config_models import DetectionThresholds
from ..models.keys import CellKey
from ..models.sheet import Sheet
from ..models.signals import BlacklistEntry
from .blacklist import applies_to_field, detect_blacklist_anomalies
from .fill_rate import FieldFillRate, compute_field_fill_rates
from .na_values import NAPredicate, is_canonical_na
from .url_preflight import get_guidance_for_category, preflight_contract_urls
from .value_parser import filter_allowed_values

"""Field anomaly detection.

Per cell, three independent rules produce zero or more anomalies:

- invalid_allowed_value: value not in the field's (filtered) allowed list
- unexpected_missing: empty cell in a field that is normally always filled
- blacklist_hit: one per matching blacklist entry

Sheet-level detection scans rows x editable headers and returns a sparse
AnomalyMap. Contract-URL preflight results are merged in afterwards as
contract-level anomalies. Nothing here raises on malformed sheets; a sheet
without headers or rows simply yields no anomalies.
"""

__all__ = [
    "AllowedValueFilter",
    "FieldRules",
    "detect_invalid_allowed_value",
    "detect_unexpected_missing",
    "detect_field_anomalies",
    "compute_sheet_anomalies",
    "merge_preflight_anomalies",
    "compute_dataset_anomalies",
    "get_field_anomalies",
    "get_row_anomaly_count",
]

logger = logging.getLogger(__name__)

AllowedValueFilter = Callable[[Sequence[str]], list[str]]


class _HasAllowedValues(Protocol):
    allowed_values: Sequence[str] | None


GlossaryLookup = Callable[[str], "_HasAllowedValues | None"]


def _is_empty_or_na(cell: CellValue, is_na: NAPredicate) -> bool:
    return cell.is_empty() or is_na(cell)


def _invalid_allowed_value(cell: CellValue, filtered: Sequence[str], is_na: NAPredicate) -> Anomaly | None:
    if not filtered:
        return None
    if _is_empty_or_na(cell, is_na):
        return None
    text = cell.as_text().strip().lower()
    # 完全一致のみ (部分一致は不可)
    if any(av.strip().lower() == text for av in filtered):
        return None
    return Anomaly(
        type=AnomalyType.INVALID_ALLOWED_VALUE,
        message="Value not in allowed options",
        allowed_values=tuple(filtered),
    )


def detect_invalid_allowed_value(
    value: Any,
    allowed_values: Sequence[str] | None,
    *,
    is_na: NAPredicate = is_canonical_na,
    allowed_value_filter: AllowedValueFilter = filter_allowed_values,
) -> Anomaly | None:
    """Single-cell allowed-value check (filters the raw list on every call)."""
    if not allowed_values:
        return None
    return _invalid_allowed_value(CellValue.of(value), allowed_value_filter(list(allowed_values)), is_na)


def detect_unexpected_missing(
    value: Any,
    fill_rate: float,
    total_rows: int,
    thresholds: DetectionThresholds = DetectionThresholds(),
    *,
    is_na: NAPredicate = is_canonical_na,
) -> Anomaly | None:
    if total_rows < thresholds.min_rows_for_fill_rate:
        return None
    if fill_rate < thresholds.fill_rate_threshold:
        return None
    cell = CellValue.of(value)
    if not cell.is_empty():
        return None
    if is_na(cell):
        return None
    return Anomaly(
        type=AnomalyType.UNEXPECTED_MISSING,
        message="Unexpectedly empty (field usually has values)",
    )


@dataclass(frozen=True)
class FieldRules:
    """Everything needed to evaluate one field, computed once per sheet.

    allowed_values is already filtered/expanded, and blacklist holds only the
    enabled entries in scope for this field, so per-row work stays bounded.
    """
    field_name: str
    allowed_values: tuple[str, ...] = ()
    fill_rate: float = 0.0
    total_rows: int = 0
    blacklist: tuple[BlacklistEntry, ...] = ()
    thresholds: DetectionThresholds = field(default_factory=DetectionThresholds)
    is_na: NAPredicate = is_canonical_na

    @staticmethod
    def build(
        field_name: str,
        *,
        allowed_values: Sequence[str] | None = None,
        fill_rate: float = 0.0,
        total_rows: int = 0,
        blacklist: Iterable[BlacklistEntry] = (),
        thresholds: DetectionThresholds | None = None,
        is_na: NAPredicate = is_canonical_na,
        allowed_value_filter: AllowedValueFilter = filter_allowed_values,
    ) -> FieldRules:
        filtered = tuple(allowed_value_filter(list(allowed_values))) if allowed_values else ()
        scoped = tuple(e for e in blacklist if e.enabled and applies_to_field(e, field_name))
        return FieldRules(
            field_name=field_name,
            allowed_values=filtered,
            fill_rate=fill_rate,
            total_rows=total_rows,
            blacklist=scoped,
            thresholds=thresholds or DetectionThresholds(),
            is_na=is_na,
        )


def detect_field_anomalies(value: Any, rules: FieldRules) -> list[Anomaly]:
    """Evaluate all cell rules in fixed order: allowed value, missing, blacklist."""
    cell = CellValue.of(value)
    anomalies: list[Anomaly] = []

    invalid = _invalid_allowed_value(cell, rules.allowed_values, rules.is_na)
    if invalid:
        anomalies.append(invalid)

    missing = detect_unexpected_missing(cell, rules.fill_rate, rules.total_rows, rules.thresholds, is_na=rules.is_na)
    if missing:
        anomalies.append(missing)

    if rules.blacklist:
        anomalies.extend(detect_blacklist_anomalies(cell.as_text(), rules.field_name, rules.blacklist))

    return anomalies


def _build_field_rules(
    sheet: Sheet,
    glossary: GlossaryLookup | None,
    blacklist: Sequence[BlacklistEntry],
    fill_rates: Mapping[str, FieldFillRate],
    thresholds: DetectionThresholds,
    is_na: NAPredicate,
    allowed_value_filter: AllowedValueFilter,
) -> dict[str, FieldRules]:
    rules: dict[str, FieldRules] = {}
    for header in sheet.editable_headers:
        if header in rules:
            continue
        entry = glossary(header) if glossary is not None else None
        rate = fill_rates.get(header)
        rules[header] = FieldRules.build(
            header,
            allowed_values=entry.allowed_values if entry is not None else None,
            fill_rate=rate.fill_rate if rate else 0.0,
            total_rows=rate.total_rows if rate else 0,
            blacklist=blacklist,
            thresholds=thresholds,
            is_na=is_na,
            allowed_value_filter=allowed_value_filter,
        )
    return rules


def compute_sheet_anomalies(
    sheet: Sheet,
    glossary: GlossaryLookup | None = None,
    blacklist: Iterable[BlacklistEntry] = (),
    *,
    thresholds: DetectionThresholds | None = None,
    is_na: NAPredicate = is_canonical_na,
    allowed_value_filter: AllowedValueFilter = filter_allowed_values,
) -> AnomalyMap:
    """Scan every row x editable header of one sheet.

    Cells repeating their header name are skipped. Only cells with at least
    one anomaly appear in the result.
    """
    if not sheet.headers or not sheet.rows:
        return AnomalyMap()

    thresholds = thresholds or DetectionThresholds()
    fill_rates = compute_field_fill_rates(sheet, is_na=is_na)
    rules = _build_field_rules(
        sheet, glossary, tuple(blacklist), fill_rates, thresholds, is_na, allowed_value_filter,
    )

    cells: list[tuple[CellKey, list[Anomaly]]] = []
    for row_index in range(sheet.row_count):
        for header, field_rules in rules.items():
            cell = sheet.cell(row_index, header)
            if cell.matches_header(header):
                continue
            anomalies = detect_field_anomalies(cell, field_rules)
            if anomalies:
                cells.append((CellKey(sheet.name, row_index, header), anomalies))

    logger.debug(f"anomalies sheet={sheet.name} rows={sheet.row_count} cells_flagged={len(cells)}")
    return AnomalyMap(cells)


def _preflight_anomaly(record: PreflightRecord, detected_at: str) -> Anomaly:
    message = record.message or f"URL validation failed: {record.category}"
    meta = None
    if record.category:
        meta = FailureMeta(
            category=record.category,
            confidence=record.confidence or "high",
            message=record.message or get_guidance_for_category(record.category),
            detected_at=detected_at,
            url=record.url,
        )
    return Anomaly(type=record.anomaly_type, message=message, failure_meta=meta)


def merge_preflight_anomalies(
    anomalies: AnomalyMap,
    records: Iterable[PreflightRecord],
    *,
    now: datetime | None = None,
) -> AnomalyMap:
    """Fold invalid preflight records into a new AnomalyMap.

    A field never receives two anomalies of the same contract type (checked
    against both existing anomalies and earlier records). The input map is
    not modified.
    """
    detected_at = (now or datetime.now(UTC)).isoformat().replace("+00:00", "Z")
    present: dict[CellKey, set[AnomalyType]] = {}
    additions: list[tuple[CellKey, list[Anomaly]]] = []
    for record in records:
        if record.valid:
            continue
        key = CellKey(record.sheet_name, record.row_index, record.field_name)
        types = present.get(key)
        if types is None:
            types = {a.type for a in anomalies.for_cell(*key)}
            present[key] = types
        if record.anomaly_type in types:
            continue
        types.add(record.anomaly_type)
        additions.append((key, [_preflight_anomaly(record, detected_at)]))
    if not additions:
        return anomalies
    return anomalies.merged(additions)


def compute_dataset_anomalies(
    sheets: Iterable[Sheet],
    glossary_by_sheet: Mapping[str, GlossaryLookup] | None = None,
    blacklist: Iterable[BlacklistEntry] = (),
    *,
    preflight: Iterable[PreflightRecord] | None = None,
    run_url_preflight: bool = True,
    thresholds: DetectionThresholds | None = None,
    is_na: NAPredicate = is_canonical_na,
    allowed_value_filter: AllowedValueFilter = filter_allowed_values,
    now: datetime | None = None,
) -> AnomalyMap:
    """Detect anomalies for every sheet, then merge URL preflight results.

    preflight: records from an external classifier. When omitted and
    run_url_preflight is true, the built-in syntactic preflight runs over the
    contract column of every sheet.
    """
    sheet_list = list(sheets)
    entries = tuple(blacklist)
    glossaries = glossary_by_sheet or {}
    cells: list[tuple[CellKey, tuple[Anomaly, ...]]] = []
    for sheet in sheet_list:
        sheet_map = compute_sheet_anomalies(
            sheet,
            glossaries.get(sheet.name),
            entries,
            thresholds=thresholds,
            is_na=is_na,
            allowed_value_filter=allowed_value_filter,
        )
        cells.extend(sheet_map.items())
    result = AnomalyMap(cells)

    if preflight is None and run_url_preflight:
        preflight = preflight_contract_urls(sheet_list)
    if preflight is not None:
        result = merge_preflight_anomalies(result, preflight, now=now)
    return result


def get_field_anomalies(anomalies: AnomalyMap, sheet: str, row: int, field_name: str) -> tuple[Anomaly, ...]:
    return anomalies.for_cell(sheet, row, field_name)


def get_row_anomaly_count(anomalies: AnomalyMap, sheet: str, row: int) -> int:
    return sum(len(v) for v in anomalies.for_row(sheet, row).values())
