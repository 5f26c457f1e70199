from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.anomaly import AnomalyType, PreflightRecord
from ..models.config_models import DetectionThresholds, EngineConfig
from ..models.glossary import GlossaryEntry
from ..models.signals import BlacklistEntry, ReviewSignals
from ..services.glossary import entry_from_dict

"""Config and signals loaders.

Responsibilities:
- Load YAML config/engine.yml (path from CLI, REVIEW_ENGINE_CONFIG, or default)
- Validate against the bundled engine_schema.json
- Apply defaults for every absent key
- Load the application's signal snapshot (JSON) into ReviewSignals

These are the only places besides the workbook reader that raise; the
derivation services themselves never do.
"""

__all__ = [
    "ConfigError",
    "SignalsError",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
    "SignalsFile",
    "resolve_config_path",
    "config_from_dict",
    "load_config",
    "load_signals",
]

SCHEMA_PATH = Path(__file__).with_name("engine_schema.json")
DEFAULT_CONFIG_PATH = Path("config/engine.yml")
CONFIG_ENV_VAR = "REVIEW_ENGINE_CONFIG"


class ConfigError(Exception):
    pass


class SignalsError(Exception):
    pass


@dataclass(frozen=True)
class SignalsFile:
    """Parsed signals JSON: the signal snapshot plus optional preflight records.

    preflight is None when the file has no "preflight" key (the built-in
    syntactic preflight then applies).
    """
    signals: ReviewSignals
    preflight: tuple[PreflightRecord, ...] | None = None


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        suffix = f" (at {location})" if location else ""
        raise ConfigError(f"config validation failed: {e.message}{suffix}") from e


def resolve_config_path(explicit: Path | str | None = None) -> tuple[Path, bool]:
    """Return (path, required).

    An explicit path or REVIEW_ENGINE_CONFIG must exist; the default
    config/engine.yml is optional.
    """
    if explicit:
        return Path(explicit), True
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env), True
    return DEFAULT_CONFIG_PATH, False


def _glossary_from(raw: Mapping[str, Any]) -> dict[str, tuple[GlossaryEntry, ...]]:
    glossary: dict[str, tuple[GlossaryEntry, ...]] = {}
    for sheet, entries in raw.items():
        glossary[str(sheet)] = tuple(entry_from_dict(e) for e in entries or ())
    return glossary


def _tokens(raw: Any) -> frozenset[str] | None:
    if raw is None:
        return None
    return frozenset(str(t) for t in raw)


def config_from_dict(data: Mapping[str, Any]) -> EngineConfig:
    """Build EngineConfig from already validated data."""
    th = data.get("thresholds") or {}
    defaults = DetectionThresholds()
    thresholds = DetectionThresholds(
        min_rows_for_fill_rate=int(th.get("min_rows_for_fill_rate", defaults.min_rows_for_fill_rate)),
        fill_rate_threshold=float(th.get("fill_rate_threshold", defaults.fill_rate_threshold)),
    )
    return EngineConfig(
        thresholds=thresholds,
        na_tokens=_tokens(data.get("na_tokens")),
        placeholder_tokens=_tokens(data.get("placeholder_tokens")),
        glossary=_glossary_from(data.get("glossary") or {}),
        blacklist=tuple(BlacklistEntry.from_dict(e) for e in data.get("blacklist") or ()),
        header_row=int(data.get("header_row", 0)),
        run_url_preflight=bool(data.get("run_url_preflight", True)),
    )


def load_config(path: Path | str | None = None) -> EngineConfig:
    config_path, required = resolve_config_path(path)
    if not config_path.exists():
        if required:
            raise ConfigError(f"config file not found: {config_path}")
        return EngineConfig()
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {config_path}")

    _validate_config_schema(data)
    return config_from_dict(data)


def _preflight_from(raw: Any) -> tuple[PreflightRecord, ...]:
    if not isinstance(raw, list):
        raise SignalsError("preflight must be a list")
    records = []
    for item in raw:
        try:
            records.append(PreflightRecord(
                sheet_name=str(item["sheet_name"]),
                row_index=int(item["row_index"]),
                field_name=str(item["field_name"]),
                valid=bool(item.get("valid", False)),
                category=item.get("category"),
                message=item.get("message"),
                confidence=item.get("confidence"),
                url=item.get("url"),
                anomaly_type=AnomalyType(item.get("anomaly_type", AnomalyType.CONTRACT_LOAD_ERROR.value)),
            ))
        except (KeyError, TypeError, ValueError) as e:
            raise SignalsError(f"invalid preflight record {item!r}: {e}") from e
    return tuple(records)


def load_signals(path: Path | str | None) -> SignalsFile:
    """Load the signal snapshot JSON (None -> empty snapshot).

    Top-level keys: row_statuses, field_statuses, rfi_comments,
    modification_history, preflight (all optional).
    """
    if path is None:
        return SignalsFile(ReviewSignals())
    signals_path = Path(path)
    if not signals_path.exists():
        raise SignalsError(f"signals file not found: {signals_path}")
    try:
        data = json.loads(signals_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SignalsError(f"invalid signals json: {e}") from e
    # JSON null のみ空スナップショット扱い
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SignalsError(f"signals root must be an object: {signals_path}")
    try:
        signals = ReviewSignals.from_nested(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SignalsError(f"invalid signals: {e}") from e
    preflight = _preflight_from(data["preflight"]) if "preflight" in data else None
    return SignalsFile(signals=signals, preflight=preflight)
