from __future__ import annotations

import json
import shutil
from pathlib import Path

import jsonschema
import pytest
import yaml

from review_engine.cli import main as cli_main
from review_engine.config.loader import SCHEMA_PATH, config_from_dict
from review_engine.logging.init import reset_logging

"""Config schema contract: the shipped sample config validates, bad values do not."""

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_sample_config_is_valid(schema):
    data = yaml.safe_load((PROJECT_ROOT / "config" / "engine.yml").read_text(encoding="utf-8"))
    jsonschema.validate(data, schema)
    cfg = config_from_dict(data)
    assert "*" in cfg.glossary
    assert {e.id for e in cfg.blacklist} == {"bl-acme", "bl-test-domain"}
    terms = next(e for e in cfg.glossary["*"] if e.field_key == "payment_terms")
    assert terms.allowed_values == ("Net 30", "Net 45", "Net 60", "Due on Receipt")


@pytest.mark.parametrize(
    "data",
    [
        {"thresholds": {"min_rows_for_fill_rate": 0}},
        {"thresholds": {"fill_rate_threshold": -0.1}},
        {"thresholds": {"unknown": 1}},
        {"na_tokens": [""]},
        {"header_row": "0"},
        {"run_url_preflight": "yes"},
        {"glossary": {"*": [{"label": "no key"}]}},
        {"glossary": {"*": {"field_key": "state"}}},
        {"blacklist": [{"value": "no id"}]},
        {"blacklist": [{"id": "x", "value": "v", "match_mode": "regex"}]},
        {"blacklist": [{"id": "x", "value": "v", "scope": "sheet"}]},
        {"blacklist": [{"id": "x", "value": "v", "type": "phone"}]},
        {"extra": True},
    ],
)
def test_invalid_configs_are_rejected(schema, data):
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(data, schema)


def test_minimal_configs_are_accepted(schema):
    jsonschema.validate({}, schema)
    jsonschema.validate({"glossary": {"Contracts": [{"field_key": "state", "allowed_values": None}]}}, schema)
    jsonschema.validate({"blacklist": [{"id": 1, "value": "Acme"}]}, schema)


def test_sample_config_token_lists_are_strings():
    data = yaml.safe_load((PROJECT_ROOT / "config" / "engine.yml").read_text(encoding="utf-8"))
    for key in ("na_tokens", "placeholder_tokens"):
        assert all(isinstance(t, str) for t in data[key]), key
    assert "null" in data["na_tokens"]
    assert "null" in data["placeholder_tokens"]


def test_cli_runs_with_sample_config(temp_workdir: Path, write_workbook, capsys):
    reset_logging()
    shutil.copy(PROJECT_ROOT / "config" / "engine.yml", temp_workdir / "config" / "engine.yml")
    book = write_workbook("book.xlsx", {
        "Contracts": [["File", "ContractURL", "State"], ["a.pdf", "https://files.example.com/a.pdf", "CA"]],
    })
    assert cli_main([str(book)]) == 0
    out = capsys.readouterr().out
    assert "ERROR config" not in out
    assert "SUMMARY sheet=Contracts rows=1 " in out
