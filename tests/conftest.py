# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from review_engine.logging.init import reset_logging
from review_engine.models import ReviewSignals, Sheet

# [File, ContractURL, Amount, State] with State restricted to CA / NY
SCENARIO_HEADERS = ["File", "ContractURL", "Amount", "State"]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("REVIEW_ENGINE_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """thresholds:
  min_rows_for_fill_rate: 10
  fill_rate_threshold: 0.9
glossary:
  "*":
    - field_key: state
      label: State
      allowed_values: [CA, NY]
blacklist:
  - id: bl-1
    value: Acme
    match_mode: contains
    scope: global
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "engine.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_workbook(temp_workdir: Path):
    """Write data/<name> with one sheet per mapping entry (first row = headers)."""
    def _write(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        path = temp_workdir / "data" / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet_name, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return path
    return _write


@pytest.fixture()
def scenario_rows() -> list[list[object]]:
    return [
        SCENARIO_HEADERS,
        ["a.pdf", "https://files.example.com/a.pdf", 1000, "ZZ"],
    ]


@pytest.fixture()
def scenario_sheet() -> Sheet:
    """Single row whose State value is outside the allowed list."""
    return Sheet.from_records(
        "Contracts",
        SCENARIO_HEADERS,
        [["a.pdf", "https://files.example.com/a.pdf", 1000, "ZZ"]],
    )


@pytest.fixture()
def clean_sheet() -> Sheet:
    return Sheet.from_records(
        "Contracts",
        SCENARIO_HEADERS,
        [
            ["a.pdf", "https://files.example.com/a.pdf", 1000, "CA"],
            ["b.pdf", "https://files.example.com/b.pdf", 2500.5, "NY"],
        ],
    )


@pytest.fixture()
def empty_signals() -> ReviewSignals:
    return ReviewSignals()


@pytest.fixture(autouse=True)
def _reset_logging_state():
    yield
    reset_logging()
