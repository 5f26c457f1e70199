from __future__ import annotations

import zipfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.sheet import Sheet

"""Workbook reader (xlsx / csv -> Sheet).

Thin pandas adapter used by the CLI; the derivation services only ever see
Sheet objects. Pandas' default NA conversion is disabled: "N/A", "NA",
"null" and friends are real answers the engine has to see as text, so only
truly empty cells become absent.
"""

__all__ = [
    "WorkbookReadError",
    "SheetHeaderError",
    "read_workbook",
    "frame_to_sheet",
]

_EXCEL_SUFFIXES = (".xlsx", ".xlsm")


class WorkbookReadError(Exception):
    """Raised when the workbook cannot be opened or parsed."""


class SheetHeaderError(WorkbookReadError):
    """Raised when the configured header row is missing."""


def _cell(val: Any) -> Any:
    if val is None:
        return None
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        # list-like 等は NA 判定不可
        return val
    if isinstance(val, pd.Timestamp):
        return val.isoformat()
    return val


def frame_to_sheet(df: pd.DataFrame, sheet_name: str, header_row: int = 0) -> Sheet:
    """Normalize a raw (header=None) DataFrame into a Sheet.

    Steps:
    1. Row `header_row` holds the headers (whitespace trimmed, blanks named
       "Column N", repeated names suffixed "Name (2)", "Name (3)", ...)
    2. Rows after it are data rows; fully empty rows are skipped
    3. NaN -> None (absent), Timestamp -> ISO string
    """
    if df.shape[0] == 0:
        return Sheet.create(sheet_name, [], [])
    if df.shape[0] <= header_row:
        raise SheetHeaderError(f"sheet '{sheet_name}' lacks header row {header_row + 1}")
    headers: list[str] = []
    seen: set[str] = set()
    for i, raw in enumerate(df.iloc[header_row].tolist()):
        value = _cell(raw)
        text = str(value).strip() if value is not None else ""
        base = text or f"Column {i + 1}"
        name, n = base, 2
        while name in seen:
            name = f"{base} ({n})"
            n += 1
        seen.add(name)
        headers.append(name)

    rows: list[dict[str, Any]] = []
    for _, raw in df.iloc[header_row + 1:].iterrows():
        values = [_cell(v) for v in raw.tolist()]
        if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
            continue
        rows.append(dict(zip(headers, values, strict=False)))
    return Sheet.create(sheet_name, headers, rows)


def read_workbook(path: Path | str, *, header_row: int = 0, target_sheets: Iterable[str] | None = None) -> list[Sheet]:
    """Read every sheet of an Excel workbook (or a single CSV) in file order.

    Raises:
        WorkbookReadError: file missing, unsupported type, or unreadable
    """
    p = Path(path)
    if not p.exists():
        raise WorkbookReadError(f"workbook not found: {p}")
    suffix = p.suffix.lower()
    wanted = set(target_sheets) if target_sheets is not None else None

    try:
        if suffix == ".csv":
            # CSV は 1 シート扱い (シート名 = ファイル名の stem)
            if wanted is not None and p.stem not in wanted:
                return []
            df = pd.read_csv(p, header=None, dtype=object, keep_default_na=False, na_values=[""])
            return [frame_to_sheet(df, p.stem, header_row)]
        if suffix not in _EXCEL_SUFFIXES:
            raise WorkbookReadError(f"unsupported workbook type: {p.suffix}")
        sheets: list[Sheet] = []
        with pd.ExcelFile(p) as xls:
            for name in xls.sheet_names:
                if wanted is not None and str(name) not in wanted:
                    continue
                df = xls.parse(name, header=None, keep_default_na=False, na_values=[""])
                sheets.append(frame_to_sheet(df, str(name), header_row))
        return sheets
    except WorkbookReadError:
        raise
    except (OSError, ValueError, KeyError, zipfile.BadZipFile) as e:
        raise WorkbookReadError(f"failed to read workbook {p.name}: {e}") from e
