#!/usr/bin/env python3
"""Synthetic contract review workbook generator (performance runs).

Generates an .xlsx whose sheets look like extracted contract data:
- Column 1: file identifier
- Column 2: contract URL (a share of them malformed)
- Columns 3+: extracted fields with injected issues (values outside the
  allowed list, blanks in always-filled fields, NA tokens, blacklisted names)

Optionally writes a matching config/engine.yml so the CLI flags the
injected issues:

  python scripts/gen_review_dataset.py data/review.xlsx --rows 20000 --config-out config/engine.yml
  python -m review_engine.cli data/review.xlsx
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import yaml

STATES = ["CA", "NY", "TX", "WA", "IL", "FL"]
CONTRACT_TYPES = ["Master Agreement", "Amendment", "Statement of Work", "NDA", "Purchase Order"]
PAYMENT_TERMS = ["Net 30", "Net 45", "Net 60", "Due on Receipt"]
PARTIES = ["Globex LLC", "Initech Inc", "Umbrella Corp", "Stark Industries", "Wayne Enterprises", "Acme Holdings"]
BLACKLISTED_PARTY = "Acme Holdings"


def generate_review_frame(rows: int, seed: int = 42, issue_rate: float = 0.05) -> pd.DataFrame:
    """Generate one sheet of contract rows with injected issues.

    Args:
        rows: Number of data rows
        seed: Random seed for reproducible data
        issue_rate: Share of cells receiving an injected issue per issue type

    Returns:
        DataFrame whose columns are the sheet headers
    """
    np.random.seed(seed)

    files = [f"contract_{i:06d}.pdf" for i in range(1, rows + 1)]
    urls = [f"https://files.example.com/contracts/{name}" for name in files]
    bad_url = np.random.random(rows) < issue_rate
    for i in np.flatnonzero(bad_url):
        urls[i] = f"ftp://files.example.com/{files[i]}"

    state = np.random.choice(STATES, rows).tolist()
    invalid_state = np.random.random(rows) < issue_rate
    for i in np.flatnonzero(invalid_state):
        state[i] = "ZZ"

    contract_type: list[Any] = np.random.choice(CONTRACT_TYPES, rows).tolist()
    missing_type = np.random.random(rows) < issue_rate / 2
    for i in np.flatnonzero(missing_type):
        contract_type[i] = None

    terms: list[Any] = np.random.choice(PAYMENT_TERMS, rows).tolist()
    na_terms = np.random.random(rows) < issue_rate
    for i in np.flatnonzero(na_terms):
        terms[i] = "N/A"

    parties = np.random.choice(PARTIES[:-1], rows).tolist()
    blacklisted = np.random.random(rows) < issue_rate / 2
    for i in np.flatnonzero(blacklisted):
        parties[i] = BLACKLISTED_PARTY

    amounts = np.round(np.random.uniform(1_000, 500_000, rows), 2).tolist()

    return pd.DataFrame({
        "File": files,
        "Contract URL": urls,
        "Party Name": parties,
        "State": state,
        "Contract Type": contract_type,
        "Payment Terms": terms,
        "Contract Amount": amounts,
    })


def build_config() -> dict[str, Any]:
    """Config matching the generated columns (glossary + blacklist)."""
    return {
        "thresholds": {"min_rows_for_fill_rate": 10, "fill_rate_threshold": 0.9},
        "glossary": {
            "*": [
                {"field_key": "state", "label": "State", "allowed_values": STATES},
                {"field_key": "contract_type", "allowed_values": CONTRACT_TYPES},
                {"field_key": "payment_terms", "allowed_values": PAYMENT_TERMS},
            ],
        },
        "blacklist": [
            {
                "id": "bl-acme",
                "value": BLACKLISTED_PARTY,
                "type": "name",
                "match_mode": "exact",
                "scope": "field_specific",
                "fields": ["Party Name"],
            },
        ],
    }


def create_workbook(output_path: Path, rows: int, sheets: list[str], seed: int = 42, issue_rate: float = 0.05) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        for offset, sheet_name in enumerate(sheets):
            df = generate_review_frame(rows, seed + offset, issue_rate)
            df.to_excel(writer, sheet_name=sheet_name, index=False)

    print(f"Created workbook: {output_path}")
    print(f"  Sheets: {len(sheets)} ({', '.join(sheets)})")
    print(f"  Rows per sheet: {rows}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a synthetic contract review workbook")
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=10_000, help="Data rows per sheet (default: 10,000)")
    parser.add_argument("--sheets", nargs="+", default=["Contracts"], help="Sheet names (default: Contracts)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--issue-rate", type=float, default=0.05, help="Injected issue share (default: 0.05)")
    parser.add_argument("--config-out", type=Path, default=None, help="Also write a matching engine.yml here")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be generated without creating files")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.issue_rate <= 1:
        print("Error: --issue-rate must be within [0, 1]", file=sys.stderr)
        return 1

    print("Dataset generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Sheets: {len(args.sheets)} ({', '.join(args.sheets)})")
    print(f"  Rows per sheet: {args.rows:,}")
    print(f"  Issue rate: {args.issue_rate}")
    if args.dry_run:
        print("\n[DRY RUN] Would generate files but not creating them.")
        return 0

    try:
        create_workbook(args.output, args.rows, args.sheets, args.seed, args.issue_rate)
        if args.config_out is not None:
            args.config_out.parent.mkdir(parents=True, exist_ok=True)
            args.config_out.write_text(yaml.safe_dump(build_config(), sort_keys=False), encoding="utf-8")
            print(f"Created config: {args.config_out}")
    except OSError as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
