from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, SignalsError, load_config, load_signals
from ..excel.reader import WorkbookReadError, read_workbook
from ..logging.init import log_summary, setup_logging
from ..logging.review_log import ReviewLogBuffer
from ..models.sheet import Sheet
from ..services.pipeline import evaluate_dataset
from ..services.progress import ProgressTracker
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- load .env (may set REVIEW_ENGINE_CONFIG)
- load YAML config, workbook and optional signals JSON
- evaluate every sheet (tqdm bar on TTY)
- print one SUMMARY line per sheet, optionally write the status log

Exit codes: 0 = no blocking rows, 2 = blocking rows pending, 1 = fatal.
"""

__all__ = [
    "EXIT_OK",
    "EXIT_FATAL",
    "EXIT_BLOCKING",
    "main",
]

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_BLOCKING = 2

_INSPECT_ROWS = 3


def _load_env_file(path: Path) -> None:
    """Load .env via python-dotenv (existing environment variables win)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="review-engine",
        description="Derive row review states for a contract data workbook",
    )
    p.add_argument("workbook", type=Path, help="Workbook to evaluate (.xlsx or .csv)")
    p.add_argument("--config", type=Path, default=None,
                   help="Engine config YAML (default: $REVIEW_ENGINE_CONFIG or config/engine.yml)")
    p.add_argument("--signals", type=Path, default=None,
                   help="Signals JSON (row/field statuses, RFI comments, modification history, preflight)")
    p.add_argument("--sheet", action="append", default=None, dest="sheets",
                   help="Only evaluate this sheet (repeatable)")
    p.add_argument("--status-log", nargs="?", const="", default=None, metavar="PATH",
                   help="Write derived row statuses as JSON Lines (default path: logs/review-status-*.log)")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet headers & first rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _inspect_data(sheets: list[Sheet]) -> int:
    for sheet in sheets:
        print(f"SHEET: {sheet.name} rows={sheet.row_count} headers={list(sheet.headers)}")
        for row_index in range(min(_INSPECT_ROWS, sheet.row_count)):
            sample = {h: sheet.cell(row_index, h).as_text() for h in sheet.headers}
            print(f"    row[{row_index}]= {sample}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    # None のときのみ sys.argv を読む (テストからの main([...]) 呼び出し対策)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"))

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        sheets = read_workbook(args.workbook, header_row=cfg.header_row, target_sheets=args.sheets)
    except WorkbookReadError as e:
        logger.error(f"workbook: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(sheets)

    try:
        signals_file = load_signals(args.signals)
    except SignalsError as e:
        logger.error(f"signals: {e}")
        return EXIT_FATAL

    if not sheets:
        logger.warning(f"no sheets to evaluate in {args.workbook}")
    logger.info(f"Evaluating {len(sheets)} sheet(s) from: {args.workbook}")

    with ProgressTracker(len(sheets)) as progress:
        snapshot = evaluate_dataset(
            sheets,
            signals_file.signals,
            cfg,
            preflight=signals_file.preflight,
            progress=progress,
        )

    logger.info(
        f"anomaly_cells={len(snapshot.anomalies)} rows={len(snapshot.review_statuses)} "
        f"elapsed_sec={snapshot.elapsed_seconds:.3f}"
    )

    for sheet in snapshot.sheets:
        line = render_summary_line(sheet.name, snapshot.analytics[sheet.name])
        # log_summary が "SUMMARY " を付与するため除去
        log_summary(line[len("SUMMARY "):])

    if args.status_log is not None:
        buffer = ReviewLogBuffer(args.status_log or None)
        buffer.extend(snapshot.review_statuses)
        try:
            written = buffer.flush()
        except OSError as e:
            logger.error(f"status log: {e}")
            return EXIT_FATAL
        logger.info(f"review status log: {written}")

    if snapshot.has_blocking:
        return EXIT_BLOCKING
    return EXIT_OK
