from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from pathlib import Path

from ..models.keys import RowKey
from ..models.review_status import ReviewStatusRecord, RowReviewStatus

"""Review status log buffering.

- JSON Lines, fixed schema (no extra keys): sheet, row, reason, is_blocking,
  derived_at, details
- one file per run: `logs/review-status-YYYYMMDD-HHMMSS.log` (UTC) unless an
  explicit path is given
- records are buffered and written in one flush
"""

__all__ = [
    "ReviewStatusRecord",
    "ReviewLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ReviewLogBuffer:
    """In-memory buffer of derived row statuses. flush() writes JSON Lines.

    シリアル実行前提 (スレッド安全性不要)
    """

    def __init__(self, path: Path | str | None = None, *, logs_dir: Path | str | None = None) -> None:
        self._records: list[ReviewStatusRecord] = []
        self._file_path: Path | None = Path(path) if path is not None else None
        self._logs_dir = Path(logs_dir) if logs_dir is not None else LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"review-status-{stamp}.log"
        return self._file_path

    def append(self, record: ReviewStatusRecord) -> None:
        self._records.append(record)

    def extend(self, statuses: Mapping[RowKey, RowReviewStatus] | Iterable[tuple[RowKey, RowReviewStatus]]) -> None:
        items = statuses.items() if isinstance(statuses, Mapping) else statuses
        for key, status in items:
            self._records.append(ReviewStatusRecord.create(key[0], key[1], status))

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path:
        """Append buffered records to the log file and clear the buffer.

        An empty buffer only fixes the path; no file is created.
        """
        fp = self.file_path
        if not self._records:
            return fp
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
