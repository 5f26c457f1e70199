from __future__ import annotations

import json
import re
from pathlib import Path

from review_engine.logging.review_log import ReviewLogBuffer
from review_engine.models import ReviewStatusRecord, RowKey, RowReviewReason, RowReviewStatus

STATUS = RowReviewStatus(
    reason=RowReviewReason.RFI_REQUIRED,
    is_blocking=True,
    derived_at="2024-01-01T00:00:00.000Z",
    details="1 field(s) require additional information",
)


def test_default_path_in_logs_dir(temp_workdir: Path):
    buffer = ReviewLogBuffer()
    assert buffer.file_path.parent == Path("logs")
    assert re.fullmatch(r"review-status-\d{8}-\d{6}\.log", buffer.file_path.name)


def test_flush_writes_json_lines(temp_workdir: Path):
    buffer = ReviewLogBuffer(logs_dir=temp_workdir / "out")
    buffer.extend({RowKey("S", 0): STATUS, RowKey("S", 1): STATUS})
    buffer.append(ReviewStatusRecord.create("T", 4, STATUS))
    assert len(buffer) == 3
    path = buffer.flush()
    assert len(buffer) == 0

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    first = json.loads(lines[0])
    assert first == {
        "sheet": "S",
        "row": 0,
        "reason": "rfi_required",
        "is_blocking": True,
        "derived_at": "2024-01-01T00:00:00.000Z",
        "details": "1 field(s) require additional information",
    }
    assert json.loads(lines[2])["sheet"] == "T"


def test_flush_appends_and_keeps_path(temp_workdir: Path):
    target = temp_workdir / "nested" / "status.log"
    buffer = ReviewLogBuffer(target)
    buffer.extend([(RowKey("S", 0), STATUS)])
    assert buffer.flush() == target
    buffer.extend([(RowKey("S", 1), STATUS)])
    assert buffer.flush() == target
    assert len(target.read_text(encoding="utf-8").splitlines()) == 2


def test_empty_flush_creates_no_file(temp_workdir: Path):
    target = temp_workdir / "empty.log"
    assert ReviewLogBuffer(target).flush() == target
    assert not target.exists()


def test_non_ascii_sheet_names_are_kept(temp_workdir: Path):
    buffer = ReviewLogBuffer(temp_workdir / "u.log")
    buffer.extend({RowKey("契約", 0): STATUS})
    path = buffer.flush()
    assert '"sheet": "契約"' in path.read_text(encoding="utf-8")
