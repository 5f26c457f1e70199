from __future__ import annotations

import re

from ..models.analytics import SheetAnalytics

"""Summary line rendering service.

One SUMMARY line per sheet, fixed key order:

SUMMARY sheet=<name> rows=<n> completed=<n> progress=<p>% attention=<n>
blocking=<n> verified=<v>/<t>
"""

__all__ = [
    "render_summary_line",
]

_NEEDS_QUOTES_RE = re.compile(r'[\s"=]')


def _format_sheet_name(name: str) -> str:
    if name and not _NEEDS_QUOTES_RE.search(name):
        return name
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_summary_line(sheet_name: str, analytics: SheetAnalytics) -> str:
    """Render a SUMMARY line for one sheet.

    Args:
        sheet_name: sheet name (double-quoted when it contains whitespace,
            quotes or "=", or is empty)
        analytics: SheetAnalytics computed with review statuses, so that
            pending_review_count holds the blocking row count

    Returns:
        Formatted SUMMARY line string

    Examples:
        >>> render_summary_line("Contracts", SheetAnalytics(total_rows=4, completed_rows=1,
        ...     progress_percent=25, needs_attention_row_count=2, pending_review_count=2,
        ...     verified_cell_count=3, total_editable_cells=8))
        'SUMMARY sheet=Contracts rows=4 completed=1 progress=25% attention=2 blocking=2 verified=3/8'
    """
    return (
        f"SUMMARY sheet={_format_sheet_name(sheet_name)} "
        f"rows={analytics.total_rows} "
        f"completed={analytics.completed_rows} "
        f"progress={analytics.progress_percent}% "
        f"attention={analytics.needs_attention_row_count} "
        f"blocking={analytics.pending_review_count} "
        f"verified={analytics.verified_cell_count}/{analytics.total_editable_cells}"
    )
