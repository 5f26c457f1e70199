from __future__ import annotations

from review_engine.models import SheetAnalytics
from review_engine.services.summary import render_summary_line


def test_render_summary_line_fixed_key_order():
    analytics = SheetAnalytics(
        total_rows=10,
        completed_rows=3,
        progress_percent=30,
        needs_attention_row_count=4,
        pending_review_count=5,
        verified_cell_count=12,
        total_editable_cells=40,
    )
    line = render_summary_line("Contracts", analytics)
    assert line == "SUMMARY sheet=Contracts rows=10 completed=3 progress=30% attention=4 blocking=5 verified=12/40"


def test_sheet_names_with_spaces_are_quoted():
    line = render_summary_line("Master Agreements", SheetAnalytics())
    assert line.startswith('SUMMARY sheet="Master Agreements" rows=0 ')


def test_quotes_are_escaped():
    assert 'sheet="a\\"b"' in render_summary_line('a"b', SheetAnalytics())
    assert 'sheet="k=v"' in render_summary_line("k=v", SheetAnalytics())
    assert 'sheet=""' in render_summary_line("", SheetAnalytics())


def test_empty_analytics():
    line = render_summary_line("S", SheetAnalytics())
    assert line == "SUMMARY sheet=S rows=0 completed=0 progress=0% attention=0 blocking=0 verified=0/0"
