from __future__ import annotations

from decimal import Decimal
from io import StringIO
from pathlib import Path

from rich.console import Console

from stockdbf.domain.models import Page, StockRecord
from stockdbf.reporter import print_bench_results, print_export_summary, print_page, print_records
from stockdbf.schema_export import ExportResult


def _console() -> Console:
    return Console(file=StringIO(), width=200, color_system=None)


def _output(console: Console) -> str:
    return console.file.getvalue()


def test_print_page_renders_rows_and_footer():
    console = _console()
    page = Page[StockRecord](
        items=[StockRecord(code=7, name="Zahar", quantity=Decimal("1.5"), price=Decimal("4.99"))],
        total_count=21,
        page_number=2,
        page_size=10,
    )

    print_page(page, console)

    out = _output(console)
    assert "Zahar" in out
    assert "4.99" in out
    assert "Page 2/3" in out


def test_print_page_empty():
    console = _console()

    print_page(Page[StockRecord](items=[], total_count=0, page_number=4, page_size=10), console)

    assert "No records on this page." in _output(console)


def test_print_records_empty():
    console = _console()

    print_records([], "Barcode search: x", console)

    assert "No matching records." in _output(console)


def test_print_bench_results_marks_failures_and_traced_column():
    console = _console()
    results = [
        {"operation": "count", "rows": 10, "duration_seconds": 0.5, "peak_rss_bytes": 2 * 1024 * 1024,
         "cpu_percent": 50.0, "peak_traced_bytes": 1024 * 1024},
        {"operation": "search", "rows": 0, "duration_seconds": 0.1, "peak_rss_bytes": None,
         "cpu_percent": None, "error": "boom"},
    ]

    print_bench_results(results, console)

    out = _output(console)
    assert "Traced Peak (MB)" in out
    assert "2.00" in out and "1.00" in out
    assert "(failed)" in out


def test_print_export_summary_lists_warnings_and_tables():
    console = _console()
    result = ExportResult(
        output=Path("schema.sql"),
        tables=["ART", "STOC"],
        warnings=["Skipping BAD.DBF: header truncated"],
        index_counts={"STOC": 3},
    )

    print_export_summary(result, console)

    out = _output(console)
    assert "Skipping BAD.DBF" in out
    assert "STOC" in out and "ART" in out
    assert "Total tables processed: 2" in out
