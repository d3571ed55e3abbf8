from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from stockdbf.domain.models import Page, StockRecord
from stockdbf.schema_export import ExportResult


def _records_table(records: Sequence[StockRecord], title: str, caption: Optional[str] = None) -> Table:
    table = Table(title=title, box=box.ROUNDED, caption=caption)
    table.add_column("Code", justify="right", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Category", style="blue")
    table.add_column("Barcode", style="magenta", no_wrap=True)
    table.add_column("Quantity", justify="right", style="green")
    table.add_column("Price", justify="right", style="bold green")
    table.add_column("Unit")
    table.add_column("Warehouse", justify="right", style="yellow")

    for record in records:
        table.add_row(
            str(record.code),
            record.name or "",
            record.category or "",
            record.barcode or "",
            f"{record.quantity:,.3f}",
            f"{record.price:,.2f}",
            record.unit or "",
            str(record.warehouse),
        )
    return table


def print_page(page: Page[StockRecord], console: Optional[Console] = None) -> None:
    """Render one listing page with its pagination footer."""
    console = console or Console()
    caption = (
        f"Page {page.page_number}/{page.total_pages} │ "
        f"{page.total_count:,} records │ page size {page.page_size}"
    )
    if not page.items:
        console.print(f"[yellow]No records on this page.[/yellow] [dim]{caption}[/dim]")
        return
    console.print(_records_table(page.items, "Stock", caption))


def print_records(records: Sequence[StockRecord], title: str, console: Optional[Console] = None) -> None:
    console = console or Console()
    if not records:
        console.print("[yellow]No matching records.[/yellow]")
        return
    console.print(_records_table(records, title, f"{len(records)} result(s)"))


def _megabytes(value: Optional[int]) -> str:
    return f"{value / (1024 * 1024):.2f}" if value else "N/A"


def print_bench_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render profiled operation results, single-run or aggregated.
    """
    console = console or Console()
    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    is_aggregated = isinstance(results[0].get("runs"), int) and results[0]["runs"] > 1
    table = Table(title="Query Benchmark", box=box.ROUNDED)
    table.add_column("Operation", style="cyan", no_wrap=True)
    table.add_column("Rows", justify="right", style="magenta")
    if is_aggregated:
        table.add_column("Runs", justify="right", style="blue")
        table.add_column("Duration (s)\n[dim](Median ± StdDev)[/dim]", justify="right", style="green")
    else:
        table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    traced = any("peak_traced_bytes" in res for res in results)
    if traced:
        table.add_column("Traced Peak (MB)", justify="right", style="yellow")
    table.add_column("CPU %", justify="right", style="red")

    for res in results:
        name = res.get("operation", "Unknown")
        rows = f"{res.get('rows', 0):,}"
        if is_aggregated:
            duration = res["duration_seconds"]
            mem = res.get("peak_rss_bytes", {}).get("median")
            traced_bytes = res.get("peak_traced_bytes", {}).get("median")
            cpu = res.get("cpu_percent", {}).get("median")
            cells = [
                str(res.get("runs", 0)),
                f"{duration['median']:.3f} ± {duration['stddev']:.3f}",
            ]
        else:
            mem = res.get("peak_rss_bytes")
            traced_bytes = res.get("peak_traced_bytes")
            cpu = res.get("cpu_percent")
            cells = [f"{res.get('duration_seconds', 0.0):.3f}"]
            if res.get("error"):
                name = f"{name} [red](failed)[/red]"
        memory = [_megabytes(mem)]
        if traced:
            memory.append(_megabytes(traced_bytes))
        cpu_str = f"{cpu:.1f}" if cpu is not None else "N/A"
        table.add_row(name, rows, *cells, *memory, cpu_str)

    console.print(table)


def print_export_summary(result: ExportResult, console: Optional[Console] = None) -> None:
    console = console or Console()
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    table = Table(title=f"Schema exported to {result.output}", box=box.ROUNDED)
    table.add_column("Table", style="cyan")
    table.add_column("Indexes", justify="right", style="magenta")
    for name in result.tables:
        table.add_row(name, str(result.index_counts.get(name, 0)))
    console.print(table)
    console.print(f"Total tables processed: {len(result.tables)}")
