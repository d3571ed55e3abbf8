from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console

from stockdbf.bench import run_benchmarks
from stockdbf.config import get_settings
from stockdbf.errors import DbfError, NoInputFilesError
from stockdbf.reporter import print_bench_results, print_export_summary, print_page, print_records
from stockdbf.repository import StockRepository
from stockdbf.schema_export import export_schema
from stockdbf.utils.logging import configure_logging

app = typer.Typer(help="Read-only access to the legacy STOC table and its schema.")


def _repository() -> StockRepository:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    return StockRepository(settings)


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Turn table decoding failures into a message and exit code 1."""
    try:
        yield
    except DbfError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    path = settings.table_path
    typer.echo(
        f"table={path} exists={path.exists()} index={settings.index_path} | "
        f"code_page={settings.code_page} cache_ttl={settings.cache_ttl_minutes}m "
        f"max_search={settings.max_search_results} env={settings.app_env}"
    )


@app.command("export-schema")
def export_schema_command(
    patterns: Optional[List[str]] = typer.Argument(
        None,
        help="Table files or wildcard patterns (default: <DBF_PATH>/*.DBF).",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="SQL file to write (default from settings).",
    ),
) -> None:
    """
    Export CREATE TABLE / CREATE INDEX statements for one or more table files.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    if not patterns:
        patterns = [str(settings.resolved_dbf_path / f"*{settings.table_extension}")]
        typer.echo(f"Using default: {patterns[0]}")

    try:
        result = export_schema(patterns, output or Path(settings.schema_output))
    except NoInputFilesError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    except OSError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    print_export_summary(result)


@app.command("list")
def list_items(
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number (1-based)."),
    size: int = typer.Option(10, "--size", "-n", min=1, help="Records per page."),
    barcode: Optional[str] = typer.Option(None, "--barcode", "-b", help="Barcode substring filter."),
) -> None:
    """
    Print one page of stock records.
    """
    with _reported_errors(), _repository() as repository:
        print_page(repository.list_page(page, size, barcode))


@app.command()
def get(code: int = typer.Argument(..., help="Item code.")) -> None:
    """
    Print every field of the record with the given code as JSON.
    """
    with _reported_errors(), _repository() as repository:
        record = repository.get_by_code(code)
    if record is None:
        typer.echo(f"Stock item with code {code} not found", err=True)
        raise typer.Exit(code=1)
    typer.echo(record.model_dump_json(indent=2))


@app.command()
def search(
    barcode: str = typer.Argument(..., help="Barcode substring."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Maximum results."),
) -> None:
    """
    Print records whose barcode contains the given substring.
    """
    with _reported_errors(), _repository() as repository:
        records = repository.search_by_barcode(barcode, limit)
    print_records(records, f"Barcode search: {barcode}")


@app.command()
def count(
    barcode: Optional[str] = typer.Option(None, "--barcode", "-b", help="Barcode substring filter."),
) -> None:
    """
    Print the number of live records (fresh scan).
    """
    with _reported_errors(), _repository() as repository:
        typer.echo(str(repository.total_count(barcode)))


@app.command()
def bench(
    operation: Optional[List[str]] = typer.Option(
        None,
        "--operation",
        "-o",
        help="Operation(s) to profile (count, cached_count, first_page, last_page, "
        "filtered_page, search, filtered_count). Default: all.",
    ),
    runs: int = typer.Option(1, "--runs", "-r", min=1, help="Measurement runs per operation."),
    page_size: int = typer.Option(100, "--page-size", min=1),
    barcode: Optional[str] = typer.Option(None, "--barcode", "-b"),
    trace_alloc: bool = typer.Option(
        False, "--trace-alloc", help="Also report peak Python allocations (slower)."
    ),
) -> None:
    """
    Profile the query operations against the configured table file.
    """
    with _reported_errors(), _repository() as repository:
        try:
            results = run_benchmarks(
                repository,
                operation,
                runs=runs,
                page_size=page_size,
                barcode=barcode,
                trace_allocations=trace_alloc,
            )
        except ValueError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=2)
    print_bench_results(results, Console())


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
