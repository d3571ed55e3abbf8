"""
Profiled runs of the query operations against a real table file.

Usage (example from CLI):
    from stockdbf.bench import run_benchmarks

    results = run_benchmarks(repository, ["count", "first_page"], runs=3)

Each operation runs under `profile_block`; with more than one run the
per-operation results are aggregated into median/mean/stddev/min/max.
"""

from __future__ import annotations

import statistics
from typing import Callable, Dict, Iterable, List, Optional

from stockdbf.repository import StockRepository
from stockdbf.utils.logging import get_logger
from stockdbf.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)

Operation = Callable[[], int]


def _summary(values: List[float], decimals: int = 4) -> dict:
    return {
        "median": round(statistics.median(values), decimals),
        "mean": round(statistics.mean(values), decimals),
        "stddev": round(statistics.stdev(values), decimals) if len(values) > 1 else 0.0,
        "min": round(min(values), decimals),
        "max": round(max(values), decimals),
    }


def _aggregate_runs(run_results: List[dict]) -> dict:
    """Collapse several runs of one operation into summary statistics."""
    aggregated = {
        "duration_seconds": _summary([r["duration_seconds"] for r in run_results]),
        "rows": run_results[0]["rows"],
    }
    cpu = [r["cpu_percent"] for r in run_results if r.get("cpu_percent") is not None]
    if cpu:
        aggregated["cpu_percent"] = _summary(cpu, decimals=1)
    rss = [r["peak_rss_bytes"] for r in run_results if r.get("peak_rss_bytes")]
    if rss:
        aggregated["peak_rss_bytes"] = {k: int(v) for k, v in _summary(rss, decimals=0).items()}
    traced = [r["peak_traced_bytes"] for r in run_results if r.get("peak_traced_bytes") is not None]
    if traced:
        aggregated["peak_traced_bytes"] = {k: int(v) for k, v in _summary(traced, decimals=0).items()}
    return aggregated


def operation_registry(
    repository: StockRepository, page_size: int = 100, barcode: Optional[str] = None
) -> Dict[str, Operation]:
    """Named operations; each returns the number of rows it produced or counted."""

    def last_page() -> int:
        total = repository.total_count()
        page = max(1, -(-total // page_size))
        return len(repository.list_page(page, page_size).items)

    operations: Dict[str, Operation] = {
        "count": lambda: repository.total_count(),
        "cached_count": lambda: repository.list_page(1, page_size).total_count,
        "first_page": lambda: len(repository.list_page(1, page_size).items),
        "last_page": last_page,
    }
    if barcode:
        operations["filtered_page"] = lambda: len(repository.list_page(1, page_size, barcode).items)
        operations["search"] = lambda: len(repository.search_by_barcode(barcode))
        operations["filtered_count"] = lambda: repository.total_count(barcode)
    return operations


def _merge_result(name: str, rows: int, stats: ProfileStats, error: Optional[str] = None) -> dict:
    merged = {
        "operation": name,
        "rows": rows,
        "duration_seconds": round(stats.duration_seconds, 4),
        "peak_rss_bytes": stats.peak_rss_bytes,
        "cpu_percent": round(stats.cpu_percent, 1) if stats.cpu_percent is not None else None,
    }
    if stats.peak_traced_bytes is not None:
        merged["peak_traced_bytes"] = stats.peak_traced_bytes
    if error is not None:
        merged["error"] = error
    return merged


def _profiled_execute(name: str, operation: Operation, trace_allocations: bool = False) -> dict:
    log.info(f"[OPERATION START] {name}", extra={"operation": name})
    error = None
    rows = 0
    with profile_block(name, enable_tracemalloc=trace_allocations) as stats:
        try:
            rows = operation()
        except Exception as exc:  # noqa: BLE001 - recorded in the result row
            log.exception(f"[OPERATION FAILED] {name}", extra={"operation": name})
            error = str(exc)
    return _merge_result(name, rows, stats, error)


def run_benchmarks(
    repository: StockRepository,
    operation_names: Optional[Iterable[str]] = None,
    runs: int = 1,
    page_size: int = 100,
    barcode: Optional[str] = None,
    trace_allocations: bool = False,
) -> List[dict]:
    """
    Run the selected operations (all by default) `runs` times each.

    With `trace_allocations`, each result also carries `peak_traced_bytes`.

    Raises
    ------
    ValueError
        For an operation name that is not registered.
    """
    registry = operation_registry(repository, page_size=page_size, barcode=barcode)
    names = list(operation_names) if operation_names else list(registry)
    unknown = [n for n in names if n not in registry]
    if unknown:
        raise ValueError(f"Unknown operation(s) {unknown}. Available: {', '.join(registry)}")

    results: List[dict] = []
    for name in names:
        run_results = []
        for run in range(1, runs + 1):
            result = _profiled_execute(name, registry[name], trace_allocations)
            result["run"] = run
            run_results.append(result)
        if runs > 1:
            aggregated = _aggregate_runs(run_results)
            aggregated.update(operation=name, runs=runs, individual_runs=run_results)
            results.append(aggregated)
        else:
            results.extend(run_results)
    return results


__all__ = ["operation_registry", "run_benchmarks"]
