import pytest

from stockdbf.bench import _aggregate_runs, _merge_result, operation_registry, run_benchmarks
from stockdbf.utils.profiler import ProfileStats

EXPECTED_DURATION = 2.0
EXPECTED_PEAK_RSS = 123
EXPECTED_CPU = 12.3


def test_merge_result_takes_profiler_measurements():
    stats = ProfileStats(
        label="test",
        start_ts=1.0,
        end_ts=3.0,
        duration_seconds=2.0,
        peak_rss_bytes=123,
        cpu_percent=12.34,
    )

    merged = _merge_result("count", 100, stats)

    assert merged["operation"] == "count"
    assert merged["rows"] == 100
    assert merged["duration_seconds"] == EXPECTED_DURATION
    assert merged["peak_rss_bytes"] == EXPECTED_PEAK_RSS
    assert merged["cpu_percent"] == EXPECTED_CPU
    assert "error" not in merged


def test_aggregate_runs_summarizes_durations():
    runs = [
        {"rows": 5, "duration_seconds": d, "cpu_percent": 10.0, "peak_rss_bytes": 100}
        for d in (1.0, 2.0, 3.0)
    ]

    aggregated = _aggregate_runs(runs)

    assert aggregated["rows"] == 5
    assert aggregated["duration_seconds"]["median"] == 2.0
    assert aggregated["duration_seconds"]["min"] == 1.0
    assert aggregated["duration_seconds"]["max"] == 3.0
    assert aggregated["peak_rss_bytes"]["median"] == 100


def test_registry_adds_filtered_operations_only_with_barcode(repository):
    assert set(operation_registry(repository)) == {"count", "cached_count", "first_page", "last_page"}
    assert {"filtered_page", "search", "filtered_count"} <= set(
        operation_registry(repository, barcode="594")
    )


def test_run_benchmarks_against_fixture_table(repository, write_stock_table, make_rows):
    write_stock_table(make_rows(25))

    results = run_benchmarks(repository, ["count", "last_page"], page_size=10)

    assert [r["operation"] for r in results] == ["count", "last_page"]
    assert results[0]["rows"] == 25
    assert results[1]["rows"] == 5


def test_run_benchmarks_aggregates_multiple_runs(repository, write_stock_table, make_rows):
    write_stock_table(make_rows(3))

    (result,) = run_benchmarks(repository, ["first_page"], runs=2, page_size=2)

    assert result["runs"] == 2
    assert len(result["individual_runs"]) == 2
    assert result["rows"] == 2


def test_failed_operation_is_recorded(repository, table_dir):
    (table_dir / "STOC.DBF").write_bytes(b"\x00")

    (result,) = run_benchmarks(repository, ["count"])

    assert result["rows"] == 0
    assert "error" in result


def test_unknown_operation_is_rejected(repository):
    with pytest.raises(ValueError):
        run_benchmarks(repository, ["nope"])


def test_trace_allocations_adds_traced_peak(repository, write_stock_table, make_rows):
    write_stock_table(make_rows(5))

    (result,) = run_benchmarks(repository, ["first_page"], trace_allocations=True)

    assert result["peak_traced_bytes"] > 0
