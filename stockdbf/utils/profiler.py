"""
Resource measurement for table scans.

A full scan of a large table is dominated by I/O and per-record decoding, so
the interesting numbers are wall time, peak resident memory while the scan
buffers batches, and process CPU. `profile_block` gathers all three (and,
optionally, the tracemalloc peak of Python allocations).

Usage:
    from stockdbf.utils.profiler import profile_block

    with profile_block("list_page") as stats:
        repository.list_page(1, 100)

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
import tracemalloc
from dataclasses import dataclass
from typing import Generator, Optional

import psutil


@dataclass
class ProfileStats:
    label: str
    start_ts: float = 0.0
    end_ts: float = 0.0
    duration_seconds: float = 0.0
    peak_rss_bytes: Optional[int] = None
    peak_traced_bytes: Optional[int] = None
    cpu_percent: Optional[float] = None


class _RssSampler(threading.Thread):
    """Daemon thread tracking the highest RSS seen until `stop()`."""

    def __init__(self, process: psutil.Process, interval_seconds: float) -> None:
        super().__init__(name="rss-sampler", daemon=True)
        self._process = process
        self._interval = interval_seconds
        self._stopped = threading.Event()
        self.peak = process.memory_info().rss

    def run(self) -> None:
        while not self._stopped.is_set():
            try:
                self.peak = max(self.peak, self._process.memory_info().rss)
            except psutil.Error:
                return
            self._stopped.wait(self._interval)

    def stop(self) -> int:
        self._stopped.set()
        self.join(timeout=1.0)
        return self.peak


@contextlib.contextmanager
def profile_block(
    label: str, sample_interval_ms: int = 50, enable_tracemalloc: bool = False
) -> Generator[ProfileStats, None, None]:
    """
    Profile the enclosed block and fill the yielded `ProfileStats` on exit.

    Parameters
    ----------
    label : str
        Name of the measured operation.
    sample_interval_ms : int
        RSS sampling interval; the peak is taken over all samples.
    enable_tracemalloc : bool
        Also record the peak of traced Python allocations. Tracing slows
        record decoding noticeably, so it is off unless asked for.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    sampler = _RssSampler(process, sample_interval_ms / 1000.0)

    started_tracing = enable_tracemalloc and not tracemalloc.is_tracing()
    if started_tracing:
        tracemalloc.start()
    if enable_tracemalloc:
        tracemalloc.reset_peak()

    process.cpu_percent(interval=None)  # primes the counter
    sampler.start()
    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stats.peak_rss_bytes = sampler.stop() or None
        stats.cpu_percent = process.cpu_percent(interval=None)
        if enable_tracemalloc:
            stats.peak_traced_bytes = tracemalloc.get_traced_memory()[1]
            if started_tracing:
                tracemalloc.stop()


__all__ = ["ProfileStats", "profile_block"]
