from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from stockdbf.cache import CountCache

TTL = 900.0
WINDOW = 120.0
PATH = "/data/STOC.DBF"


class Counter:
    """Scan stand-in returning queued values and recording calls."""

    def __init__(self, *values: int, gate: threading.Event | None = None) -> None:
        self.values = list(values)
        self.calls = 0
        self.gate = gate
        self._lock = threading.Lock()

    def __call__(self, path: str) -> int:
        if self.gate is not None:
            self.gate.wait(timeout=5)
        with self._lock:
            self.calls += 1
            value = self.values.pop(0) if len(self.values) > 1 else self.values[0]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def make_cache(fake_clock):
    caches = []

    def _make(counter) -> CountCache:
        cache = CountCache(counter, ttl_seconds=TTL, refresh_window_seconds=WINDOW, clock=fake_clock)
        caches.append(cache)
        return cache

    yield _make
    for cache in caches:
        cache.close()


def test_valid_entry_is_served_without_rescanning(make_cache, fake_clock) -> None:
    counter = Counter(10, 20)
    cache = make_cache(counter)

    assert cache.get(PATH) == 10
    fake_clock.advance(60)
    assert cache.get(PATH) == 10

    assert cache.scan_count == 1
    assert counter.calls == 1


def test_entries_are_keyed_by_path(make_cache) -> None:
    cache = make_cache(Counter(1, 2))

    assert cache.get("a.dbf") == 1
    assert cache.get("b.dbf") == 2
    assert cache.scan_count == 2


def test_near_expiry_serves_stale_and_refreshes_in_background(make_cache, fake_clock) -> None:
    cache = make_cache(Counter(10, 25))
    cache.get(PATH)

    fake_clock.advance(TTL - WINDOW / 2)
    assert cache.get(PATH) == 10
    assert cache.wait_for_refresh(timeout=5)

    assert cache.scan_count == 2
    snapshot = cache.snapshot(PATH)
    assert snapshot.count == 25
    assert snapshot.expires_at == fake_clock() + TTL
    assert cache.get(PATH) == 25


def test_only_one_background_refresh_in_flight(make_cache, fake_clock) -> None:
    gate = threading.Event()
    counter = Counter(10, 11)
    cache = make_cache(counter)
    cache.get(PATH)

    counter.gate = gate
    fake_clock.advance(TTL - 1)
    for _ in range(5):
        assert cache.get(PATH) == 10
    gate.set()
    assert cache.wait_for_refresh(timeout=5)

    assert counter.calls == 2


def test_expired_entry_blocks_on_synchronous_recount(make_cache, fake_clock) -> None:
    cache = make_cache(Counter(10, 30))
    cache.get(PATH)

    fake_clock.advance(TTL)
    assert cache.get(PATH) == 30
    assert cache.scan_count == 2


def test_concurrent_readers_trigger_a_single_scan(make_cache) -> None:
    gate = threading.Event()
    counter = Counter(42, gate=gate)
    cache = make_cache(counter)
    readers = 8

    with ThreadPoolExecutor(max_workers=readers) as pool:
        futures = [pool.submit(cache.get, PATH) for _ in range(readers)]
        time.sleep(0.05)
        gate.set()
        results = [f.result(timeout=5) for f in futures]

    assert results == [42] * readers
    assert cache.scan_count == 1
    assert counter.calls == 1


def test_failed_background_refresh_keeps_previous_value(make_cache, fake_clock) -> None:
    counter = Counter(10, OSError("file locked"), 12)
    cache = make_cache(counter)
    cache.get(PATH)
    original = cache.snapshot(PATH)

    fake_clock.advance(TTL - 10)
    assert cache.get(PATH) == 10
    assert cache.wait_for_refresh(timeout=5)
    assert cache.snapshot(PATH) == original

    # The next near-expiry read simply tries again.
    assert cache.get(PATH) == 10
    assert cache.wait_for_refresh(timeout=5)
    assert cache.snapshot(PATH).count == 12


def test_invalidate_forces_rescan(make_cache) -> None:
    cache = make_cache(Counter(1, 2))
    cache.get(PATH)

    cache.invalidate(PATH)

    assert cache.snapshot(PATH) is None
    assert cache.get(PATH) == 2


def test_expired_reader_waits_for_in_flight_refresh(make_cache, fake_clock) -> None:
    gate = threading.Event()
    counter = Counter(10, 25)
    cache = make_cache(counter)
    cache.get(PATH)

    counter.gate = gate
    fake_clock.advance(TTL - 1)
    assert cache.get(PATH) == 10
    # The entry expires while the refresh is still blocked in its scan.
    fake_clock.advance(2)
    with ThreadPoolExecutor(max_workers=1) as pool:
        reader = pool.submit(cache.get, PATH)
        time.sleep(0.05)
        gate.set()
        assert reader.result(timeout=5) == 25

    assert counter.calls == 2
    assert cache.scan_count == 2
