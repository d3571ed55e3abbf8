"""
Time-windowed cache of live-record counts, keyed by table file path.

Lifecycle of one entry:

    Empty ──sync scan──▶ Valid ──(now + window > expires_at)──▶ NearExpiry
      ▲                    ▲                                        │
      │                    └──────── background refresh ◀───────────┘
      └── Expired (now >= expires_at): readers block on one sync recount

Readers never block while the entry is valid; a near-expiry entry is served
stale while a single background refresh runs. Recounts triggered by expired
readers are serialized so concurrent readers cause one scan. A failed
background refresh leaves the previous value in place; the next reader simply
triggers the same logic again.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from stockdbf.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_REFRESH_WINDOW_SECONDS = 2 * 60


@dataclass(frozen=True)
class CachedCount:
    count: int
    expires_at: float


class CountCache:
    """
    Cached total record count per file path with proactive refresh.

    Parameters
    ----------
    counter : Callable[[str], int]
        Performs the full scan and returns the live-record count of a file.
    ttl_seconds : float
        Validity of a computed count.
    refresh_window_seconds : float
        How long before expiry a background refresh is started.
    clock : Callable[[], float]
        Monotonic time source, injectable for tests.
    executor : ThreadPoolExecutor, optional
        Runs background refreshes. A single-worker executor is created lazily
        (and owned) when omitted.
    """

    def __init__(
        self,
        counter: Callable[[str], int],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        refresh_window_seconds: float = DEFAULT_REFRESH_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._counter = counter
        self.ttl_seconds = ttl_seconds
        self.refresh_window_seconds = refresh_window_seconds
        self._clock = clock
        self._executor = executor
        self._owns_executor = executor is None

        self._lock = threading.Lock()
        self._recount_lock = threading.Lock()
        self._entries: Dict[str, CachedCount] = {}
        self._refreshes: Dict[str, Future] = {}
        self.scan_count = 0

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="count-refresh")
        return self._executor

    def _refresh_running(self, path: str) -> bool:
        future = self._refreshes.get(path)
        return future is not None and not future.done()

    def get(self, path: str) -> int:
        """Return the cached count for `path`, scanning when empty or expired."""
        with self._lock:
            entry = self._entries.get(path)
            now = self._clock()
            if entry is not None and now < entry.expires_at:
                if now + self.refresh_window_seconds > entry.expires_at and not self._refresh_running(path):
                    log.debug("Count near expiry, refreshing in background", extra={"path": path})
                    self._refreshes[path] = self._get_executor().submit(self._refresh_in_background, path)
                return entry.count

        with self._recount_lock:
            with self._lock:
                in_flight = self._refreshes.get(path)
            # A refresh that outlived the entry finishes before anyone rescans.
            if in_flight is not None and not in_flight.done():
                wait([in_flight])
            with self._lock:
                entry = self._entries.get(path)
                if entry is not None and self._clock() < entry.expires_at:
                    return entry.count
            return self._recount(path)

    def _recount(self, path: str) -> int:
        with self._lock:
            self.scan_count += 1
        # The scan itself runs outside the state lock.
        count = self._counter(path)
        with self._lock:
            self._entries[path] = CachedCount(count=count, expires_at=self._clock() + self.ttl_seconds)
        log.debug("Count cached", extra={"path": path, "count": count})
        return count

    def _refresh_in_background(self, path: str) -> None:
        try:
            self._recount(path)
        except Exception as exc:  # noqa: BLE001 - stale value stays authoritative
            log.debug("Background count refresh failed", extra={"path": path, "error": str(exc)})

    def snapshot(self, path: str) -> Optional[CachedCount]:
        with self._lock:
            return self._entries.get(path)

    def invalidate(self, path: Optional[str] = None) -> None:
        with self._lock:
            if path is None:
                self._entries.clear()
            else:
                self._entries.pop(path, None)

    def wait_for_refresh(self, timeout: Optional[float] = None) -> bool:
        """Block until in-flight background refreshes finish; False on timeout."""
        with self._lock:
            pending = [f for f in self._refreshes.values() if not f.done()]
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


__all__ = ["CachedCount", "CountCache", "DEFAULT_TTL_SECONDS", "DEFAULT_REFRESH_WINDOW_SECONDS"]
