"""
Query engine over the STOC table file.

Every operation is a blocking forward scan; run them on worker threads (see
`stockdbf.service`) rather than on an event loop. The repository owns two
caches:

- `OrdinalCache`: physical field name -> position, per file path, for the
  process lifetime (schemas are not migrated online).
- `CountCache`: live-record count for unfiltered listings, TTL-bound.

A missing table file is a normal state and yields empty results. A header
that cannot be decoded on an existing file raises `CorruptHeaderError`.
"""

from __future__ import annotations

import codecs
import threading
import time
from itertools import islice
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Union

from stockdbf.cache import CountCache
from stockdbf.config import Settings, get_settings
from stockdbf.dbf.header import TableSchema
from stockdbf.dbf.mapping import BARCODE_FIELD, CODE_FIELD, ordinal_map, to_full, to_summary
from stockdbf.dbf.reader import TableReader
from stockdbf.dbf.record import RecordView
from stockdbf.domain.models import Page, StockRecord
from stockdbf.utils.logging import get_logger

log = get_logger(__name__)


class OrdinalCache:
    """
    Thread-safe memo of ordinal maps keyed by file path.
    """

    def __init__(self) -> None:
        self._maps: dict[str, Mapping[str, int]] = {}
        self._lock = threading.Lock()

    def get(self, path: str, schema: TableSchema) -> Mapping[str, int]:
        with self._lock:
            ordinals = self._maps.get(path)
            if ordinals is None:
                ordinals = MappingProxyType(ordinal_map(schema))
                self._maps[path] = ordinals
                missing = sorted(name for name, pos in ordinals.items() if pos < 0)
                if missing:
                    log.debug("Fields absent from table", extra={"path": path, "missing": missing})
            return ordinals

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._maps

    def __len__(self) -> int:
        with self._lock:
            return len(self._maps)


def _has_filter(barcode: Optional[str]) -> bool:
    return barcode is not None and barcode.strip() != ""


class StockRepository:
    """
    Paginated, barcode-filterable read access to the stock table.

    Parameters
    ----------
    settings : Settings, optional
        Source of the table path, code page, cache timings and search cap.
    table_path : str | Path, optional
        Explicit table file, overriding the one derived from settings.
    count_cache : CountCache, optional
        Injected cache (tests pass one with a fake clock). Built from
        settings when omitted.
    ordinal_cache : OrdinalCache, optional
        Injected ordinal memo; a private one is created when omitted.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        table_path: Optional[Union[str, Path]] = None,
        count_cache: Optional[CountCache] = None,
        ordinal_cache: Optional[OrdinalCache] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.table_path = Path(table_path) if table_path is not None else self.settings.table_path
        # Raises LookupError for an unknown code page.
        self.encoding = codecs.lookup(self.settings.code_page).name
        self.ordinal_cache = ordinal_cache if ordinal_cache is not None else OrdinalCache()
        self.count_cache = count_cache if count_cache is not None else CountCache(
            self.count_live,
            ttl_seconds=self.settings.cache_ttl_minutes * 60,
            refresh_window_seconds=self.settings.cache_refresh_window_minutes * 60,
        )
        log.info(
            f"Table path: {self.table_path}",
            extra={"path": str(self.table_path), "exists": self.table_path.exists()},
        )

    def __enter__(self) -> "StockRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.count_cache.close()

    # ------------------------------------------------------------------
    # Scanning helpers
    # ------------------------------------------------------------------

    def _reader(self, path: Optional[Union[str, Path]] = None) -> TableReader:
        return TableReader(
            path or self.table_path,
            encoding=self.encoding,
            open_retry_attempts=self.settings.open_retry_attempts,
        )

    def _views(self, reader: TableReader) -> Iterator[RecordView]:
        ordinals = self.ordinal_cache.get(str(reader.path), reader.schema)
        return reader.records(ordinals)

    @staticmethod
    def _barcode_matches(view: RecordView, needle: str) -> bool:
        barcode = view.get_string(BARCODE_FIELD)
        return bool(barcode) and needle in barcode.upper()

    def count_live(self, path: Optional[Union[str, Path]] = None) -> int:
        """Full scan counting live records; the CountCache's counter."""
        with self._reader(path) as reader:
            return reader.count_live()

    # ------------------------------------------------------------------
    # Query API
    # ------------------------------------------------------------------

    def list_page(
        self, page_number: int, page_size: int, barcode: Optional[str] = None
    ) -> Page[StockRecord]:
        """
        Return one page of summary records, optionally filtered by a barcode
        substring (case-insensitive).

        Unfiltered listings take their total from the count cache; filtered
        listings scan the whole file to count matches and never touch it.
        """
        if page_number < 1 or page_size < 1:
            raise ValueError(f"page_number and page_size must be >= 1, got {page_number}, {page_size}")

        path = self.table_path
        if not path.exists():
            return Page[StockRecord](items=[], total_count=0, page_number=page_number, page_size=page_size)

        start = time.perf_counter()
        skip = (page_number - 1) * page_size
        items: List[StockRecord] = []

        if _has_filter(barcode):
            needle = barcode.upper()
            total_count = 0
            with self._reader() as reader:
                for view in self._views(reader):
                    if not self._barcode_matches(view, needle):
                        continue
                    if skip <= total_count < skip + page_size:
                        items.append(to_summary(view))
                    total_count += 1
        else:
            total_count = self.count_cache.get(str(path))
            with self._reader() as reader:
                for view in islice(self._views(reader), skip, skip + page_size):
                    items.append(to_summary(view))

        log.debug(
            "Page served",
            extra={
                "page": page_number,
                "size": page_size,
                "filtered": _has_filter(barcode),
                "items": len(items),
                "total": total_count,
                "duration_seconds": round(time.perf_counter() - start, 4),
            },
        )
        return Page[StockRecord](
            items=items, total_count=total_count, page_number=page_number, page_size=page_size
        )

    def get_by_code(self, code: int) -> Optional[StockRecord]:
        """Return the first live record whose code equals `code`, fully decoded."""
        if not self.table_path.exists():
            return None
        with self._reader() as reader:
            for view in self._views(reader):
                if view.get_int(CODE_FIELD) == code:
                    return to_full(view)
        return None

    def search_by_barcode(
        self, fragment: str, max_results: Optional[int] = None
    ) -> List[StockRecord]:
        """
        Return up to `max_results` summary records whose barcode contains
        `fragment` (case-insensitive), in file order. The scan stops at the cap.
        """
        limit = self.settings.max_search_results if max_results is None else max_results
        if not _has_filter(fragment) or limit < 1 or not self.table_path.exists():
            return []

        needle = fragment.upper()
        items: List[StockRecord] = []
        with self._reader() as reader:
            for view in self._views(reader):
                if self._barcode_matches(view, needle):
                    items.append(to_summary(view))
                    if len(items) >= limit:
                        break
        return items

    def total_count(self, barcode: Optional[str] = None) -> int:
        """
        Count live records (optionally only barcode matches) with a fresh scan.

        Deliberately independent of the count cache used by `list_page`.
        """
        if not self.table_path.exists():
            return 0
        if not _has_filter(barcode):
            return self.count_live()

        needle = barcode.upper()
        with self._reader() as reader:
            return sum(1 for view in self._views(reader) if self._barcode_matches(view, needle))


__all__ = ["OrdinalCache", "StockRepository"]
