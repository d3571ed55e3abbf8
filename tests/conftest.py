"""
Pytest configuration for the stock table server.

Provides fixtures for:
- Small STOC table files written into a temporary directory
- Settings pointing at those files
- A controllable clock for count cache tests
- A repository wired to the fixture table
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Callable, Generator

import pytest

from scripts.generate_table import STOCK_COLUMNS, _write_table, stock_row
from stockdbf.config import Settings
from stockdbf.repository import StockRepository


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def table_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(table_dir: Path) -> Settings:
    """
    Settings rooted at the temporary table directory.
    """
    return Settings(
        dbf_path=str(table_dir),
        table_name="STOC",
        code_page="cp1252",
        open_retry_attempts=1,
        log_level="DEBUG",
    )


@pytest.fixture
def write_stock_table(table_dir: Path) -> Callable[..., Path]:
    """
    Factory writing `STOC.DBF` into the table directory.

    Rows are STOC dicts; `deleted` holds positions written as deleted.
    """

    def _write(rows, deleted=(), columns=STOCK_COLUMNS, index_tags=None, **header) -> Path:
        return _write_table(
            table_dir / "STOC.DBF",
            rows,
            columns=columns,
            deleted=deleted,
            index_tags=index_tags,
            **header,
        )

    return _write


@pytest.fixture
def make_rows() -> Callable[..., list]:
    """
    Deterministic STOC rows with codes starting at `first_code`.
    """

    def _make(count: int, first_code: int = 1, barcode: Callable[[int], str] | None = None) -> list:
        rng = random.Random(42)
        return [
            stock_row(code, rng, barcode(code) if barcode else None)
            for code in range(first_code, first_code + count)
        ]

    return _make


@pytest.fixture
def repository(test_settings: Settings) -> Generator[StockRepository, None, None]:
    repo = StockRepository(test_settings)
    try:
        yield repo
    finally:
        repo.close()
