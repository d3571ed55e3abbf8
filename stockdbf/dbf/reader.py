"""
Sequential, forward-only reading of table files.

Records are read in batches of whole records (the file-level analogue of a
cursor's fetchmany) and exposed as `RecordView`s. Deleted records are
skipped; reading stops at the 0x1A end-of-file marker or at a short read.

Opening retries `PermissionError` with tenacity: the legacy application that
owns the file may hold a share lock for a moment while rewriting it.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterator, Mapping, Optional, Union

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from stockdbf.dbf.header import TableSchema, read_header_from
from stockdbf.dbf.record import DELETED_MARKER, RecordView

EOF_MARKER = 0x1A
DEFAULT_BATCH_RECORDS = 512


def open_table_file(path: Union[str, Path], attempts: int = 3) -> BinaryIO:
    """
    Open a table file for binary reading, retrying transient share locks.

    Raises
    ------
    FileNotFoundError
        Immediately; a missing file is never retried.
    PermissionError
        When the file is still locked after `attempts` tries.
    """
    for attempt in Retrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        retry=retry_if_exception_type(PermissionError),
        reraise=True,
    ):
        with attempt:
            return open(path, "rb")
    raise AssertionError("unreachable")  # pragma: no cover


def _batched_reads(f: BinaryIO, record_length: int, batch_records: int) -> Iterator[bytes]:
    """
    Yield raw record buffers, reading `batch_records` records per system call.
    """
    while True:
        block = f.read(record_length * batch_records)
        if not block:
            return
        for start in range(0, len(block), record_length):
            raw = block[start : start + record_length]
            if raw[0] == EOF_MARKER or len(raw) < record_length:
                return
            yield raw


class TableReader:
    """
    Context manager over one open table file.

    Example
    -------
        with TableReader(path, encoding="cp1252") as reader:
            for view in reader.records(ordinals):
                print(view.get_string("DENUMIRE"))
    """

    def __init__(
        self,
        path: Union[str, Path],
        encoding: str = "cp1252",
        open_retry_attempts: int = 3,
        batch_records: int = DEFAULT_BATCH_RECORDS,
    ) -> None:
        self.path = Path(path)
        self.encoding = encoding
        self.open_retry_attempts = open_retry_attempts
        self.batch_records = batch_records
        self._file: Optional[BinaryIO] = None
        self._schema: Optional[TableSchema] = None

    def __enter__(self) -> "TableReader":
        self._file = open_table_file(self.path, self.open_retry_attempts)
        try:
            self._schema = read_header_from(self._file, self.path)
        except BaseException:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def schema(self) -> TableSchema:
        if self._schema is None:
            raise RuntimeError("TableReader is not open")
        return self._schema

    def _raw_records(self) -> Iterator[bytes]:
        if self._file is None:
            raise RuntimeError("TableReader is not open")
        schema = self.schema
        self._file.seek(schema.header_length)
        yield from _batched_reads(self._file, schema.record_length, self.batch_records)

    def records(self, ordinals: Mapping[str, int]) -> Iterator[RecordView]:
        """Yield a view over every live record, in file order."""
        schema = self.schema
        for raw in self._raw_records():
            if raw[0] == DELETED_MARKER:
                continue
            yield RecordView(schema, ordinals, raw, self.encoding)

    def count_live(self) -> int:
        """Count live records without decoding any field."""
        return sum(1 for raw in self._raw_records() if raw[0] != DELETED_MARKER)


__all__ = ["TableReader", "open_table_file", "EOF_MARKER"]
