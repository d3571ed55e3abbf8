"""
Exception hierarchy for table and index file handling.

A missing table file is deliberately absent from this module: callers get
empty results for it, never an exception.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class DbfError(Exception):
    """Base class for table/index file errors."""

    def __init__(self, message: str, path: Optional[PathLike] = None) -> None:
        self.message = message
        self.path = str(path) if path is not None else None
        super().__init__(message)

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class CorruptHeaderError(DbfError):
    """Header bytes failed structural validation."""


class InvalidDateError(CorruptHeaderError):
    """The last-update year/month/day triple is not a calendar date."""

    def __init__(self, year: int, month: int, day: int, path: Optional[PathLike] = None) -> None:
        self.year = year
        self.month = month
        self.day = day
        super().__init__(f"invalid last-update date {year:04d}-{month:02d}-{day:02d}", path)


class FieldDecodeError(DbfError):
    """A single field value could not be decoded by its typed decoder."""

    def __init__(self, field_name: str, reason: str) -> None:
        self.field_name = field_name
        super().__init__(f"field {field_name}: {reason}")


class IndexParseError(DbfError):
    """The multi-tag index file is malformed."""


class NoInputFilesError(DbfError):
    """Schema export could not resolve a single input table file."""

    def __init__(self, patterns: list[str]) -> None:
        self.patterns = patterns
        super().__init__("No DBF files found for: " + ", ".join(patterns or ["<none>"]))


__all__ = [
    "DbfError",
    "CorruptHeaderError",
    "InvalidDateError",
    "FieldDecodeError",
    "IndexParseError",
    "NoInputFilesError",
]
