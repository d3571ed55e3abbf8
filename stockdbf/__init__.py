"""
stockdbf - read-only access to a legacy dBASE/FoxPro stock table.

This package provides:

- A binary parser for table (.DBF) headers, field descriptors and records,
  with typed decoding and safe fallbacks for malformed values
- A tag-directory parser for the companion multi-tag index (.MDX) file
- A repository with paginated, barcode-filterable scans, code lookup and
  counting, backed by a TTL count cache with background refresh
- SQL DDL export (CREATE TABLE / CREATE INDEX) derived from the headers
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from stockdbf.cache import CachedCount, CountCache
from stockdbf.config import Settings, get_settings
from stockdbf.domain.models import IndexDescriptor, Page, StockRecord
from stockdbf.errors import (
    CorruptHeaderError,
    DbfError,
    FieldDecodeError,
    IndexParseError,
    InvalidDateError,
    NoInputFilesError,
)
from stockdbf.repository import OrdinalCache, StockRepository
from stockdbf.schema_export import ExportResult, export_schema, sql_type
from stockdbf.service import StockService
from stockdbf.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "IndexDescriptor",
    "Page",
    "StockRecord",
    # Query engine
    "CachedCount",
    "CountCache",
    "OrdinalCache",
    "StockRepository",
    "StockService",
    # Schema export
    "ExportResult",
    "export_schema",
    "sql_type",
    # Errors
    "DbfError",
    "CorruptHeaderError",
    "InvalidDateError",
    "FieldDecodeError",
    "IndexParseError",
    "NoInputFilesError",
    # Logging
    "configure_logging",
    "get_logger",
]
