"""
Utilities package for the stock table server.

Exports shared helpers for logging and profiling. Keep this package free of
table-format and query logic.
"""

from stockdbf.utils.logging import configure_logging, get_logger
from stockdbf.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
