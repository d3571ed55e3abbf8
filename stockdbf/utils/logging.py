"""
Logging setup for the stock table server.

Scans run on worker threads and count refreshes on a background executor, so
every formatter records the thread name alongside the logger. The console
format is meant for people at a terminal; `json_logs=True` switches to one JSON
object per line for log collectors when the server runs as a service.

Usage:
    from stockdbf.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False, overrides={"stockdbf.cache": "DEBUG"})
    log = get_logger(__name__)
    log.info("page served", extra={"page": 3, "items": 10})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Mapping, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(threadName)s | %(name)s | %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes present on every LogRecord; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Serialize a record, its `extra=` fields included, as one JSON line."""
    payload: Dict[str, Any] = {
        "time": record.created,
        "level": record.levelname,
        "logger": record.name,
        "thread": record.threadName,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    )
    # A nested dict passed as `extra={"extra": {...}}` is flattened too.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def _dict_config(level: str, json_logs: bool, overrides: Mapping[str, str]) -> Dict[str, Any]:
    formatters: Dict[str, Any] = {
        "console": {"format": CONSOLE_FORMAT, "datefmt": CONSOLE_DATEFMT},
        "json": {"()": JsonFormatter},
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_logs else "console",
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {name: {"level": lvl.upper()} for name, lvl in overrides.items()},
        "root": {"handlers": ["stderr"], "level": level.upper()},
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
    overrides: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Configure root logging.

    Parameters
    ----------
    level : str
        Root level name (e.g., "DEBUG", "INFO", "WARNING"), case-insensitive.
    json_logs : bool
        Emit one JSON object per line instead of the console format.
    force : bool
        When False, leave an existing root configuration untouched.
    overrides : Mapping[str, str], optional
        Per-logger levels, e.g. {"stockdbf.cache": "DEBUG"} to trace count
        refreshes without turning on debug output everywhere.
    """
    if not force and logging.getLogger().handlers:
        return
    logging.config.dictConfig(_dict_config(level, json_logs, overrides or {}))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
