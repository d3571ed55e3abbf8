from __future__ import annotations

import json
import logging

from stockdbf.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_ROWS = 10
EXPECTED_PAGE_SIZE = 100


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )
    record.rows = EXPECTED_ROWS
    record.operation = "first_page"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["operation"] == "first_page"


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )
    record.extra = {"page_size": EXPECTED_PAGE_SIZE}

    payload = json.loads(_json_formatter(record))

    assert payload["page_size"] == EXPECTED_PAGE_SIZE


def test_configure_logging_installs_json_handler() -> None:
    root = logging.getLogger()
    previous = list(root.handlers), root.level
    try:
        configure_logging(level="debug", json_logs=True)

        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)

        configure_logging(level="INFO", json_logs=False, force=False)
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = previous[0]
        root.setLevel(previous[1])


def test_configure_logging_applies_per_logger_overrides() -> None:
    root = logging.getLogger()
    cache_logger = logging.getLogger("stockdbf.cache")
    previous = list(root.handlers), root.level, cache_logger.level
    try:
        configure_logging(level="WARNING", overrides={"stockdbf.cache": "debug"})

        assert root.level == logging.WARNING
        assert cache_logger.level == logging.DEBUG
        assert cache_logger.isEnabledFor(logging.DEBUG)
    finally:
        root.handlers[:] = previous[0]
        root.setLevel(previous[1])
        cache_logger.setLevel(previous[2])


def test_json_formatter_records_thread_name() -> None:
    record = logging.LogRecord("stockdbf.cache", logging.DEBUG, __file__, 1, "refresh", (), None)
    record.threadName = "count-refresh_0"

    payload = json.loads(_json_formatter(record))

    assert payload["thread"] == "count-refresh_0"
    assert "threadName" not in payload
