"""
Unit Tests for Logging Setup
============================
"""

import json
import logging

import pytest
import structlog

from retry_proxy.logging_config import JSONFormatter, KeyValueFormatter, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_retry_fields_are_top_level(self):
        """Should lift retry fields to top-level keys and nest the rest."""
        record = logging.LogRecord(
            "retry_proxy.executor", logging.DEBUG, __file__, 10,
            "Retrying after failure", None, None,
        )
        record.extra_data = {
            "func": "fetch",
            "attempt": 1,
            "retries_left": 2,
            "delay_ms": 500.0,
            "error": "X",
            "request_id": "req_1",
        }

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "DEBUG"
        assert data["logger"] == "retry_proxy.executor"
        assert data["event"] == "Retrying after failure"
        assert data["func"] == "fetch"
        assert data["attempt"] == 1
        assert data["retries_left"] == 2
        assert data["delay_ms"] == 500.0
        assert data["error"] == "X"
        assert data["context"] == {"request_id": "req_1"}

    def test_plain_record_has_no_context(self):
        """Should omit context when no structured values are attached."""
        record = logging.LogRecord("app", logging.INFO, __file__, 1, "hello %s", ("world",), None)

        data = json.loads(JSONFormatter().format(record))

        assert data["event"] == "hello world"
        assert "context" not in data


class TestKeyValueFormatter:
    """Tests for KeyValueFormatter."""

    def test_appends_retry_fields(self):
        """Should append retry fields as key=value pairs."""
        record = logging.LogRecord(
            "retry_proxy.executor", logging.WARNING, __file__, 10,
            "Retry exhausted", None, None,
        )
        record.extra_data = {"func": "fetch", "attempts": 4, "error": "X"}

        line = KeyValueFormatter().format(record)

        assert "Retry exhausted" in line
        assert line.endswith("func='fetch' attempts=4 error='X'")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_installs_json_handler(self, restore_logging):
        """Should replace root handlers with one JSON stdout handler."""
        root = setup_logging(level="DEBUG", json_output=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_plain_text_handler(self, restore_logging):
        """Should use a plain formatter when JSON is disabled."""
        root = setup_logging(level="info", json_output=False)

        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, KeyValueFormatter)

    @pytest.mark.asyncio
    async def test_executor_logs_through_stdlib(self, restore_logging, caplog):
        """Should route executor structlog events to stdlib with extra_data."""
        from retry_proxy import RetryProxy

        root = setup_logging(level="DEBUG", json_output=True)
        root.addHandler(caplog.handler)

        async def always_fail():
            raise RuntimeError("X")

        async def no_wait(seconds):
            return None

        with caplog.at_level(logging.DEBUG, logger="retry_proxy.executor"):
            with pytest.raises(RuntimeError):
                await RetryProxy(sleep=no_wait).execute(always_fail, [], max_retries=1)

        records = [r for r in caplog.records if r.name == "retry_proxy.executor"]
        assert [r.getMessage() for r in records] == ["Retrying after failure", "Retry exhausted"]
        assert records[-1].levelno == logging.WARNING
        assert records[-1].extra_data["attempts"] == 2
        assert records[-1].extra_data["error"] == "X"

        rendered = json.loads(JSONFormatter().format(records[-1]))
        assert rendered["event"] == "Retry exhausted"
        assert rendered["func"].endswith("always_fail")
        assert rendered["attempts"] == 2
