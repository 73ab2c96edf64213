# tests/unit/logging/test_unit_logger.py
"""Tests for logging/logger.py — formatters and setup."""

from __future__ import annotations

import io
import json
import logging
import sys

from noiengine.logging.context import clear_context, set_render_context, set_step
from noiengine.logging.logger import JsonFormatter, TextFormatter, setup_logging


def _record(msg: str = "Hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_render_context("claim-1", "r1", "word-merge")
        set_step("merge")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"]["entity_id"] == "claim-1"
        assert parsed["context"]["template_format"] == "word-merge"
        assert parsed["context"]["step"] == "merge"

    def test_extra_data(self):
        parsed = json.loads(JsonFormatter().format(_record(data={"fingerprint": "abc"})))
        assert parsed["data"] == {"fingerprint": "abc"}

    def test_non_mapping_data_is_ignored(self):
        parsed = json.loads(JsonFormatter().format(_record(data="loose")))
        assert "data" not in parsed

    def test_timestamp_is_record_time(self):
        record = _record()
        record.created = 1704189600.0
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["timestamp"].startswith("2024-01-02T10:00:00")


class TestTextFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_includes_entity_and_step(self):
        set_render_context("claim-1", "r1", "fillable-pdf")
        set_step("persist")
        output = TextFormatter().format(_record())
        assert "[claim-1 fillable-pdf]" in output
        assert "(persist)" in output

    def test_appends_traceback(self):
        try:
            raise OSError("disk full")
        except OSError:
            record = _record(exc_info=sys.exc_info())
        output = TextFormatter().format(record)
        assert output.splitlines()[0].endswith("Hello")
        assert "OSError: disk full" in output


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("noiengine")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text_to_stream(self):
        stream = io.StringIO()
        setup_logging(level="INFO", log_format="text", stream=stream)
        logging.getLogger("noiengine.test").info("to stream")
        assert "to stream" in stream.getvalue()

    def test_no_duplicate_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("noiengine").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "noi.log"
        setup_logging(log_file=str(log_file), rotation="1MB", retention=2)
        assert len(logging.getLogger("noiengine").handlers) == 2
        assert log_file.parent.is_dir()
        for handler in logging.getLogger("noiengine").handlers:
            handler.close()
        logging.getLogger("noiengine").handlers.clear()
