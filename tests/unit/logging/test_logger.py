# tests/unit/logging/test_logger.py — v2
"""Tests for logging/logger.py — setup and formatters."""

from __future__ import annotations

import json
import logging
import sys

from transcriptflow.logging.context import clear_context, item_context, stage_context
from transcriptflow.logging.logger import ROOT_LOGGER, JsonFormatter, TextFormatter, setup_logging


def _record(msg: str = "Hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=exc_info,
    )


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
        with item_context("lecture1.txt"), stage_context("consolidation"):
            parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {"item_id": "lecture1.txt", "stage": "consolidation"}

    def test_extra_data(self):
        record = _record()
        record.data = {"chunks": 3}
        assert json.loads(JsonFormatter().format(record))["data"] == {"chunks": 3}

    def test_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record(exc_info=sys.exc_info())
        assert "ValueError: bad" in json.loads(JsonFormatter().format(record))["exception"]


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "[INFO    ]" in output
        assert output.endswith("- Hello text")

    def test_item_and_stage(self):
        with item_context("lecture1.txt"), stage_context("summarization"):
            output = TextFormatter().format(_record())
        assert "[lecture1.txt] (summarization) - Hello" in output


class TestSetupLogging:
    def teardown_method(self):
        logging.getLogger(ROOT_LOGGER).handlers.clear()

    def test_text_console(self):
        logger = setup_logging(level="debug")
        assert logger.name == "transcriptflow"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_json_and_file(self, tmp_path):
        logger = setup_logging(log_format="json", log_file=str(tmp_path / "app.log"))
        assert len(logger.handlers) == 2
        assert all(isinstance(h.formatter, JsonFormatter) for h in logger.handlers)
        for h in logger.handlers:
            h.close()

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_quiets_httpx(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
