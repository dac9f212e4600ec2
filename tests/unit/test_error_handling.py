"""Tests for error containment and logging utilities."""

import io
import logging

import pytest

from code_intel.utils.error_handling import ErrorContext, format_exception, log_and_ignore
from code_intel.utils.rich_logging import EngineLogFormatter, get_context_logger, setup_logging


def test_log_and_ignore_does_not_raise(caplog):
    with caplog.at_level(logging.WARNING):
        try:
            raise ValueError("test error")
        except ValueError as e:
            log_and_ignore(e, "Skipping a.ts")

    assert "Skipping a.ts: test error" in caplog.text


def test_error_context_contains_and_records():
    seen = []
    with ErrorContext("reading a.ts", raise_on_error=False, on_error=seen.append) as ctx:
        raise OSError("denied")

    assert isinstance(ctx.error, OSError)
    assert seen == [ctx.error]
    assert ctx.get_result("value") is None


def test_error_context_default_value():
    with ErrorContext("parsing", raise_on_error=False, default_value=[]) as ctx:
        raise ValueError("bad")
    assert ctx.get_result(["ok"]) == []


def test_error_context_success_returns_result():
    with ErrorContext("parsing", raise_on_error=False) as ctx:
        pass
    assert ctx.get_result(5) == 5


def test_error_context_reraises_by_default():
    with pytest.raises(KeyError):
        with ErrorContext("lookup"):
            raise KeyError("k")


def test_error_context_never_swallows_keyboard_interrupt():
    with pytest.raises(KeyboardInterrupt):
        with ErrorContext("loop", raise_on_error=False):
            raise KeyboardInterrupt()


def test_format_exception():
    assert format_exception(ValueError("bad input ")) == "bad input"
    assert format_exception(ValueError()) == "ValueError"


class TestLogging:
    def test_formatter_includes_context(self):
        record = logging.LogRecord("code_intel.x", logging.INFO, __file__, 1, "loaded", None, None)
        record.project = "/work/shop"
        record.operation = "find_symbol"
        text = EngineLogFormatter(use_colors=False).format(record)
        assert "INFO" in text
        assert "[find_symbol] [shop] loaded" in text

    def test_context_logger_tags_records(self):
        stream = io.StringIO()
        setup_logging("INFO", use_colors=False, stream=stream)
        log = get_context_logger("code_intel.tests")
        log.set_context(project="/work/shop", operation="deps")
        log.info("graph built")
        log.clear_context()
        log.info("plain")

        lines = stream.getvalue().splitlines()
        assert lines[0].endswith("[deps] [shop] graph built")
        assert lines[1].endswith("plain")
        assert "[shop]" not in lines[1]

    def test_setup_logging_replaces_handlers(self):
        logger = setup_logging("DEBUG", stream=io.StringIO())
        setup_logging("DEBUG", stream=io.StringIO())
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
