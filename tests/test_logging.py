"""
Unit tests for structured logging.
"""

import io
import json
import logging

import pytest

from ringfifo.config import RingBufferConfig
from ringfifo.core.ring_buffer import RingBuffer
from ringfifo.debugging.logging_config import (
    TRACE,
    ComponentLogger,
    NonBlockingHandler,
    StructuredFormatter,
    configure_logging,
    parse_level,
)


@pytest.fixture
def restore_ringfifo_logger():
    """Undo configure_logging() changes to the package logger."""
    pkg_logger = logging.getLogger("ringfifo")
    saved = (list(pkg_logger.handlers), pkg_logger.level, pkg_logger.propagate)
    yield pkg_logger
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()
    handlers, level, propagate = saved
    for handler in handlers:
        pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)
    pkg_logger.propagate = propagate


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestStructuredFormatter:

    def test_json_fields(self):
        record = logging.LogRecord("ringfifo.ring_buffer", logging.INFO, "", 0, "reset", (), None)
        record.component = "ring_buffer"
        record.buffer = "uart"
        record.extra_fields = {"head": 0}
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["component"] == "ring_buffer"
        assert entry["event"] == "reset"
        assert entry["buffer"] == "uart"
        assert entry["head"] == 0

    def test_component_defaults_to_logger_suffix(self):
        record = logging.LogRecord("ringfifo.demo", logging.INFO, "", 0, "hello %s", ("x",), None)
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["component"] == "demo"
        assert entry["event"] == "hello x"


class TestParseLevel:

    def test_known_levels(self):
        assert parse_level("trace") == TRACE
        assert parse_level("WARN") == logging.WARNING

    def test_unknown_level_is_info(self):
        assert parse_level("chatty") in (logging.INFO, logging.DEBUG)


class TestComponentLogger:

    def test_skips_records_below_level(self):
        log = ComponentLogger("unit_skip")
        handler = ListHandler()
        log.logger.addHandler(handler)
        log.logger.setLevel(logging.INFO)
        try:
            log.debug("hidden")
            log.info("shown", buffer="b", extra={"n": 1})
        finally:
            log.logger.removeHandler(handler)
        assert [r.getMessage() for r in handler.records] == ["shown"]
        assert handler.records[0].component == "unit_skip"
        assert handler.records[0].extra_fields == {"n": 1}

    def test_trace_indices(self):
        handler = ListHandler()
        buf_logger = logging.getLogger("ringfifo.ring_buffer")
        buf_logger.addHandler(handler)
        old_level = buf_logger.level
        buf_logger.setLevel(TRACE)
        try:
            buf = RingBuffer(4, name="traced", config=RingBufferConfig(trace_indices=True))
            buf.push(1)
        finally:
            buf_logger.removeHandler(handler)
            buf_logger.setLevel(old_level)
        traces = [r for r in handler.records if r.levelno == TRACE]
        assert traces[0].getMessage() == "push"
        assert traces[0].extra_fields == {"head": 1, "tail": 0}
        assert traces[0].buffer == "traced"


class TestNonBlockingHandler:

    def test_delivers_and_drains_on_close(self):
        target = ListHandler()
        handler = NonBlockingHandler(target)
        for i in range(20):
            handler.emit(logging.LogRecord("ringfifo", logging.INFO, "", 0, f"m{i}", (), None))
        handler.close()
        assert [r.getMessage() for r in target.records] == [f"m{i}" for i in range(20)]
        assert handler.dropped_count == 0


class TestConfigureLogging:

    def test_json_output(self, restore_ringfifo_logger):
        stream = io.StringIO()
        configure_logging(level="INFO", json_format=True, non_blocking=False, stream=stream)
        logging.getLogger("ringfifo.demo").info("hello")
        entry = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert entry["event"] == "hello"
        assert entry["component"] == "demo"

    def test_plain_output(self, restore_ringfifo_logger):
        stream = io.StringIO()
        configure_logging(level="WARNING", json_format=False, non_blocking=False, stream=stream)
        logging.getLogger("ringfifo.demo").info("quiet")
        logging.getLogger("ringfifo.demo").warning("loud")
        out = stream.getvalue()
        assert "quiet" not in out
        assert "loud" in out

    def test_close_is_idempotent(self):
        target = ListHandler()
        handler = NonBlockingHandler(target)
        handler.close()
        handler.close()
        assert target.records == []
