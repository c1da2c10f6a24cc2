"""
Structured logging for ringfifo.

Records are rendered as one JSON object per line. A queue-backed handler
moves the actual write onto a background thread, so a producer pushing
from a latency-sensitive thread only pays for an enqueue.

What gets logged, by level:
- ERROR: Precondition violations when the assert mode is LOG
- WARN: A bulk fill that overruns the reader by more than one slot
- INFO: Buffer creation through the factories, demo progress
- DEBUG: Overwrite-on-full, clamped empty() requests, ignored protect hooks
- TRACE (=5): head/tail after each mutation (RingBufferConfig.trace_indices)

Loggers live under ``ringfifo.<component>``; component tags in use are
ring_buffer, demo.

Env:
    RINGFIFO_LOG_LEVEL   default level when none is passed
    RINGFIFO_DEBUG=1     never log above DEBUG
"""

import json
import logging
import os
import queue
import sys
import threading
import time
from typing import Optional

# Below DEBUG, for per-operation index dumps
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

RINGFIFO_DEBUG = os.environ.get("RINGFIFO_DEBUG", "0") == "1"

# Records held by NonBlockingHandler before it starts dropping
LOG_QUEUE_CAPACITY = 10_000

LOG_LEVEL_MAP = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

_TAGGED_ATTRS = ("component", "buffer")
_STOP = object()


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: ts, level, component, event, plus extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": time.time(),
            "level": record.levelname,
            "component": record.name.rsplit(".", 1)[-1],
            "event": record.getMessage(),
        }
        for attr in _TAGGED_ATTRS:
            value = getattr(record, attr, None)
            if value is not None:
                entry[attr] = value
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class NonBlockingHandler(logging.Handler):
    """
    Hands records to a writer thread through a bounded queue.

    emit() never blocks: when the queue is full the record is counted in
    dropped_count and discarded. close() lets the writer finish what is
    already queued.
    """

    def __init__(self, target_handler: logging.Handler, capacity: int = LOG_QUEUE_CAPACITY):
        super().__init__()
        self._target = target_handler
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._dropped_count = 0
        self._closed = False
        self._writer = threading.Thread(target=self._drain, name="ringfifo-log", daemon=True)
        self._writer.start()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count

    def emit(self, record: logging.LogRecord):
        try:
            self._queue.put_nowait(record)
        except queue.Full:
            self._dropped_count += 1

    def _drain(self):
        while True:
            record = self._queue.get()
            if record is _STOP:
                return
            self._target.handle(record)

    def close(self):
        if not self._closed:
            self._closed = True
            self._queue.put(_STOP)
            self._writer.join(timeout=2.0)
            self._target.close()
        super().close()


def parse_level(level: Optional[str]) -> int:
    """Level name (or RINGFIFO_LOG_LEVEL) to a logging level; unknown names mean INFO."""
    name = (level or os.environ.get("RINGFIFO_LOG_LEVEL", "INFO")).upper()
    resolved = LOG_LEVEL_MAP.get(name, logging.INFO)
    if RINGFIFO_DEBUG:
        resolved = min(resolved, logging.DEBUG)
    return resolved


def configure_logging(
    level: Optional[str] = None,
    json_format: bool = True,
    non_blocking: bool = True,
    stream=None,
) -> logging.Handler:
    """
    Route the ``ringfifo`` logger tree to a single output handler.

    Only the package logger is touched; the host application's root
    logger keeps its own configuration. Calling this again replaces (and
    closes) the handler installed by the previous call.

    Args:
        level: Level name; defaults to RINGFIFO_LOG_LEVEL, then INFO.
        json_format: JSON lines if True, plain text otherwise.
        non_blocking: Write through NonBlockingHandler.
        stream: Output stream (default: stdout).

    Returns:
        The handler now attached to the ``ringfifo`` logger.
    """
    output = logging.StreamHandler(stream or sys.stdout)
    if json_format:
        output.setFormatter(StructuredFormatter())
    else:
        output.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        ))
    handler = NonBlockingHandler(output) if non_blocking else output

    pkg_logger = logging.getLogger("ringfifo")
    for previous in list(pkg_logger.handlers):
        pkg_logger.removeHandler(previous)
        previous.close()
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(parse_level(level))
    pkg_logger.propagate = False
    return handler


class ComponentLogger:
    """
    Logger for one component, with buffer name and structured extras.

        log = ComponentLogger("ring_buffer")
        log.debug("Overwrite on full", buffer="uart_rx", extra={"tail": 3})

    Disabled levels cost one isEnabledFor() check.
    """

    def __init__(self, component: str):
        self._component = component
        self._logger = logging.getLogger(f"ringfifo.{component}")

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(self, level: int, msg: str, buffer: Optional[str] = None, extra: Optional[dict] = None):
        if self._logger.isEnabledFor(level):
            self._logger.log(level, msg, extra={
                "component": self._component,
                "buffer": buffer,
                "extra_fields": extra or {},
            })

    def trace(self, msg: str, **kwargs):
        self._log(TRACE, msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs):
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs):
        self._log(logging.ERROR, msg, **kwargs)
