#!/usr/bin/env python3
"""
ringfifo demo driver

Runs a scripted push / bulk-empty / bulk-fill / pop / reset sequence on a
protected buffer of structured items and checks indices, counts and FIFO
order after every step.

Usage:
    python main.py                  # capacity 8, settings from RINGFIFO_* env vars
    python main.py --capacity 16    # larger ring
    python main.py --no-json        # human-readable logs
    python main.py --metrics        # print Prometheus exposition at the end

RINGFIFO_METRICS=1 also serves /metrics on RINGFIFO_METRICS_PORT while the
demo runs.
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np
from prometheus_client import generate_latest

from ringfifo import __version__
from ringfifo.config import RingBufferConfig, RingFifoConfig, load_config_from_env
from ringfifo.debugging.logging_config import configure_logging
from ringfifo.performance.metrics import MetricsCollector, get_metrics
from ringfifo.testing.fixtures import FlagRecorder, create_test_buffer, make_item, make_items

logger = logging.getLogger("ringfifo.demo")


class DemoCheckError(RuntimeError):
    """A demo step observed an unexpected buffer state."""


def _check(condition: bool, message: str):
    if not condition:
        raise DemoCheckError(message)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ringfifo demo")
    parser.add_argument(
        "--capacity",
        type=int,
        default=8,
        help="Number of physical slots (default: 8)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level: TRACE, DEBUG, INFO, WARNING, ERROR (default: RINGFIFO_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--no-json",
        action="store_true",
        help="Human-readable logs instead of JSON",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print Prometheus metrics after the run",
    )
    return parser.parse_args(argv)


def run_demo(
    capacity: int = 8,
    metrics: Optional[MetricsCollector] = None,
    config: Optional[RingBufferConfig] = None,
) -> List[str]:
    """
    Run the scripted sequence.

    Args:
        capacity: Number of physical slots.
        metrics: Collector that receives the final buffer stats.
        config: Buffer behaviour switches (default: package defaults).

    Returns:
        The event lines that were logged, in order.

    Raises:
        DemoCheckError: If any step leaves the buffer in an unexpected state.
    """
    events: List[str] = []

    def emit(line: str):
        events.append(line)
        logger.info(line)

    recorder = FlagRecorder()
    buf = create_test_buffer(capacity, recorder=recorder, name="demo", metrics=metrics, config=config)
    length = buf.length
    usable = length - 1

    # Push until one slot short of wrapping
    for i in range(usable):
        item = make_item(i)
        buf.push(item)
        used = buf.used
        emit(f"push {i} count {used}")
        _check(recorder.flag == 0, "lock held after push")
        _check(buf.array[buf.tail + i] == item, f"slot {buf.tail + i} does not hold item {i}")
        _check(used == i + 1 and buf.free == usable - used, f"bad counts after push {i}")

    # Drain half in one bulk copy
    half = buf.used // 2
    dest = np.zeros(half, dtype=buf.array.dtype)
    copied = buf.empty(dest, half)
    emit(f"count after empty {buf.used}")
    _check(copied == half, f"empty copied {copied}, expected {half}")
    _check(buf.used == usable - half and buf.free == half, "bad counts after empty")
    _check(list(dest["x"]) == list(range(half)), "empty returned elements out of order")

    # Put them back; this write wraps past the physical end
    buf.fill(dest, half)
    emit(f"count after fill {buf.used}")
    _check(buf.used == usable and buf.free == 0, "bad counts after fill")

    # Pop everything but the last element
    expected = make_items(usable, start=0)["x"]
    order = list(expected[half:]) + list(expected[:half])
    index = 0
    while buf.used > 1:
        popped = buf.pop()
        emit(f"pop {int(popped['x'])} count {buf.used}")
        _check(int(popped["x"]) == order[index], f"pop {index} returned x={int(popped['x'])}")
        index += 1

    buf.reset()
    emit(f"count after reset {buf.used}")
    _check(buf.is_empty() and buf.free == usable, "bad counts after reset")
    _check(buf.head == 0 and buf.tail == 0, "indices not cleared by reset")
    _check(recorder.balanced, "unbalanced lock/unlock")

    if metrics is not None:
        metrics.record_buffer(buf)

    return events


def _run(args: argparse.Namespace, config: RingFifoConfig) -> int:
    logger.info("ringfifo v%s", __version__)

    metrics = None
    if args.metrics or config.metrics.enabled:
        metrics = get_metrics(port=config.metrics.port)
        if config.metrics.enabled:
            metrics.start_server()

    try:
        run_demo(args.capacity, metrics=metrics, config=config.buffer)
    except (DemoCheckError, ValueError) as e:
        logger.error("Demo failed: %s", e)
        return 1

    if args.metrics:
        sys.stdout.write(generate_latest(metrics.registry).decode())

    logger.info("Demo passed")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = load_config_from_env()

    # CLI flags override the environment
    handler = configure_logging(
        level=args.log_level or config.logging.level,
        json_format=config.logging.json_format and not args.no_json,
        non_blocking=config.logging.non_blocking,
    )
    try:
        return _run(args, config)
    finally:
        handler.close()


if __name__ == "__main__":
    sys.exit(main())
