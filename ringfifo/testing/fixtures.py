"""
Test Fixtures for ringfifo

Provides helpers for unit tests and the demo driver:
- Structured test item dtype ({dummy: u8, x: u32})
- Item generators
- Lock-discipline recorder for protect callbacks
- Pre-configured buffers
"""

from typing import Any, List, Optional

import numpy as np

from ..config import RingBufferConfig
from ..core.protect import ProtectOp
from ..core.ring_buffer import RingBuffer

# Mirrors a C struct { uint8_t dummy; uint32_t x; }
ITEM_DTYPE = np.dtype([("dummy", "u1"), ("x", "u4")])


def make_item(x: int, dummy: int = 0) -> np.void:
    """Create a single structured test item."""
    return np.array((dummy, x), dtype=ITEM_DTYPE)[()]


def make_items(count: int, start: int = 0) -> np.ndarray:
    """Create ``count`` items with x = start, start + 1, ..."""
    items = np.zeros(count, dtype=ITEM_DTYPE)
    items["x"] = np.arange(start, start + count, dtype=np.uint32)
    return items


class FlagRecorder:
    """
    Protect callback that records lock discipline.

    ``flag`` is 1 while the lock is held and 0 otherwise; ``transitions``
    counts every LOCK and UNLOCK. ``max_depth`` catches nested locking.
    """

    def __init__(self):
        self.flag = 0
        self.transitions = 0
        self.depth = 0
        self.max_depth = 0
        self.ops: List[ProtectOp] = []

    def callback(self, op: int, arg: Any):
        op = ProtectOp(op)
        self.ops.append(op)
        self.transitions += 1
        if op is ProtectOp.LOCK:
            self.flag = 1
            self.depth += 1
            self.max_depth = max(self.max_depth, self.depth)
        else:
            self.flag = 0
            self.depth -= 1
        if arg is not None:
            arg["flag"] = self.flag

    @property
    def balanced(self) -> bool:
        return self.flag == 0 and self.depth == 0 and self.transitions % 2 == 0


def create_test_buffer(
    capacity: int = 8,
    recorder: Optional[FlagRecorder] = None,
    dtype: Any = ITEM_DTYPE,
    config: Optional[RingBufferConfig] = None,
    name: str = "test",
    metrics: Any = None,
) -> RingBuffer:
    """
    Create a buffer for tests, optionally wired to a FlagRecorder.

    The recorder receives a dict as its opaque argument so tests can also
    check that the argument is forwarded.
    """
    if recorder is not None:
        return RingBuffer(
            capacity,
            dtype=dtype,
            protect=recorder.callback,
            protect_arg={"flag": 0},
            config=config,
            name=name,
            metrics=metrics,
        )
    return RingBuffer(capacity, dtype=dtype, config=config, name=name, metrics=metrics)
