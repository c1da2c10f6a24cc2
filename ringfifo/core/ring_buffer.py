"""
Fixed-capacity ring buffer (circular FIFO) with overwrite-on-full push.

Storage is allocated once at construction: a numpy array when an element
dtype is given (plain numeric types or structured records), otherwise a
list of object slots. The store is never reallocated.

Index model:
    head  - next slot to write
    tail  - next slot to read
    used  = (head - tail) mod capacity
    free  = capacity - 1 - used

One slot is always left unused so that head == tail means "empty" and
(head + 1) mod capacity == tail means "full". Usable capacity is
therefore capacity - 1.

Overwrite-on-full: after head advances, if it landed on tail, tail is
bumped by exactly one slot and the oldest element is lost. The bump is
applied once per advance, NOT once per element. A single push into a full
buffer drops exactly one element, but a bulk fill that overruns the
reader by k > 1 slots still bumps tail by at most one and leaves the
indices describing fewer elements than were written. Do not overfill
with fill() if drop counts matter.

empty() never treats over-asking as a precondition failure, unlike pop
and fill. A request larger than the used count is clamped and logged at
DEBUG. tail advances by the clamped count, which is also returned.
Advancing by the requested size instead would corrupt the indices.

Concurrency: every mutator (push, pop, fill, empty, reset) runs inside
the configured protect hook. Queries (used, free, is_empty, is_full) do
NOT take the hook; bracket them yourself if you need a consistent
snapshot across contexts.
"""

import operator
from typing import Any, Generic, MutableSequence, Optional, Sequence, TypeVar

import numpy as np

from ..config import RingBufferConfig, default_config
from ..debugging.logging_config import ComponentLogger
from .assertions import check_precondition
from .protect import NULL_PROTECT, LockProtect, Protect, as_protect

log = ComponentLogger("ring_buffer")

T = TypeVar("T")

__all__ = [
    "RingBuffer",
    "create_ring_buffer",
    "create_threadsafe_ring_buffer",
]


class RingBuffer(Generic[T]):
    """
    Fixed-capacity circular FIFO.

    Example:
        buf = RingBuffer(8, dtype=np.uint32, protect=threading.Lock())
        buf.push(1)
        buf.fill([2, 3, 4])
        out = np.zeros(4, dtype=np.uint32)
        buf.empty(out)          # -> 4, out == [1, 2, 3, 4]
    """

    def __init__(
        self,
        capacity: int,
        dtype: Any = None,
        protect: Any = None,
        protect_arg: Any = None,
        config: Optional[RingBufferConfig] = None,
        name: str = "ring",
        metrics: Any = None,
    ):
        """
        Initialize the ring buffer.

        Args:
            capacity: Number of physical slots (>= 2). Usable capacity is capacity - 1.
            dtype: numpy dtype of the elements, or None for arbitrary Python objects.
            protect: Critical-section hook: a Protect, a lock object, or a
                ``callback(op, arg)`` callable. None means unprotected.
            protect_arg: Opaque argument forwarded to a callback hook.
            config: Buffer behaviour switches (default: ringfifo.config.default_config.buffer).
            name: Name used in logs and metrics labels.
            metrics: Optional MetricsCollector notified of precondition failures.
        """
        capacity = operator.index(capacity)
        if capacity < 2:
            raise ValueError(f"Ring buffer capacity must be >= 2, got {capacity}")

        self._config = config or default_config.buffer
        self._capacity = capacity
        self._name = name
        self._metrics = metrics

        if dtype is not None:
            self._array = np.zeros(capacity, dtype=dtype)
            self._copy_on_read = True
        else:
            self._array = [None] * capacity
            self._copy_on_read = False

        self._head: int = 0
        self._tail: int = 0

        if self._config.protect_enabled:
            self._protect: Protect = as_protect(protect, protect_arg)
        else:
            if protect is not None:
                log.debug("Protect hook ignored (protect disabled)", buffer=name)
            self._protect = NULL_PROTECT

        # Metrics
        self._total_pushed: int = 0
        self._total_popped: int = 0
        self._overwrite_count: int = 0
        self._precondition_failures: int = 0

    # ── Queries (no lock) ──

    @property
    def name(self) -> str:
        return self._name

    @property
    def length(self) -> int:
        """Total number of physical slots."""
        return self._capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def head(self) -> int:
        return self._head

    @property
    def tail(self) -> int:
        return self._tail

    @property
    def array(self):
        """Backing storage (read it, don't write it)."""
        return self._array

    @property
    def protect(self) -> Protect:
        return self._protect

    @property
    def type_size(self) -> Optional[int]:
        """Element size in bytes, or None for object storage."""
        if isinstance(self._array, np.ndarray):
            return self._array.dtype.itemsize
        return None

    @property
    def used(self) -> int:
        """Number of slots holding unread elements."""
        head, tail = self._head, self._tail
        if head >= tail:
            return head - tail
        return self._capacity - tail + head

    @property
    def free(self) -> int:
        """Number of elements that can be written without overwriting."""
        return self._capacity - self.used - 1

    def is_empty(self) -> bool:
        return self.used == 0

    def is_full(self) -> bool:
        return self.free == 0

    @property
    def overwrite_count(self) -> int:
        return self._overwrite_count

    @property
    def total_pushed(self) -> int:
        return self._total_pushed

    @property
    def total_popped(self) -> int:
        return self._total_popped

    @property
    def precondition_failures(self) -> int:
        return self._precondition_failures

    # ── Index arithmetic ──

    def _advance(self, index: int, count: int) -> int:
        # Single-wrap fast path; valid for count < capacity
        nxt = index + count
        return nxt if nxt < self._capacity else nxt - self._capacity

    def _advance_tail(self, count: int):
        self._tail = self._advance(self._tail, count)

    def _advance_head(self, count: int):
        self._head = self._advance(self._head, count)
        if self._head == self._tail:
            # Writer caught up with the reader: drop the oldest slot
            self._advance_tail(1)
            self._overwrite_count += 1
            log.debug("Overwrite on full", buffer=self._name, extra={"tail": self._tail})

    def _require(self, condition: bool, message: str, operation: str) -> bool:
        if condition:
            return True
        self._precondition_failures += 1
        if self._metrics is not None:
            self._metrics.record_precondition_failure(self._name, operation)
        return check_precondition(
            False,
            message,
            mode=self._config.assert_mode,
            operation=operation,
            log=log.logger,
        )

    def _trace(self, operation: str):
        if self._config.trace_indices:
            log.trace(operation, buffer=self._name, extra={"head": self._head, "tail": self._tail})

    # ── Single-element operations ──

    def push(self, item: T):
        """
        Push one element. Never fails.

        If the buffer is full the oldest element is discarded.
        """
        if not self._copy_on_read and isinstance(item, np.generic):
            # numpy scalars from a caller array may be views into it
            item = item.copy()
        with self._protect.guard():
            self._array[self._head] = item
            self._advance_head(1)
            self._total_pushed += 1
            self._trace("push")

    def pop(self) -> Optional[T]:
        """
        Pop the oldest element.

        Raises:
            PreconditionError: If the buffer is empty (in RAISE mode). In
                LOG/OFF mode an empty pop returns None and leaves the
                indices untouched.
        """
        with self._protect.guard():
            if not self._require(self._head != self._tail, "pop from empty ring buffer", "pop"):
                return None
            item = self._array[self._tail]
            if self._copy_on_read:
                item = item.copy()
            self._advance_tail(1)
            self._total_popped += 1
            self._trace("pop")
            return item

    # ── Bulk operations ──

    def fill(self, src: Sequence[T], size: Optional[int] = None):
        """
        Copy ``size`` elements from a linear buffer into the ring.

        The copy is split in two chunks when it crosses the physical end
        of storage. Overwrite-on-full is applied once for the whole call
        (see module docstring).

        Args:
            src: Linear source buffer (list, tuple, numpy array, ...).
            size: Number of elements to copy (default: len(src)). Must be
                strictly less than capacity - 1.

        Raises:
            PreconditionError: If size >= capacity - 1 or src is shorter
                than size (in RAISE mode).
        """
        if size is None:
            size = len(src)
        size = operator.index(size)

        limit = self._capacity - 1
        if not self._require(0 <= size < limit, f"fill of {size} elements, must be < {limit}", "fill"):
            # Largest advance the single-wrap arithmetic supports
            size = min(max(size, 0), limit)
        if not self._require(len(src) >= size, f"fill source holds {len(src)} < {size} elements", "fill"):
            size = len(src)
        if size == 0:
            return

        with self._protect.guard():
            head = self._head
            overrun = size - self.free
            if overrun > 1:
                log.warning(
                    "Fill overruns reader",
                    buffer=self._name,
                    extra={"size": size, "overrun": overrun},
                )

            # Object slots would keep views into a numpy source
            detach = not self._copy_on_read and isinstance(src, np.ndarray)

            first = min(size, self._capacity - head)
            chunk = src[0:first]
            self._array[head:head + first] = chunk.copy() if detach else chunk
            if size > first:
                chunk = src[first:size]
                self._array[0:size - first] = chunk.copy() if detach else chunk

            self._advance_head(size)
            self._total_pushed += size
            self._trace("fill")

    def empty(self, dest: MutableSequence[T], size: Optional[int] = None) -> int:
        """
        Move up to ``size`` elements from the ring into a linear buffer.

        ``size`` is clamped to the number of used slots and tail advances by
        the clamped count. Over-asking is not treated as a precondition
        failure (see module docstring).

        Args:
            dest: Linear destination buffer, written from index 0.
            size: Number of elements requested (default: len(dest)).

        Returns:
            Number of elements actually copied.
        """
        if size is None:
            size = len(dest)
        size = operator.index(size)

        if not self._require(0 <= size <= len(dest), f"empty of {size} elements into {len(dest)} slots", "empty"):
            size = min(max(size, 0), len(dest))

        with self._protect.guard():
            used = self.used
            if size > used:
                log.debug("Empty clamped", buffer=self._name, extra={"requested": size, "used": used})
                size = used
            if size == 0:
                return 0

            tail = self._tail
            first = min(size, self._capacity - tail)
            dest[0:first] = self._array[tail:tail + first]
            if size > first:
                dest[first:size] = self._array[0:size - first]

            self._advance_tail(size)
            self._total_popped += size
            self._trace("empty")
            return size

    def reset(self):
        """Empty the buffer. Slot contents are left as they are."""
        with self._protect.guard():
            self._head = 0
            self._tail = 0
            self._trace("reset")

    # ── Stats ──

    def get_stats(self) -> dict:
        """Get buffer statistics."""
        used = self.used
        return {
            "name": self._name,
            "capacity": self._capacity,
            "used": used,
            "free": self._capacity - used - 1,
            "occupancy_pct": (used / (self._capacity - 1)) * 100,
            "total_pushed": self._total_pushed,
            "total_popped": self._total_popped,
            "overwrite_count": self._overwrite_count,
            "precondition_failures": self._precondition_failures,
        }

    def __repr__(self) -> str:
        return (
            f"RingBuffer(name={self._name!r}, capacity={self._capacity}, "
            f"head={self._head}, tail={self._tail}, used={self.used})"
        )


def create_ring_buffer(
    capacity: int,
    dtype: Any = None,
    protect: Any = None,
    protect_arg: Any = None,
    config: Optional[RingBufferConfig] = None,
    name: str = "ring",
    metrics: Any = None,
) -> RingBuffer:
    """
    Create a ring buffer.

    Args:
        capacity: Number of physical slots (usable: capacity - 1).
        dtype: numpy element dtype, or None for object slots.
        protect: Critical-section hook (see RingBuffer).
        protect_arg: Opaque argument for a callback hook.
        config: Buffer behaviour switches.
        name: Name used in logs and metrics.
        metrics: Optional MetricsCollector.

    Returns:
        An empty RingBuffer.
    """
    buf = RingBuffer(
        capacity,
        dtype=dtype,
        protect=protect,
        protect_arg=protect_arg,
        config=config,
        name=name,
        metrics=metrics,
    )
    log.info("Ring buffer created", buffer=name, extra={"capacity": capacity, "dtype": str(dtype)})
    return buf


def create_threadsafe_ring_buffer(
    capacity: int,
    dtype: Any = None,
    config: Optional[RingBufferConfig] = None,
    name: str = "ring",
    metrics: Any = None,
) -> RingBuffer:
    """Create a ring buffer whose mutators are serialised by a threading.Lock."""
    return create_ring_buffer(
        capacity,
        dtype=dtype,
        protect=LockProtect(),
        config=config,
        name=name,
        metrics=metrics,
    )
