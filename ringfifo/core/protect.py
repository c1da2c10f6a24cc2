"""
Critical-section hooks for the ring buffer.

Every mutating ring buffer operation runs inside ``protect.guard()``:
LOCK on entry, UNLOCK on every exit path. What "lock" means is up to the
caller. On a desktop it is usually a threading.Lock; in a main-loop /
interrupt setup it is whatever masks the interrupt that also touches the
buffer. As long as the hook excludes the other party for the duration of
the call, a producer in one context and a consumer in another can share
one buffer safely.

The buffer never calls back into itself while holding the hook, so a
simple non-reentrant lock is enough.

Callback protocol (kept wire-compatible for FFI callers):
    callback(op, arg)   op: 1 = LOCK, 0 = UNLOCK; arg: caller-owned opaque value
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager, nullcontext
from enum import IntEnum
from typing import Any, Callable, Optional

__all__ = [
    "ProtectOp",
    "Protect",
    "NullProtect",
    "CallbackProtect",
    "LockProtect",
    "NULL_PROTECT",
    "as_protect",
]


class ProtectOp(IntEnum):
    """Operation passed to a protect callback."""
    UNLOCK = 0
    LOCK = 1


ProtectCallback = Callable[[ProtectOp, Any], None]


class Protect(ABC):
    """Base critical-section hook. Subclasses provide lock() and unlock()."""

    @abstractmethod
    def lock(self):
        """Enter the critical section."""

    @abstractmethod
    def unlock(self):
        """Leave the critical section."""

    @contextmanager
    def guard(self):
        """Hold the lock for the body of a ``with`` block."""
        self.lock()
        try:
            yield
        finally:
            self.unlock()


class NullProtect(Protect):
    """No-op hook used when the buffer is unprotected."""

    _CONTEXT = nullcontext()

    def lock(self):
        pass

    def unlock(self):
        pass

    def guard(self):
        return self._CONTEXT


class CallbackProtect(Protect):
    """
    Forwards LOCK/UNLOCK to a user callback together with an opaque argument.

    The argument is owned by the caller; the buffer only hands it back.
    """

    def __init__(self, callback: ProtectCallback, arg: Any = None):
        if not callable(callback):
            raise TypeError(f"protect callback must be callable, got {type(callback).__name__}")
        self._callback = callback
        self._arg = arg

    @property
    def arg(self) -> Any:
        return self._arg

    def lock(self):
        self._callback(ProtectOp.LOCK, self._arg)

    def unlock(self):
        self._callback(ProtectOp.UNLOCK, self._arg)


class LockProtect(Protect):
    """Wraps a threading.Lock, or anything with acquire()/release()."""

    def __init__(self, lock: Optional[Any] = None):
        self._lock = lock if lock is not None else threading.Lock()

    @property
    def raw_lock(self):
        return self._lock

    def lock(self):
        self._lock.acquire()

    def unlock(self):
        self._lock.release()

    def guard(self):
        # Lock objects are their own context managers.
        if hasattr(self._lock, "__enter__"):
            return self._lock
        return super().guard()


NULL_PROTECT = NullProtect()


def as_protect(hook: Any = None, arg: Any = None) -> Protect:
    """
    Normalise a user-supplied hook into a Protect.

    Accepts None (no protection), a Protect instance, a lock-like object
    with acquire()/release(), or a plain ``callback(op, arg)`` callable.
    """
    if hook is None:
        return NULL_PROTECT
    if isinstance(hook, Protect):
        return hook
    if hasattr(hook, "acquire") and hasattr(hook, "release"):
        return LockProtect(hook)
    if callable(hook):
        return CallbackProtect(hook, arg)
    raise TypeError(f"Unsupported protect hook: {type(hook).__name__}")
