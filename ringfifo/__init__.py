"""
ringfifo - fixed-capacity ring buffer

A circular FIFO with a preallocated store, one reserved slot to tell
full from empty, overwrite-on-full push, two-chunk bulk fill/empty, and
a caller-supplied critical-section hook around every mutator.

Modules:
  core.ring_buffer   RingBuffer, factories
  core.protect       Lock/unlock hooks (callback, threading.Lock, no-op)
  core.assertions    Precondition handling (raise / log / off)
  config             Frozen dataclass configuration, env loader
  debugging          Structured logging
  performance        Prometheus metrics
"""

from .config import (
    AssertMode,
    LoggingConfig,
    MetricsConfig,
    RingBufferConfig,
    RingFifoConfig,
    default_config,
    load_config_from_env,
)

from .core.assertions import (
    PreconditionError,
    check_precondition,
)

from .core.protect import (
    CallbackProtect,
    LockProtect,
    NullProtect,
    Protect,
    ProtectOp,
    as_protect,
)

from .core.ring_buffer import (
    RingBuffer,
    create_ring_buffer,
    create_threadsafe_ring_buffer,
)

__version__ = "1.0.1"

__all__ = [
    # Config
    "AssertMode",
    "LoggingConfig",
    "MetricsConfig",
    "RingBufferConfig",
    "RingFifoConfig",
    "default_config",
    "load_config_from_env",

    # Errors
    "PreconditionError",
    "check_precondition",

    # Protect hooks
    "CallbackProtect",
    "LockProtect",
    "NullProtect",
    "Protect",
    "ProtectOp",
    "as_protect",

    # Ring buffer
    "RingBuffer",
    "create_ring_buffer",
    "create_threadsafe_ring_buffer",
]
