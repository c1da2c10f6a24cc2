"""
ringfifo Configuration Module

Manages configuration for the ring buffer runtime:
- Buffer behaviour (protect hook switch, precondition handling, index tracing)
- Logging
- Prometheus metrics
"""

from dataclasses import dataclass, field
from enum import Enum


class AssertMode(Enum):
    """How a failed precondition is reported."""
    RAISE = "raise"  # PreconditionError
    LOG = "log"      # ERROR log, operation continues on its safe path
    OFF = "off"      # elided, as in a release build

    @classmethod
    def parse(cls, value: str) -> "AssertMode":
        """Parse a mode name (case-insensitive)."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown assert mode {value!r}; expected one of "
                f"{', '.join(m.value for m in cls)}"
            ) from None


@dataclass(frozen=True)
class RingBufferConfig:
    """Behaviour switches shared by ring buffer instances."""
    # When False the protect hook surface is switched off: any hook passed
    # at construction is ignored and mutators run without lock/unlock.
    protect_enabled: bool = True

    # Precondition violations (pop on empty, oversize fill)
    assert_mode: AssertMode = AssertMode.RAISE

    # Emit TRACE records with head/tail after every mutation
    trace_indices: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """Logging output settings."""
    level: str = "INFO"
    json_format: bool = True
    non_blocking: bool = True


@dataclass(frozen=True)
class MetricsConfig:
    """Prometheus exporter settings."""
    enabled: bool = False
    port: int = 9090


@dataclass(frozen=True)
class RingFifoConfig:
    """Complete runtime configuration."""
    buffer: RingBufferConfig = field(default_factory=RingBufferConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)


# Default configuration instance
default_config = RingFifoConfig()


def load_config_from_env() -> RingFifoConfig:
    """Load configuration from environment variables."""
    from .settings import load_config_from_env as _load
    return _load()
