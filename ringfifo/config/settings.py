"""
Environment-based configuration loader.

Loads configuration from environment variables with defaults from config module.
"""

import os
from . import (
    AssertMode,
    LoggingConfig,
    MetricsConfig,
    RingBufferConfig,
    RingFifoConfig,
)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def load_config_from_env() -> RingFifoConfig:
    """
    Load ringfifo configuration from environment variables.

    Environment variables:
        RINGFIFO_PROTECT        - Enable the protect hook surface (default: 1)
        RINGFIFO_ASSERT_MODE    - raise | log | off (default: raise)
        RINGFIFO_TRACE_INDICES  - Trace head/tail after each mutation (default: 0)
        RINGFIFO_LOG_LEVEL      - Log level (default: INFO)
        RINGFIFO_LOG_JSON       - Structured JSON logs (default: 1)
        RINGFIFO_LOG_NONBLOCKING - Write logs from a background thread (default: 1)
        RINGFIFO_METRICS        - Enable Prometheus metrics (default: 0)
        RINGFIFO_METRICS_PORT   - Metrics HTTP port (default: 9090)
    """
    # Buffer configuration
    buffer = RingBufferConfig(
        protect_enabled=_env_flag("RINGFIFO_PROTECT", True),
        assert_mode=AssertMode.parse(os.getenv("RINGFIFO_ASSERT_MODE", "raise")),
        trace_indices=_env_flag("RINGFIFO_TRACE_INDICES", False),
    )

    # Logging configuration
    logging_config = LoggingConfig(
        level=os.getenv("RINGFIFO_LOG_LEVEL", "INFO"),
        json_format=_env_flag("RINGFIFO_LOG_JSON", True),
        non_blocking=_env_flag("RINGFIFO_LOG_NONBLOCKING", True),
    )

    # Metrics configuration
    metrics = MetricsConfig(
        enabled=_env_flag("RINGFIFO_METRICS", False),
        port=int(os.getenv("RINGFIFO_METRICS_PORT", 9090)),
    )

    return RingFifoConfig(
        buffer=buffer,
        logging=logging_config,
        metrics=metrics,
    )
