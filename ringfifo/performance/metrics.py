"""
Prometheus Metrics for ringfifo

Exposes ring buffer metrics on http://localhost:9090/metrics.
The metrics server runs in a separate thread started by prometheus_client.

Metrics:
- ringfifo_used_slots (Gauge, per buffer)
- ringfifo_free_slots (Gauge, per buffer)
- ringfifo_pushed_total (Counter, per buffer)
- ringfifo_popped_total (Counter, per buffer)
- ringfifo_overwrites_total (Counter, per buffer)
- ringfifo_precondition_failures_total (Counter, per buffer/operation)

Buffers keep plain integer counters; record_buffer() exports them. Pull
the stats from a housekeeping task, not from the producer's hot path.
"""

import logging
import os
from typing import Dict, Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    start_http_server,
)

logger = logging.getLogger(__name__)

# Default metrics port
DEFAULT_METRICS_PORT = 9090

# Stats keys exported as counters -> attribute name
_COUNTER_KEYS = {
    "total_pushed": "pushed",
    "total_popped": "popped",
    "overwrite_count": "overwrites",
}


class MetricsCollector:
    """
    Centralized Prometheus metrics collector for ring buffers.

    All metrics are registered once at initialization. Buffers are
    reported via record_buffer().
    """

    def __init__(
        self,
        port: Optional[int] = None,
        registry: Optional[CollectorRegistry] = None,
        enabled: bool = True,
    ):
        self._port = port or int(os.environ.get("RINGFIFO_METRICS_PORT", DEFAULT_METRICS_PORT))
        self._registry = registry if registry is not None else REGISTRY
        self._server_started = False
        self._enabled = enabled

        # Last exported counter values, per buffer
        self._last_seen: Dict[str, Dict[str, int]] = {}

        if not self._enabled:
            return

        # Occupancy
        self.used_slots = Gauge(
            "ringfifo_used_slots",
            "Slots holding unread elements",
            labelnames=["buffer"],
            registry=self._registry,
        )
        self.free_slots = Gauge(
            "ringfifo_free_slots",
            "Slots writable without overwrite",
            labelnames=["buffer"],
            registry=self._registry,
        )

        # Throughput
        self.pushed = Counter(
            "ringfifo_pushed_total",
            "Elements written by push/fill",
            labelnames=["buffer"],
            registry=self._registry,
        )
        self.popped = Counter(
            "ringfifo_popped_total",
            "Elements read by pop/empty",
            labelnames=["buffer"],
            registry=self._registry,
        )

        # Overwrite-on-full
        self.overwrites = Counter(
            "ringfifo_overwrites_total",
            "Tail bumps caused by a write catching up with the reader",
            labelnames=["buffer"],
            registry=self._registry,
        )

        # Programmer errors
        self.precondition_failures = Counter(
            "ringfifo_precondition_failures_total",
            "Operations called with a violated precondition",
            labelnames=["buffer", "operation"],
            registry=self._registry,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def start_server(self):
        """Start the Prometheus metrics HTTP server in a background thread."""
        if not self._enabled or self._server_started:
            return

        try:
            start_http_server(self._port, registry=self._registry)
            self._server_started = True
            logger.info("Prometheus metrics server started on port %d", self._port)
        except OSError as e:
            logger.error("Failed to start metrics server: %s", e)

    # ── Convenience methods ──

    def record_buffer(self, buffer):
        """Export a buffer's occupancy and counters."""
        if not self._enabled:
            return

        stats = buffer.get_stats()
        name = stats["name"]
        self.used_slots.labels(buffer=name).set(stats["used"])
        self.free_slots.labels(buffer=name).set(stats["free"])

        last = self._last_seen.setdefault(name, {})
        for key, attr in _COUNTER_KEYS.items():
            delta = stats[key] - last.get(key, 0)
            if delta > 0:
                getattr(self, attr).labels(buffer=name).inc(delta)
            last[key] = stats[key]

    def record_precondition_failure(self, buffer_name: str, operation: str):
        if self._enabled:
            self.precondition_failures.labels(buffer=buffer_name, operation=operation).inc()


# Singleton instance
_metrics: Optional[MetricsCollector] = None


def get_metrics(port: Optional[int] = None) -> MetricsCollector:
    """Get the global MetricsCollector singleton (port applies on first call)."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector(port=port)
    return _metrics
