# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector for typed HTTP clients.

HttpMetricsCollector keeps dict-based counters and histograms that can be
exported as JSON, and mirrors every update to prometheus_client when it is
installed (``pip install typed-http-client[metrics]``).

Usage:
    >>> from typed_http_client.observability import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.record_request("GET", 200, 0.12)
    >>> collector.get_metrics()["counters"]
    {'typed_http_requests_total': {'method=GET,status_class=2xx': 1}}

Thread Safety:
    All dict updates happen under an RLock. Sync client calls run on a worker
    thread, so the collector is shared across threads.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from .constants import (
    HANDLER_RECYCLES_TOTAL,
    LATENCY_BUCKETS,
    REQUEST_DURATION_SECONDS,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
    TRANSPORT_ERRORS_TOTAL,
    status_class,
)

logger = logging.getLogger(__name__)

# Type declarations for optional prometheus_client imports
if TYPE_CHECKING:
    from prometheus_client import (
        CollectorRegistry as CollectorRegistryType,
        Counter as CounterType,
        Histogram as HistogramType,
    )
else:
    CounterType = object
    HistogramType = object
    CollectorRegistryType = object

try:
    from prometheus_client import (
        REGISTRY as _REGISTRY,
        Counter as _Counter,
        Histogram as _Histogram,
        start_http_server as _start_http_server,
    )

    Counter: type[CounterType] | None = _Counter
    Histogram: type[HistogramType] | None = _Histogram
    REGISTRY: CollectorRegistryType | None = _REGISTRY
    start_http_server: Callable[..., Any] | None = _start_http_server
    PROMETHEUS_AVAILABLE = True
except ImportError:
    Counter = None
    Histogram = None
    REGISTRY = None
    start_http_server = None
    PROMETHEUS_AVAILABLE = False


@dataclass(frozen=True)
class MetricDefinition:
    """Schema of a metric: type, description, labels and histogram buckets."""

    name: str
    metric_type: str  # 'counter' or 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: tuple[float, ...] | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    REQUESTS_TOTAL: MetricDefinition(
        REQUESTS_TOTAL,
        "counter",
        "Total requests that produced a response",
        ("method", "status_class"),
    ),
    REQUEST_DURATION_SECONDS: MetricDefinition(
        REQUEST_DURATION_SECONDS,
        "histogram",
        "Request duration in seconds",
        ("method",),
        buckets=tuple(LATENCY_BUCKETS),
    ),
    TRANSPORT_ERRORS_TOTAL: MetricDefinition(
        TRANSPORT_ERRORS_TOTAL,
        "counter",
        "Total requests that failed without a response",
        ("method", "error_type"),
    ),
    RETRIES_TOTAL: MetricDefinition(
        RETRIES_TOTAL,
        "counter",
        "Total retry attempts",
        ("method", "reason"),
    ),
    HANDLER_RECYCLES_TOTAL: MetricDefinition(
        HANDLER_RECYCLES_TOTAL,
        "counter",
        "Total pooled transports recycled",
        (),
    ),
}


class HttpMetricsCollector:
    """
    Dict-backed metrics with optional Prometheus mirroring.

    Only metrics listed in METRIC_DEFINITIONS are mirrored to Prometheus;
    anything else is kept in the dict snapshot only.

    Example:
        >>> collector = HttpMetricsCollector(enable_prometheus=False)
        >>> collector.record_retry("GET", "404")
        >>> collector.get_metrics()["counters"][RETRIES_TOTAL]
        {'method=GET,reason=404': 1}
    """

    # Histogram observations kept per label set for the dict snapshot
    MAX_OBSERVATIONS: ClassVar[int] = 5000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: Any | None = None,
    ) -> None:
        """
        Args:
            enable_prometheus: Mirror metrics to prometheus_client if available
            registry: Optional Prometheus CollectorRegistry (useful in tests)
        """
        self._enable_prometheus = enable_prometheus and PROMETHEUS_AVAILABLE
        self._registry = registry if registry is not None else REGISTRY

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._histograms: dict[str, dict[str, list[float]]] = defaultdict(
            lambda: defaultdict(list)
        )
        self._prom_metrics: dict[str, Any] = {}
        self._lock = threading.RLock()
        self._server_running = False

    @staticmethod
    def _labels_to_key(labels: dict[str, str] | None) -> str:
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _prom_metric(self, name: str) -> Any | None:
        if not self._enable_prometheus:
            return None
        defn = METRIC_DEFINITIONS.get(name)
        if defn is None:
            return None

        with self._lock:
            if name in self._prom_metrics:
                return self._prom_metrics[name]
            try:
                if defn.metric_type == "histogram" and Histogram is not None:
                    metric = Histogram(
                        name,
                        defn.description,
                        list(defn.label_names),
                        buckets=list(defn.buckets or LATENCY_BUCKETS),
                        registry=self._registry,
                    )
                elif defn.metric_type == "counter" and Counter is not None:
                    metric = Counter(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                else:
                    return None
            except ValueError as e:
                # Duplicate registration in a shared registry
                logger.warning(f"Failed to register Prometheus metric {name}: {e}")
                metric = None
            self._prom_metrics[name] = metric
            return metric

    # === Generic Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        with self._lock:
            self._counters[name][self._labels_to_key(labels)] += value

        prom = self._prom_metric(name)
        if prom is not None:
            (prom.labels(**labels) if labels else prom).inc(value)

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        with self._lock:
            observations = self._histograms[name][self._labels_to_key(labels)]
            observations.append(value)
            if len(observations) > self.MAX_OBSERVATIONS:
                del observations[: len(observations) - self.MAX_OBSERVATIONS]

        prom = self._prom_metric(name)
        if prom is not None:
            (prom.labels(**labels) if labels else prom).observe(value)

    # === Request Lifecycle ===

    def record_request(self, method: str, status_code: int, duration: float) -> None:
        """Record a completed request and its duration."""
        self.inc_counter(
            REQUESTS_TOTAL,
            labels={"method": method, "status_class": status_class(status_code)},
        )
        self.observe_histogram(
            REQUEST_DURATION_SECONDS, duration, labels={"method": method}
        )

    def record_transport_error(self, method: str, error: BaseException) -> None:
        """Record a request that failed without a response."""
        self.inc_counter(
            TRANSPORT_ERRORS_TOTAL,
            labels={"method": method, "error_type": type(error).__name__},
        )

    def record_retry(self, method: str, reason: str) -> None:
        """Record one retry attempt issued by the retry policy."""
        self.inc_counter(RETRIES_TOTAL, labels={"method": method, "reason": reason})

    def record_handler_recycle(self) -> None:
        self.inc_counter(HANDLER_RECYCLES_TOTAL)

    # === Snapshot Operations ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns:
            {
                "counters": {"metric_name": {"label_key": value, ...}, ...},
                "histograms": {"metric_name": {"label_key": {...}, ...}, ...}
            }
        """
        with self._lock:
            counters = {
                name: dict(label_values)
                for name, label_values in self._counters.items()
            }
            histograms: dict[str, dict[str, dict[str, float]]] = {}
            for name, label_values in self._histograms.items():
                histograms[name] = {
                    label_key: {
                        "count": len(observations),
                        "sum": sum(observations),
                        "min": min(observations),
                        "max": max(observations),
                    }
                    for label_key, observations in label_values.items()
                    if observations
                }

        return {"counters": counters, "histograms": histograms}

    def reset(self) -> None:
        """Reset dict-based metrics. Prometheus metrics are left untouched."""
        with self._lock:
            self._counters.clear()
            self._histograms.clear()

    # === Prometheus HTTP Server ===

    def start_http_server(self, host: str = "127.0.0.1", port: int = 9090) -> bool:
        """
        Start the Prometheus HTTP server for metrics scraping.

        Returns:
            True if the server is running, False if prometheus_client is
            not installed or the server failed to start
        """
        if not PROMETHEUS_AVAILABLE or start_http_server is None:
            logger.warning(
                "Cannot start Prometheus server: prometheus_client not installed"
            )
            return False

        if self._server_running:
            return True

        try:
            start_http_server(port, addr=host, registry=self._registry)
        except OSError as e:
            logger.error(f"Failed to start Prometheus server: {e}")
            return False
        self._server_running = True
        logger.info(f"Prometheus metrics server started on {host}:{port}")
        return True

    @property
    def prometheus_enabled(self) -> bool:
        return self._enable_prometheus

    @property
    def server_running(self) -> bool:
        return self._server_running


# =============================================================================
# Singleton Pattern
# =============================================================================

_global_collector: HttpMetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(enable_prometheus: bool = True) -> HttpMetricsCollector:
    """
    Get or create the global metrics collector singleton.

    Args:
        enable_prometheus: Whether to enable Prometheus metrics
            (only used on first call)
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = HttpMetricsCollector(
                    enable_prometheus=enable_prometheus
                )

    return _global_collector


def reset_metrics_collector() -> None:
    """Drop the global collector so the next call creates a fresh one (tests)."""
    global _global_collector
    with _collector_lock:
        if _global_collector:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "PROMETHEUS_AVAILABLE",
    "HttpMetricsCollector",
    "MetricDefinition",
    "get_metrics_collector",
    "reset_metrics_collector",
]
