# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability for typed HTTP clients.

Classes:
    HttpMetricsCollector: Dict-backed metrics mirrored to Prometheus when available.

Protocols:
    MetricsCollectorProtocol: Recording interface used by executors and transports.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.

Constants:
    PROMETHEUS_AVAILABLE: Whether prometheus_client is available.
"""

from .collector import (
    METRIC_DEFINITIONS,
    PROMETHEUS_AVAILABLE,
    HttpMetricsCollector,
    MetricDefinition,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    HANDLER_RECYCLES_TOTAL,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
    REQUEST_DURATION_SECONDS,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
    TRANSPORT_ERRORS_TOTAL,
    status_class,
)
from .protocols import MetricsCollectorProtocol

__all__ = [
    "HANDLER_RECYCLES_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "PROMETHEUS_AVAILABLE",
    "REQUESTS_TOTAL",
    "REQUEST_DURATION_SECONDS",
    "RETRIES_TOTAL",
    "TRANSPORT_ERRORS_TOTAL",
    "HttpMetricsCollector",
    "MetricDefinition",
    "MetricsCollectorProtocol",
    "get_metrics_collector",
    "reset_metrics_collector",
    "status_class",
]
