# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the ``typed_http_`` prefix.

Label Best Practices:
    Only categorical labels are used:
    - `method` - HTTP verb (GET, POST, ...)
    - `status_class` - 2xx, 3xx, 4xx, 5xx
    - `error_type` - Exception class name
    - `reason` - Retry reason (status code or exception class name)

    URLs and paths are never used as labels (unbounded cardinality).
"""

METRIC_PREFIX = "typed_http"
"""Prefix for all Prometheus metrics in this library."""

REQUESTS_TOTAL = f"{METRIC_PREFIX}_requests_total"
"""Total requests that produced a response."""

REQUEST_DURATION_SECONDS = f"{METRIC_PREFIX}_request_duration_seconds"
"""Request duration including retries."""

TRANSPORT_ERRORS_TOTAL = f"{METRIC_PREFIX}_transport_errors_total"
"""Total requests that failed without a response."""

RETRIES_TOTAL = f"{METRIC_PREFIX}_retries_total"
"""Total retry attempts issued by the retry policy."""

HANDLER_RECYCLES_TOTAL = f"{METRIC_PREFIX}_handler_recycles_total"
"""Total pooled transports replaced after their lifetime expired."""

LATENCY_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
"""Histogram buckets for request latency in seconds."""


def status_class(status_code: int) -> str:
    """Collapse a status code into its class label (e.g. 404 -> '4xx')."""
    return f"{status_code // 100}xx"


__all__ = [
    "HANDLER_RECYCLES_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "REQUESTS_TOTAL",
    "REQUEST_DURATION_SECONDS",
    "RETRIES_TOTAL",
    "TRANSPORT_ERRORS_TOTAL",
    "status_class",
]
