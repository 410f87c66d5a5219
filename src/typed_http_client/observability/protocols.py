# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for metrics collection backends.

The request executor and the transports only call the recording methods
below, so any object providing them (StatsD or OpenTelemetry bridges, test
doubles) can be injected in place of HttpMetricsCollector.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsCollectorProtocol(Protocol):
    """
    Protocol for metrics collection backends.

    Example:
        >>> class MyCollector:
        ...     def record_request(self, method, status_code, duration): pass
        ...     def record_transport_error(self, method, error): pass
        ...     def record_retry(self, method, reason): pass
        ...     def record_handler_recycle(self): pass
        >>>
        >>> isinstance(MyCollector(), MetricsCollectorProtocol)
        True
    """

    def record_request(self, method: str, status_code: int, duration: float) -> None:
        """
        Record a request that produced a response.

        Args:
            method: HTTP verb
            status_code: Final status code (after retries)
            duration: Wall-clock seconds including retries
        """
        ...

    def record_transport_error(self, method: str, error: BaseException) -> None:
        """Record a request that failed without a response."""
        ...

    def record_retry(self, method: str, reason: str) -> None:
        """
        Record one retry attempt.

        Args:
            method: HTTP verb
            reason: Status code or exception class name that triggered the retry
        """
        ...

    def record_handler_recycle(self) -> None:
        """Record a pooled transport being replaced after its lifetime."""
        ...


__all__ = ["MetricsCollectorProtocol"]
