# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Client Configuration for Typed HTTP Clients

This module provides the options consumed once when a typed client is
registered: base address, timeout, default headers, handler lifetime and
retry behavior.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlsplit

DEFAULT_HANDLER_LIFETIME = 300.0
"""Default handler lifetime in seconds (5 minutes)."""


@dataclass(frozen=True)
class ClientOptions:
    """
    Registration parameters for a typed HTTP client.

    Options are applied once when the underlying httpx client is built. They
    are never mutated while requests are in flight.
    """

    # === Addressing ===

    base_url: str
    """Absolute http(s) base address. Action paths replace its path."""

    keep_base_path: bool = False
    """Append action paths to the base address path instead of replacing it."""

    headers: Mapping[str, str] | None = None
    """Default headers sent with every request."""

    # === Timeouts and Pooling ===

    timeout: float | None = None
    """Client-wide request timeout in seconds. None keeps the httpx default."""

    handler_lifetime: float = DEFAULT_HANDLER_LIFETIME
    """Seconds a pooled transport is kept before it is recycled."""

    # === Retry Policy ===

    retry_count: int = 0
    """Number of retries on transient errors. 0 disables the retry policy."""

    backoff_base: float = 2.0
    """Base of the exponential backoff; retry N waits backoff_base ** N seconds."""

    retry_on_not_found: bool = True
    """Treat HTTP 404 as retryable, in addition to 408 and 5xx."""

    # === Metrics ===

    metrics_enabled: bool = False
    """Record request metrics on the global metrics collector."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("base_url must be an absolute http(s) URL")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.handler_lifetime <= 0:
            raise ValueError("handler_lifetime must be positive")
        if self.retry_count < 0:
            raise ValueError("retry_count must be non-negative")
        if self.backoff_base < 1.0:
            raise ValueError("backoff_base must be at least 1.0")


__all__ = [
    "DEFAULT_HANDLER_LIFETIME",
    "ClientOptions",
]
