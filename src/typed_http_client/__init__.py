# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Typed HTTP Client - typed request helpers over httpx.

This library lets application code define typed client classes that call a
named base address, serialize parameters automatically and receive JSON
responses as a typed result envelope. Timeouts, retry policy, default
headers and connection lifetime are configured once at registration.

Key Features:
    - ResultMessage envelope: status code plus typed content or raw error text
    - Sync and async GET/POST helpers, plus any verb with cookies
    - Exponential backoff retries on transient errors, 408, 5xx and 404
    - Periodic recycling of pooled connections
    - Optional Prometheus metrics

Quick Start:
    >>> from typed_http_client import AbstractHttpClient, ClientRegistry
    >>>
    >>> class UsersClient(AbstractHttpClient):
    ...     async def get_user(self, user_id: int):
    ...         return await self._async_get(f"users/{user_id}", response_type=User)
    >>>
    >>> registry = ClientRegistry()
    >>> registry.register_client(UsersClient, "https://users.internal", retry_count=3)
    >>> async with registry:
    ...     result = await registry.resolve(UsersClient).get_user(1)

Note: Prometheus metrics require the 'metrics' extra. Install with:
    pip install typed-http-client[metrics]

Version: 1.0.0
"""

__version__ = "1.0.0"

from .client import AbstractHttpClient
from .config import DEFAULT_HANDLER_LIFETIME, ClientOptions
from .exceptions import (
    ClientNotRegisteredError,
    ConfigurationError,
    HttpClientError,
    UnimplementedMethodError,
)
from .executor import (
    RequestExecutor,
    build_cookie_header,
    compose_url,
    normalize_method,
)
from .observability import (
    HttpMetricsCollector,
    MetricsCollectorProtocol,
    get_metrics_collector,
)
from .registration import (
    ClientRegistration,
    ClientRegistry,
    build_executor,
    build_http_client,
)
from .retry import RetryPolicy, RetryTransport
from .transport import RecyclingTransport
from .types import HttpMethod, ResultMessage

__all__ = [
    "DEFAULT_HANDLER_LIFETIME",
    # Clients
    "AbstractHttpClient",
    "ClientNotRegisteredError",
    "ClientOptions",
    "ClientRegistration",
    # Registration
    "ClientRegistry",
    "ConfigurationError",
    # Exceptions
    "HttpClientError",
    "HttpMethod",
    # Observability
    "HttpMetricsCollector",
    "MetricsCollectorProtocol",
    "RecyclingTransport",
    "RequestExecutor",
    # Types
    "ResultMessage",
    # Retry
    "RetryPolicy",
    "RetryTransport",
    "UnimplementedMethodError",
    "build_cookie_header",
    "build_executor",
    "build_http_client",
    "compose_url",
    "get_metrics_collector",
    "normalize_method",
]
