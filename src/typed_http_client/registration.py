# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Registration of typed HTTP clients.

This module wires ClientOptions into httpx:

- build_http_client: one configured httpx.AsyncClient (base address, timeout,
  default headers, handler lifetime, optional retry policy)
- build_executor: a RequestExecutor with separate clients for async and sync use
- ClientRegistry: the explicit object graph an application assembles at
  startup. Each registration owns one executor; every ``resolve`` returns a
  new typed client instance bound to it.

Transport chain built for every client:

    httpx.AsyncClient -> RetryTransport (retry_count > 0)
                      -> RecyclingTransport -> httpx.AsyncHTTPTransport
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypeVar

import httpx

from .client import AbstractHttpClient
from .config import DEFAULT_HANDLER_LIFETIME, ClientOptions
from .exceptions import ClientNotRegisteredError, ConfigurationError
from .executor import RequestExecutor
from .observability.collector import get_metrics_collector
from .observability.protocols import MetricsCollectorProtocol
from .retry import RetryPolicy, RetryTransport, SleepFunc
from .transport import RecyclingTransport, TransportFactory

logger = logging.getLogger(__name__)

ClientT = TypeVar("ClientT")


def _metrics_for(
    options: ClientOptions, metrics: MetricsCollectorProtocol | None
) -> MetricsCollectorProtocol | None:
    if metrics is not None:
        return metrics
    return get_metrics_collector() if options.metrics_enabled else None


def build_http_client(
    options: ClientOptions,
    *,
    transport_factory: TransportFactory = httpx.AsyncHTTPTransport,
    sleep: SleepFunc | None = None,
    metrics: MetricsCollectorProtocol | None = None,
) -> httpx.AsyncClient:
    """
    Build an httpx.AsyncClient configured from ``options``.

    Args:
        options: Registration parameters
        transport_factory: Builds the pooled inner transport (tests inject
            httpx.MockTransport here)
        sleep: Async sleep used between retries
        metrics: Collector for retry and recycle events
    """
    metrics = _metrics_for(options, metrics)
    transport: httpx.AsyncBaseTransport = RecyclingTransport(
        options.handler_lifetime, transport_factory, metrics=metrics
    )
    if options.retry_count > 0:
        transport = RetryTransport(
            transport,
            RetryPolicy.from_options(options),
            sleep=sleep,
            metrics=metrics,
        )

    kwargs = {}
    if options.timeout is not None:
        kwargs["timeout"] = httpx.Timeout(options.timeout)
    return httpx.AsyncClient(
        base_url=options.base_url,
        headers=dict(options.headers) if options.headers else None,
        transport=transport,
        **kwargs,
    )


def build_executor(
    options: ClientOptions,
    *,
    transport_factory: TransportFactory = httpx.AsyncHTTPTransport,
    sleep: SleepFunc | None = None,
    metrics: MetricsCollectorProtocol | None = None,
    logger: logging.Logger | None = None,
) -> RequestExecutor:
    """Build a RequestExecutor with one client per event loop it runs on."""
    metrics = _metrics_for(options, metrics)

    def make_client() -> httpx.AsyncClient:
        return build_http_client(
            options,
            transport_factory=transport_factory,
            sleep=sleep,
            metrics=metrics,
        )

    return RequestExecutor(
        make_client(),
        logger=logger,
        sync_client=make_client(),
        metrics=metrics,
        keep_base_path=options.keep_base_path,
    )


@dataclass
class ClientRegistration:
    """A registered typed client and the executor it is bound to."""

    implementation: type[AbstractHttpClient]
    options: ClientOptions
    executor: RequestExecutor


class ClientRegistry:
    """
    Explicit registry of typed HTTP clients.

    Example:
        >>> registry = ClientRegistry()
        >>> registry.register_client(
        ...     UsersClient, "https://users.internal", timeout=10.0, retry_count=3
        ... )
        >>> users = registry.resolve(UsersClient)
        >>> result = users.get_user(1)
    """

    def __init__(
        self,
        *,
        transport_factory: TransportFactory = httpx.AsyncHTTPTransport,
        sleep: SleepFunc | None = None,
        metrics: MetricsCollectorProtocol | None = None,
    ) -> None:
        """
        Args:
            transport_factory: Pooled transport factory used by every
                registration (tests inject httpx.MockTransport)
            sleep: Async sleep used between retries
            metrics: Collector shared by every registration
        """
        self._transport_factory = transport_factory
        self._sleep = sleep
        self._metrics = metrics
        self._registrations: dict[type, ClientRegistration] = {}

    def register_client(
        self,
        client_cls: type[ClientT],
        base_url: str,
        *,
        timeout: float | None = None,
        handler_lifetime: float | None = None,
        headers: Mapping[str, str] | None = None,
        retry_count: int = 0,
        service: type | None = None,
        **options: object,
    ) -> ClientRegistry:
        """
        Register a typed client.

        Args:
            client_cls: Implementation deriving from AbstractHttpClient
            base_url: Base address of the target service
            timeout: Client-wide request timeout in seconds
            handler_lifetime: Pooled transport lifetime in seconds
                (defaults to 5 minutes)
            headers: Default headers applied once at client construction
            retry_count: Retries on transient errors, 408, 5xx and 404
                (0 disables retries)
            service: Optional interface type to register the client under;
                ``client_cls`` must derive from it
            **options: Additional ClientOptions fields
                (keep_base_path, backoff_base, retry_on_not_found,
                metrics_enabled)

        Returns:
            The registry, for chaining

        Raises:
            ConfigurationError: If the types do not line up or the key is
                already registered
            ValueError: If an option is invalid
        """
        if not (isinstance(client_cls, type) and issubclass(client_cls, AbstractHttpClient)):
            raise ConfigurationError(
                f"{client_cls!r} must derive from AbstractHttpClient"
            )
        if service is not None and not issubclass(client_cls, service):
            raise ConfigurationError(
                f"{client_cls.__qualname__} does not implement {service.__qualname__}"
            )

        key = service if service is not None else client_cls
        if key in self._registrations:
            raise ConfigurationError(f"{key.__qualname__} is already registered")

        client_options = ClientOptions(
            base_url=base_url,
            timeout=timeout,
            handler_lifetime=(
                handler_lifetime
                if handler_lifetime is not None
                else DEFAULT_HANDLER_LIFETIME
            ),
            headers=headers,
            retry_count=retry_count,
            **options,  # type: ignore[arg-type]
        )
        executor = build_executor(
            client_options,
            transport_factory=self._transport_factory,
            sleep=self._sleep,
            metrics=self._metrics,
            logger=logging.getLogger(
                f"{client_cls.__module__}.{client_cls.__qualname__}"
            ),
        )
        self._registrations[key] = ClientRegistration(
            implementation=client_cls,
            options=client_options,
            executor=executor,
        )
        logger.info(
            f"Registered {client_cls.__qualname__} for {base_url} "
            f"(retry_count={retry_count}, timeout={timeout})"
        )
        return self

    def resolve(self, key: type[ClientT]) -> ClientT:
        """
        Create a typed client for ``key``.

        Raises:
            ClientNotRegisteredError: If ``key`` was never registered
        """
        registration = self._registrations.get(key)
        if registration is None:
            raise ClientNotRegisteredError(key)
        client = registration.implementation(registration.executor)
        return client  # type: ignore[return-value]

    def registration(self, key: type) -> ClientRegistration:
        registration = self._registrations.get(key)
        if registration is None:
            raise ClientNotRegisteredError(key)
        return registration

    def __contains__(self, key: object) -> bool:
        return key in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)

    async def aclose(self) -> None:
        """Close every executor from async code."""
        registrations, self._registrations = self._registrations, {}
        for registration in registrations.values():
            await registration.executor.aclose()

    def close(self) -> None:
        """Close every executor from sync code."""
        registrations, self._registrations = self._registrations, {}
        for registration in registrations.values():
            registration.executor.close()

    async def __aenter__(self) -> ClientRegistry:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __enter__(self) -> ClientRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "ClientRegistration",
    "ClientRegistry",
    "build_executor",
    "build_http_client",
]
