# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Pooled transport with a bounded handler lifetime.

RecyclingTransport owns one pooled inner transport at a time. Once the
handler lifetime has elapsed, the next request gets a freshly built inner
transport (and so fresh connections, picking up DNS changes). The expired
transport keeps serving the requests already in flight and is closed as soon
as the last of their response streams is closed.

All bookkeeping happens on the event loop that owns the client, without
awaiting between reading and updating the handler state, so no lock is
needed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

import httpx

from .config import DEFAULT_HANDLER_LIFETIME
from .observability.protocols import MetricsCollectorProtocol

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], httpx.AsyncBaseTransport]


@dataclass
class _Handler:
    transport: httpx.AsyncBaseTransport
    created_at: float
    in_flight: int = 0


class _TrackedStream(httpx.AsyncByteStream):
    """Response stream that releases its handler when closed."""

    def __init__(
        self,
        stream: httpx.AsyncByteStream,
        release: Callable[[], Awaitable[None]],
    ) -> None:
        self._stream = stream
        self._release = release
        self._released = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            yield chunk

    async def aclose(self) -> None:
        try:
            await self._stream.aclose()
        finally:
            if not self._released:
                self._released = True
                await self._release()


class RecyclingTransport(httpx.AsyncBaseTransport):
    """
    httpx transport that recycles its pooled inner transport periodically.

    Args:
        lifetime: Seconds an inner transport is used for new requests
        transport_factory: Builds a new pooled inner transport
        clock: Monotonic clock (injectable for tests)
        metrics: Optional collector notified on every recycle
    """

    def __init__(
        self,
        lifetime: float = DEFAULT_HANDLER_LIFETIME,
        transport_factory: TransportFactory = httpx.AsyncHTTPTransport,
        *,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsCollectorProtocol | None = None,
    ) -> None:
        if lifetime <= 0:
            raise ValueError("lifetime must be positive")
        self._lifetime = lifetime
        self._factory = transport_factory
        self._clock = clock
        self._metrics = metrics
        self._active = _Handler(transport_factory(), clock())
        self._expired: list[_Handler] = []
        self._closed = False

    @property
    def lifetime(self) -> float:
        return self._lifetime

    @property
    def expired_count(self) -> int:
        """Number of expired transports still draining."""
        return len(self._expired)

    def _current_handler(self) -> _Handler:
        now = self._clock()
        if now - self._active.created_at >= self._lifetime:
            logger.debug(
                f"Handler lifetime of {self._lifetime}s elapsed, "
                f"recycling pooled transport ({self._active.in_flight} in flight)"
            )
            self._expired.append(self._active)
            self._active = _Handler(self._factory(), now)
            if self._metrics is not None:
                self._metrics.record_handler_recycle()
        return self._active

    async def _close_drained(self) -> None:
        drained = [h for h in self._expired if h.in_flight == 0]
        if not drained:
            return
        self._expired = [h for h in self._expired if h.in_flight > 0]
        for handler in drained:
            await handler.transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._closed:
            raise RuntimeError("Transport has been closed")

        # Claim the handler before the first await so a concurrent recycle
        # never sees it drained
        handler = self._current_handler()
        handler.in_flight += 1

        async def release() -> None:
            handler.in_flight -= 1
            await self._close_drained()

        try:
            await self._close_drained()
            response = await handler.transport.handle_async_request(request)
        except BaseException:
            await release()
            raise

        return httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=_TrackedStream(response.stream, release),
            extensions=response.extensions,
        )

    async def aclose(self) -> None:
        self._closed = True
        handlers = [self._active, *self._expired]
        self._expired = []
        for handler in handlers:
            await handler.transport.aclose()


__all__ = ["RecyclingTransport", "TransportFactory"]
