# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for typed HTTP client unit tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from typed_http_client.config import ClientOptions
from typed_http_client.executor import RequestExecutor
from typed_http_client.observability.collector import reset_metrics_collector
from typed_http_client.registration import build_executor

BASE_URL = "https://api.test"


class FakeServer:
    """
    Scripted request handler for httpx.MockTransport.

    Each request consumes the next scripted item; the last item is repeated
    once the script runs out. Items may be responses, exceptions to raise,
    or callables taking the request.
    """

    def __init__(self, *script: Any) -> None:
        self.requests: list[httpx.Request] = []
        self._script = list(script) or [httpx.Response(200)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        # Fresh response per call so repeated items are never shared
        return httpx.Response(
            item.status_code, headers=item.headers, content=item.content
        )

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def transport_factory(self) -> Callable[[], httpx.AsyncBaseTransport]:
        return lambda: httpx.MockTransport(self)


class SleepRecorder:
    """Async sleep replacement recording the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_executor(
    server: FakeServer,
    *,
    sleep: SleepRecorder | None = None,
    metrics: Any = None,
    **options: Any,
) -> RequestExecutor:
    options.setdefault("base_url", BASE_URL)
    return build_executor(
        ClientOptions(**options),
        transport_factory=server.transport_factory(),
        sleep=sleep,
        metrics=metrics,
    )


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture(autouse=True)
def _reset_global_collector():
    reset_metrics_collector()
    yield
    reset_metrics_collector()
