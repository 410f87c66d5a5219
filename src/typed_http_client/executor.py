# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request executor: the composition core of typed HTTP clients.

RequestExecutor turns a logical action path plus parameters into one HTTP
exchange over an injected httpx.AsyncClient and wraps the response in a
ResultMessage:

- The action path replaces the path of the base address; the base query
  string is kept. With ``keep_base_path`` the action path is appended to the
  base path instead. Any query string on the base address or on the action
  path is the "existing" query.
- GET parameters are merged into the existing query; supplied keys replace
  existing keys of the same name. Other verbs send parameters as a JSON body.
- Cookies are sent as a single ``Cookie`` header of ``key=value`` pairs
  joined by ``;``.
- A 2xx response with a body is deserialized into the requested type; any
  other response with a body keeps the raw text in ``error``; an empty body
  yields an envelope with only the status code.
- Transport failures and unsupported verbs are logged with method, base
  address and path, then re-raised unchanged. Decode failures propagate
  without logging.

Every operation accepts a ``logger`` so that typed clients can report
failures through their own logger; the executor's logger is the fallback.

Sync variants run the coroutine on a private event loop in a worker thread
and block the caller until it completes, so they never block the loop that
must resolve the request.
"""

from __future__ import annotations

import asyncio
import logging
import re
import threading
import time
from collections.abc import Coroutine, Mapping
from concurrent.futures import Future
from typing import Any, TypeVar

import httpx

from . import codec
from .exceptions import UnimplementedMethodError
from .observability.protocols import MetricsCollectorProtocol
from .types.method import HttpMethod
from .types.result import ResultMessage

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = Mapping[str, Any]

# Verbs accepted by the two-verb dispatch path
_DISPATCH_METHODS = frozenset({HttpMethod.GET.value, HttpMethod.POST.value})

# RFC 9110 token characters
_METHOD_TOKEN = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")

# Failures raised when no response could be obtained. httpx raises
# RuntimeError when sending through a closed client.
TRANSPORT_FAILURES: tuple[type[Exception], ...] = (httpx.HTTPError, RuntimeError)


def normalize_method(method: HttpMethod | str) -> str:
    """
    Upper-case an HTTP verb given as enum member or string.

    Any token is accepted (``PROPFIND``, ``REPORT``, ...), not only the
    members of HttpMethod.

    Raises:
        ValueError: If ``method`` is not a valid HTTP token
    """
    name = method.value if isinstance(method, HttpMethod) else str(method).upper()
    if not _METHOD_TOKEN.match(name):
        raise ValueError(f"Invalid HTTP method {method!r}")
    return name


def build_cookie_header(cookies: Mapping[str, str]) -> str:
    """Join cookies as ``k1=v1;k2=v2`` in the order supplied."""
    return ";".join(f"{key}={value}" for key, value in cookies.items())


def compose_url(
    base_url: httpx.URL | str,
    path: str,
    params: Params | None = None,
    *,
    keep_base_path: bool = False,
) -> httpx.URL:
    """
    Resolve an action path against a base address.

    Args:
        base_url: Client base address, optionally with a query
        path: Action path, optionally with its own query string
        params: Query parameters merged over the existing query
        keep_base_path: Append the action path to the base path instead of
            replacing it

    Example:
        >>> str(compose_url("https://api.test/v1?a=1", "items", {"a": "2", "b": "3"}))
        'https://api.test/items?a=2&b=3'
        >>> str(compose_url("https://api.test/v1", "items", keep_base_path=True))
        'https://api.test/v1/items'
    """
    base = httpx.URL(base_url)
    action_path, _, action_query = path.partition("?")

    prefix = base.path.rstrip("/") if keep_base_path else ""
    suffix = action_path.lstrip("/")
    url = base.copy_with(path=f"{prefix}/{suffix}" if suffix else prefix or "/")

    if action_query:
        url = url.copy_merge_params(httpx.QueryParams(action_query))
    if params:
        url = url.copy_merge_params({k: str(v) for k, v in params.items()})
    return url


class _LoopThread:
    """Private event loop running in a daemon thread, used by sync calls."""

    def __init__(self, name: str) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name=name, daemon=True
        )
        self._thread.start()

    def submit(self, coro: Coroutine[Any, Any, T]) -> Future[T]:
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        return self.submit(coro).result()

    def stop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()


class RequestExecutor:
    """
    Executes requests for typed clients over a shared httpx.AsyncClient.

    Args:
        client: Configured async client (base address, headers, timeout,
            retry and pooling transports)
        logger: Fallback logger for failures. Defaults to this module's logger.
        sync_client: Client used by the sync variants on the worker loop.
            Pooled connections are bound to the loop that opened them, so an
            executor used both from async code and through sync calls needs a
            second client here. Defaults to ``client``.
        metrics: Optional collector for request metrics
        keep_base_path: Append action paths to the base path instead of
            replacing it

    Example:
        >>> async with RequestExecutor(httpx.AsyncClient(base_url=url)) as executor:
        ...     result = await executor.async_get("users/1", response_type=User)
        ...     if result.is_success:
        ...         print(result.content.name)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        logger: logging.Logger | None = None,
        sync_client: httpx.AsyncClient | None = None,
        metrics: MetricsCollectorProtocol | None = None,
        keep_base_path: bool = False,
    ) -> None:
        self._client = client
        self._sync_client = sync_client if sync_client is not None else client
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._metrics = metrics
        self._keep_base_path = keep_base_path
        self._loop_thread: _LoopThread | None = None
        self._loop_lock = threading.Lock()

    @property
    def base_url(self) -> httpx.URL:
        return self._client.base_url

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _url_for(
        self,
        base_url: httpx.URL,
        path: str,
        params: Params | None = None,
    ) -> httpx.URL:
        return compose_url(
            base_url, path, params, keep_base_path=self._keep_base_path
        )

    # === Response Handling ===

    @staticmethod
    def _to_result(
        response: httpx.Response, response_type: type[T] | Any
    ) -> ResultMessage[T]:
        text = response.text
        if not text:
            return ResultMessage(status_code=response.status_code)
        if response.is_success:
            return ResultMessage(
                status_code=response.status_code,
                content=codec.decode(text, response_type),
            )
        return ResultMessage(status_code=response.status_code, error=text)

    # === Async Operations ===

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        params: Params | None,
        cookies: Mapping[str, str] | None,
        log: logging.Logger,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        if cookies:
            headers["Cookie"] = build_cookie_header(cookies)

        if method == HttpMethod.GET.value:
            url = self._url_for(client.base_url, path, params)
            content = None
        else:
            url = self._url_for(client.base_url, path)
            content = codec.encode(params) if params is not None else None
            if content is not None:
                headers["Content-Type"] = codec.JSON_CONTENT_TYPE

        request = client.build_request(
            method, url, content=content, headers=headers or None
        )
        started = time.perf_counter()
        try:
            response = await client.send(request)
        except TRANSPORT_FAILURES as exc:
            log.error(
                f"Error on {method} from '{self._url_for(client.base_url, path)}' : {exc}",
                exc_info=exc,
            )
            if self._metrics is not None:
                self._metrics.record_transport_error(method, exc)
            raise

        if self._metrics is not None:
            self._metrics.record_request(
                method, response.status_code, time.perf_counter() - started
            )
        return response

    async def _execute(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        params: Params | None,
        cookies: Mapping[str, str] | None,
        response_type: type[T] | Any,
        log: logging.Logger,
    ) -> ResultMessage[T]:
        response = await self._send(client, method, path, params, cookies, log)
        return self._to_result(response, response_type)

    async def dispatch(
        self,
        method: HttpMethod | str,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
        logger: logging.Logger | None = None,
    ) -> ResultMessage[T]:
        """
        Two-verb dispatch used by the get/post helpers.

        Raises:
            UnimplementedMethodError: If ``method`` is neither GET nor POST.
                Logged and raised before any request is built.
        """
        log = logger or self._logger
        verb = self._dispatch_verb(method, path, log)
        return await self._execute(
            self._client, verb, path, params, None, response_type, log
        )

    async def async_get(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
        logger: logging.Logger | None = None,
    ) -> ResultMessage[T]:
        """Send a GET request; ``params`` go to the query string."""
        return await self.dispatch(
            HttpMethod.GET, path, params, response_type=response_type, logger=logger
        )

    async def async_post(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
        logger: logging.Logger | None = None,
    ) -> ResultMessage[T]:
        """Send a POST request; ``params`` go to the JSON body."""
        return await self.dispatch(
            HttpMethod.POST, path, params, response_type=response_type, logger=logger
        )

    async def async_send(
        self,
        path: str,
        method: HttpMethod | str,
        params: Params | None = None,
        cookies: Mapping[str, str] | None = None,
        *,
        response_type: type[T] | Any = Any,
        logger: logging.Logger | None = None,
    ) -> ResultMessage[T]:
        """
        Send a request with any verb and optional cookies.

        Raises:
            ValueError: If ``method`` is not a valid HTTP token
        """
        return await self._execute(
            self._client,
            normalize_method(method),
            path,
            params,
            cookies,
            response_type,
            logger or self._logger,
        )

    # === Sync Operations ===

    def _dispatch_verb(
        self, method: HttpMethod | str, path: str, log: logging.Logger
    ) -> str:
        name = method.value if isinstance(method, HttpMethod) else str(method).upper()
        if name in _DISPATCH_METHODS:
            return name
        exc = UnimplementedMethodError(name)
        log.error(
            f"Error on {name} from '{self._url_for(self.base_url, path)}' : {exc}",
            exc_info=exc,
        )
        raise exc

    def _worker(self) -> _LoopThread:
        with self._loop_lock:
            if self._loop_thread is None:
                self._loop_thread = _LoopThread(f"{type(self).__name__}-sync")
            return self._loop_thread

    def sync_dispatch(
        self,
        method: HttpMethod | str,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
        logger: logging.Logger | None = None,
    ) -> ResultMessage[T]:
        """Blocking counterpart of ``dispatch``."""
        log = logger or self._logger
        verb = self._dispatch_verb(method, path, log)
        try:
            return self._worker().run(
                self._execute(
                    self._sync_client, verb, path, params, None, response_type, log
                )
            )
        except RuntimeError as exc:
            log.error(
                f"Error on sync {verb} from '{self._url_for(self.base_url, path)}' : {exc}",
                exc_info=exc,
            )
            raise

    def sync_get(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
        logger: logging.Logger | None = None,
    ) -> ResultMessage[T]:
        """Blocking GET. Safe to call from inside a running event loop."""
        return self.sync_dispatch(
            HttpMethod.GET, path, params, response_type=response_type, logger=logger
        )

    def sync_post(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
        logger: logging.Logger | None = None,
    ) -> ResultMessage[T]:
        """Blocking POST. Safe to call from inside a running event loop."""
        return self.sync_dispatch(
            HttpMethod.POST, path, params, response_type=response_type, logger=logger
        )

    # === Lifecycle ===

    def _take_worker(self) -> _LoopThread | None:
        with self._loop_lock:
            worker, self._loop_thread = self._loop_thread, None
        return worker

    async def aclose(self) -> None:
        """Close the clients from async code."""
        await self._client.aclose()
        worker = self._take_worker()
        if self._sync_client is self._client:
            if worker is not None:
                worker.stop()
            return
        if worker is None:
            await self._sync_client.aclose()
            return
        try:
            await asyncio.wrap_future(worker.submit(self._sync_client.aclose()))
        finally:
            worker.stop()

    def close(self) -> None:
        """Close the clients from sync code, on the worker loop."""
        worker = self._worker()
        try:
            worker.run(self._client.aclose())
            if self._sync_client is not self._client:
                worker.run(self._sync_client.aclose())
        finally:
            self._take_worker()
            worker.stop()

    async def __aenter__(self) -> RequestExecutor:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def __enter__(self) -> RequestExecutor:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


__all__ = [
    "TRANSPORT_FAILURES",
    "RequestExecutor",
    "build_cookie_header",
    "compose_url",
    "normalize_method",
]
