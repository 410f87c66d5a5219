# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base class for typed HTTP clients.

Typed clients derive from AbstractHttpClient and expose named endpoints by
calling the protected helpers, which delegate to a shared RequestExecutor.

Example:
    >>> class UsersClient(AbstractHttpClient):
    ...     async def get_user(self, user_id: int) -> ResultMessage[User]:
    ...         return await self._async_get(f"users/{user_id}", response_type=User)
    ...
    ...     def create_user(self, name: str) -> ResultMessage[User]:
    ...         return self._sync_post("users", {"name": name}, response_type=User)
"""

from __future__ import annotations

import logging
from abc import ABC
from collections.abc import Mapping
from typing import Any, TypeVar

import httpx

from .executor import Params, RequestExecutor
from .types.method import HttpMethod
from .types.result import ResultMessage

T = TypeVar("T")


class AbstractHttpClient(ABC):
    """
    Parent class for typed HTTP clients.

    Subclasses receive their executor from the registry (or from
    ``build_http_client``) and never build requests themselves. Sync helpers
    block the calling thread; they run the request on the executor's worker
    loop, so they do not deadlock when called from async code, but they do
    stall that code's event loop until the response arrives.

    Transport failures and unsupported verbs are logged through ``logger``,
    which defaults to the executor's logger.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        logger: logging.Logger | None = None,
    ) -> None:
        self._executor = executor
        self._logger = logger if logger is not None else executor.logger

    @property
    def base_url(self) -> httpx.URL:
        return self._executor.base_url

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    @property
    def logger(self) -> logging.Logger:
        """Logger that failures of this client are reported through."""
        return self._logger

    def _sync_get(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
    ) -> ResultMessage[T]:
        """
        Send a blocking GET request.

        Args:
            path: Action path relative to the base address
            params: Query parameters
            response_type: Type the JSON body is deserialized into
        """
        return self._executor.sync_get(
            path, params, response_type=response_type, logger=self._logger
        )

    def _sync_post(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
    ) -> ResultMessage[T]:
        """
        Send a blocking POST request.

        Args:
            path: Action path relative to the base address
            params: Parameters serialized as the JSON body
            response_type: Type the JSON body is deserialized into
        """
        return self._executor.sync_post(
            path, params, response_type=response_type, logger=self._logger
        )

    async def _async_get(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
    ) -> ResultMessage[T]:
        """Send a GET request."""
        return await self._executor.async_get(
            path, params, response_type=response_type, logger=self._logger
        )

    async def _async_post(
        self,
        path: str,
        params: Params | None = None,
        *,
        response_type: type[T] | Any = Any,
    ) -> ResultMessage[T]:
        """Send a POST request."""
        return await self._executor.async_post(
            path, params, response_type=response_type, logger=self._logger
        )

    async def _async_send(
        self,
        path: str,
        method: HttpMethod | str,
        params: Params | None = None,
        cookies: Mapping[str, str] | None = None,
        *,
        response_type: type[T] | Any = Any,
    ) -> ResultMessage[T]:
        """Send a request with any verb and optional cookies."""
        return await self._executor.async_send(
            path,
            method,
            params,
            cookies,
            response_type=response_type,
            logger=self._logger,
        )


__all__ = ["AbstractHttpClient"]
