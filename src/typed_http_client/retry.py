# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Retry policy applied at the transport level.

RetryPolicy describes *when* and *how long* to wait: transport failures plus
a set of retryable status codes (408, 5xx and, unless disabled, 404), with an
exponential backoff of ``backoff_base ** attempt`` seconds. RetryTransport
wraps an httpx transport and runs every request through a tenacity
AsyncRetrying controller built from the policy, so typed clients never see
the intermediate attempts.

When the retry budget is exhausted the last outcome is surfaced unchanged:
the final response is returned (so the caller gets an envelope with its
status and body), or the final transport exception is re-raised.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from .config import ClientOptions
from .observability.protocols import MetricsCollectorProtocol

logger = logging.getLogger(__name__)

TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)
"""Transport failures considered likely to succeed on a later attempt."""

REQUEST_TIMEOUT_STATUS = 408
NOT_FOUND_STATUS = 404

SleepFunc = Callable[[float], Awaitable[None]]


def _last_outcome(retry_state: RetryCallState) -> httpx.Response:
    # Returns the final response, or re-raises the final exception
    outcome = retry_state.outcome
    if outcome is None:
        raise RuntimeError("Retry finished without an attempt outcome")
    return outcome.result()


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff retry policy for HTTP requests.

    Attributes:
        retry_count: Maximum number of retries after the first attempt
        backoff_base: Retry N waits ``backoff_base ** N`` seconds
        retry_statuses: Status codes retried in addition to every 5xx

    Example:
        >>> policy = RetryPolicy(retry_count=3)
        >>> [policy.backoff(n) for n in (1, 2, 3)]
        [2.0, 4.0, 8.0]
    """

    retry_count: int
    backoff_base: float = 2.0
    retry_statuses: frozenset[int] = frozenset(
        {REQUEST_TIMEOUT_STATUS, NOT_FOUND_STATUS}
    )

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError("retry_count must be non-negative")

    @classmethod
    def from_options(cls, options: ClientOptions) -> RetryPolicy:
        statuses = {REQUEST_TIMEOUT_STATUS}
        if options.retry_on_not_found:
            statuses.add(NOT_FOUND_STATUS)
        return cls(
            retry_count=options.retry_count,
            backoff_base=options.backoff_base,
            retry_statuses=frozenset(statuses),
        )

    def backoff(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (1-based)."""
        return float(self.backoff_base**attempt)

    def is_retryable_response(self, response: httpx.Response) -> bool:
        status = response.status_code
        return status >= 500 or status in self.retry_statuses

    def build(
        self,
        *,
        sleep: SleepFunc | None = None,
        before_sleep: Callable[[RetryCallState], None] | None = None,
    ) -> AsyncRetrying:
        """
        Build a tenacity controller for one request.

        Args:
            sleep: Async sleep function (defaults to tenacity's asyncio sleep)
            before_sleep: Hook invoked before each backoff delay
        """
        kwargs = {}
        if sleep is not None:
            kwargs["sleep"] = sleep
        return AsyncRetrying(
            retry=(
                retry_if_exception_type(TRANSIENT_EXCEPTIONS)
                | retry_if_result(self.is_retryable_response)
            ),
            # multiplier * base ** (attempt - 1) == base ** attempt
            wait=wait_exponential(
                multiplier=self.backoff_base, exp_base=self.backoff_base
            ),
            stop=stop_after_attempt(self.retry_count + 1),
            before_sleep=before_sleep,
            retry_error_callback=_last_outcome,
            **kwargs,
        )


class RetryTransport(httpx.AsyncBaseTransport):
    """
    httpx transport that retries requests according to a RetryPolicy.

    Responses from abandoned attempts are closed before the next attempt so
    their pooled connections are released.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        policy: RetryPolicy,
        *,
        sleep: SleepFunc | None = None,
        metrics: MetricsCollectorProtocol | None = None,
    ) -> None:
        self._transport = transport
        self._policy = policy
        self._sleep = sleep
        self._metrics = metrics

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def _before_sleep(self, request: httpx.Request, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            reason = type(outcome.exception()).__name__
        elif outcome is not None:
            reason = str(outcome.result().status_code)
        else:
            reason = "unknown"

        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Retrying {request.method} {request.url} after {reason} "
            f"(attempt {retry_state.attempt_number}/{self._policy.retry_count}, "
            f"delay {delay:.2f}s)"
        )
        if self._metrics is not None:
            self._metrics.record_retry(request.method, reason)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._policy.retry_count == 0:
            return await self._transport.handle_async_request(request)

        abandoned: list[httpx.Response] = []

        async def send_once() -> httpx.Response:
            while abandoned:
                await abandoned.pop().aclose()
            response = await self._transport.handle_async_request(request)
            abandoned.append(response)
            return response

        retrying = self._policy.build(
            sleep=self._sleep,
            before_sleep=functools.partial(self._before_sleep, request),
        )
        return await retrying(send_once)

    async def aclose(self) -> None:
        await self._transport.aclose()


__all__ = [
    "TRANSIENT_EXCEPTIONS",
    "RetryPolicy",
    "RetryTransport",
]
