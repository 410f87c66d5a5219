# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Result envelope returned from every request operation.

A ResultMessage carries the HTTP status code together with either the
deserialized body (success) or the raw body text (failure). When the server
returns an empty body, both ``content`` and ``error`` are None whatever the
status code is, so callers must always check ``status_code`` as well.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ResultMessage(Generic[T]):
    """
    Response to a single request.

    Attributes:
        status_code: HTTP status code of the response
        content: Deserialized body of a successful response. None on failure
            or when the body was empty.
        error: Raw body text of a failed response. None on success or when
            the body was empty.
    """

    status_code: int
    content: T | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        """True for 2xx status codes."""
        return 200 <= self.status_code < 300

    @property
    def has_content(self) -> bool:
        return self.content is not None


__all__ = ["ResultMessage"]
