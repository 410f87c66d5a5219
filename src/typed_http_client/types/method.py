# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""HTTP method names."""

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP verbs accepted by the request executor.

    Members compare equal to their upper-case string value, so callers may
    pass either ``HttpMethod.GET`` or ``"GET"``.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, value: "str | HttpMethod") -> "HttpMethod":
        """Normalize a verb given as string or enum member."""
        if isinstance(value, cls):
            return value
        return cls(str(value).upper())


__all__ = ["HttpMethod"]
