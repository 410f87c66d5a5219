# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions."""

from .method import HttpMethod
from .result import ResultMessage

__all__ = [
    "HttpMethod",
    "ResultMessage",
]
