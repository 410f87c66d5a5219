# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
JSON codec for request parameters and response bodies.

Serialization goes through pydantic_core so that plain mappings, dataclasses
and pydantic models all produce the same compact JSON. Deserialization uses a
cached pydantic TypeAdapter per target type; validation errors are left to
propagate to the caller.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic_core import to_json

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json"


@lru_cache(maxsize=256)
def _adapter_for(response_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(response_type)


def encode(params: Any) -> bytes:
    """Serialize request parameters to a JSON body."""
    return to_json(params)


def decode(text: str, response_type: type[T] | Any = Any) -> T:
    """
    Deserialize a response body into ``response_type``.

    Args:
        text: Raw response body
        response_type: Target type. ``Any`` returns the parsed JSON as-is.

    Raises:
        pydantic.ValidationError: If the body is not valid JSON or does not
            match ``response_type``.
    """
    try:
        adapter = _adapter_for(response_type)
    except TypeError:
        # Unhashable generic aliases cannot be cached
        adapter = TypeAdapter(response_type)
    return adapter.validate_json(text)


__all__ = ["JSON_CONTENT_TYPE", "decode", "encode"]
