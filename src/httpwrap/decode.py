"""Stateless helpers that consume an InboundResponse body."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Type, TypeVar

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from .errors import DecodeError
from .response import InboundResponse

T = TypeVar("T")


@lru_cache(maxsize=128)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def parse_json(body: bytes, shape: Type[T] = Any) -> T:  # type: ignore[assignment]
    """Validate ``body`` as JSON of ``shape`` (any type pydantic can validate)."""
    if not body.strip():
        raise DecodeError("response body is empty")
    try:
        adapter = _adapter(shape)
    except PydanticUserError as exc:
        raise DecodeError(f"cannot decode into unsupported shape {shape!r}: {exc}") from exc
    try:
        return adapter.validate_json(body, strict=True)
    except ValidationError as exc:
        raise DecodeError(f"response body does not decode as {getattr(shape, '__name__', shape)}: {exc}") from exc


def decode_json(response: InboundResponse, shape: Type[T] = Any) -> T:  # type: ignore[assignment]
    return parse_json(response.read(), shape)


async def adecode_json(response: InboundResponse, shape: Type[T] = Any) -> T:  # type: ignore[assignment]
    return parse_json(await response.aread(), shape)


def read_raw(response: InboundResponse) -> bytes:
    return response.read()


async def aread_raw(response: InboundResponse) -> bytes:
    return await response.aread()


__all__ = ["parse_json", "decode_json", "adecode_json", "read_raw", "aread_raw"]
