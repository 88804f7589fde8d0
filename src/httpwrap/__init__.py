"""Retrying HTTP client wrapper over httpx."""

from .client import AsyncRequestExecutor, RequestExecutor
from .config import ClientConfig
from .decode import adecode_json, aread_raw, decode_json, read_raw
from .errors import (
    ConfigurationError,
    DecodeError,
    HttpWrapError,
    RequestCancelledError,
    ResponseReadError,
    SerializationError,
    TransportError,
)
from .response import InboundResponse

__all__ = [
    "RequestExecutor",
    "AsyncRequestExecutor",
    "ClientConfig",
    "InboundResponse",
    "decode_json",
    "read_raw",
    "adecode_json",
    "aread_raw",
    "HttpWrapError",
    "ConfigurationError",
    "SerializationError",
    "TransportError",
    "RequestCancelledError",
    "DecodeError",
    "ResponseReadError",
]
