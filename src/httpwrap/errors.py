"""Exception hierarchy raised by httpwrap."""

from __future__ import annotations

from typing import Optional


class HttpWrapError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(HttpWrapError, ValueError):
    pass


class SerializationError(HttpWrapError):
    """The request body could not be encoded as JSON. No request was sent."""


class TransportError(HttpWrapError):
    """No response was obtained after every attempt failed at transport level."""

    def __init__(self, message: str, *, attempts: int, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class RequestCancelledError(TransportError):
    pass


class DecodeError(HttpWrapError):
    """The response body is not JSON of the expected shape."""


class ResponseReadError(HttpWrapError):
    """Reading the response body failed or the body was already consumed."""


__all__ = [
    "HttpWrapError",
    "ConfigurationError",
    "SerializationError",
    "TransportError",
    "RequestCancelledError",
    "DecodeError",
    "ResponseReadError",
]
