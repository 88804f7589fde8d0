"""Retrying request executors built on httpx."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from typing import IO, Any, Iterable, Mapping, Optional, Union

import httpx
from pydantic import BaseModel

from .config import ClientConfig
from .errors import RequestCancelledError, SerializationError, TransportError
from .metrics import REQUEST_LATENCY, record_attempt
from .response import InboundResponse

logger = logging.getLogger("httpwrap.client")

METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})
JSON_CONTENT_TYPE = "application/json"

# Streams are drained once so every retry resends identical bytes.
Body = Union[bytes, bytearray, str, IO[bytes], Iterable[bytes], None]


def replayable(body: Body) -> Union[bytes, str, None]:
    if body is None or isinstance(body, (bytes, str)):
        return body
    if isinstance(body, bytearray):
        return bytes(body)
    if hasattr(body, "read"):
        return body.read()
    return b"".join(body)


def encode_json(data: Any) -> bytes:
    """Serialize a request payload; pydantic models are dumped in JSON mode."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    try:
        return json.dumps(data, separators=(",", ":"), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"cannot encode request body as JSON: {exc}") from exc


def merge_headers(*layers: Optional[Mapping[str, str]]) -> httpx.Headers:
    """Later layers win, keys compared case-insensitively."""
    merged = httpx.Headers()
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def _json_headers(headers: Optional[Mapping[str, str]]) -> httpx.Headers:
    return merge_headers({"Content-Type": JSON_CONTENT_TYPE}, headers)


class _Executor:
    """Request construction and retry bookkeeping shared by both executors."""

    def __init__(self, config: ClientConfig) -> None:
        self._config = config

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _build(self, client: Any, method: str, path: str, body: Body, headers: Optional[Mapping[str, str]]) -> httpx.Request:
        verb = method.upper()
        if verb not in METHODS:
            raise ValueError(f"unsupported HTTP method: {method!r}")
        return client.build_request(
            verb,
            self._config.base_url + path,
            content=replayable(body),
            headers=merge_headers(self._config.headers, headers),
        )

    def _attempt_timeout(self, request: httpx.Request, started: float, deadline: Optional[float], attempt: int, last: Optional[BaseException]) -> None:
        if deadline is None:
            return
        remaining = deadline - (time.monotonic() - started)
        if remaining <= 0:
            raise TransportError(
                f"{request.method} {request.url} exceeded its {deadline}s deadline",
                attempts=attempt - 1,
                cause=last,
            ) from last
        request.extensions["timeout"] = httpx.Timeout(min(self._config.timeout, remaining)).as_dict()

    def _delay_fits(self, started: float, deadline: Optional[float]) -> bool:
        if deadline is None:
            return True
        return deadline - (time.monotonic() - started) > self._config.retry_delay

    def _failed(self, request: httpx.Request, attempt: int, exc: httpx.TransportError) -> None:
        record_attempt(request.method, "transport_error")
        if attempt < self._config.max_attempts:
            logger.warning(
                "Request %s %s failed (attempt %d/%d): %s; retrying in %.3fs",
                request.method,
                request.url,
                attempt,
                self._config.max_attempts,
                exc,
                self._config.retry_delay,
            )

    def _exhausted(self, request: httpx.Request, attempts: int, last: Optional[BaseException]) -> TransportError:
        logger.error("Request %s %s failed after %d attempt(s): %s", request.method, request.url, attempts, last)
        return TransportError(
            f"{request.method} {request.url} failed after {attempts} attempt(s): {last}",
            attempts=attempts,
            cause=last,
        )

    @staticmethod
    def _cancelled(request: httpx.Request, attempts: int, last: Optional[BaseException]) -> RequestCancelledError:
        return RequestCancelledError(
            f"{request.method} {request.url} cancelled after {attempts} attempt(s)",
            attempts=attempts,
            cause=last,
        )


class RequestExecutor(_Executor):
    """Blocking executor; safe to share between threads."""

    def __init__(self, config: ClientConfig, *, transport: Optional[httpx.BaseTransport] = None) -> None:
        super().__init__(config)
        self._client = httpx.Client(timeout=config.timeout, transport=transport, follow_redirects=True)

    def __enter__(self) -> "RequestExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def execute(
        self,
        method: str,
        path: str,
        body: Body = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        cancel: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
    ) -> InboundResponse:
        request = self._build(self._client, method, path, body, headers)
        started = time.monotonic()
        last: Optional[httpx.TransportError] = None
        attempt = 0
        with REQUEST_LATENCY.labels(method=request.method).time():
            while attempt < self._config.max_attempts:
                if cancel is not None and cancel.is_set():
                    raise self._cancelled(request, attempt, last) from last
                attempt += 1
                self._attempt_timeout(request, started, deadline, attempt, last)
                try:
                    raw = self._client.send(request, stream=True)
                except httpx.TransportError as exc:
                    last = exc
                    self._failed(request, attempt, exc)
                    if attempt >= self._config.max_attempts or not self._delay_fits(started, deadline):
                        break
                    if cancel is not None:
                        if cancel.wait(self._config.retry_delay):
                            raise self._cancelled(request, attempt, last) from last
                    else:
                        time.sleep(self._config.retry_delay)
                    continue
                record_attempt(request.method, "response")
                return InboundResponse(raw)
        raise self._exhausted(request, attempt, last) from last

    def get(self, path: str, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return self.execute("GET", path, None, headers, **kwargs)

    def delete(self, path: str, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return self.execute("DELETE", path, None, headers, **kwargs)

    def post(self, path: str, data: Any, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return self.execute("POST", path, encode_json(data), _json_headers(headers), **kwargs)

    def put(self, path: str, data: Any, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return self.execute("PUT", path, encode_json(data), _json_headers(headers), **kwargs)

    def patch(self, path: str, data: Any, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return self.execute("PATCH", path, encode_json(data), _json_headers(headers), **kwargs)

    def close(self) -> None:
        self._client.close()


class AsyncRequestExecutor(_Executor):
    """asyncio executor; the retry wait only suspends the calling task."""

    def __init__(self, config: ClientConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        super().__init__(config)
        self._client = httpx.AsyncClient(timeout=config.timeout, transport=transport, follow_redirects=True)

    async def __aenter__(self) -> "AsyncRequestExecutor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _wait(self, cancel: Optional[asyncio.Event]) -> bool:
        if cancel is None:
            await asyncio.sleep(self._config.retry_delay)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=self._config.retry_delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def execute(
        self,
        method: str,
        path: str,
        body: Body = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> InboundResponse:
        request = self._build(self._client, method, path, body, headers)
        started = time.monotonic()
        last: Optional[httpx.TransportError] = None
        attempt = 0
        with REQUEST_LATENCY.labels(method=request.method).time():
            while attempt < self._config.max_attempts:
                if cancel is not None and cancel.is_set():
                    raise self._cancelled(request, attempt, last) from last
                attempt += 1
                self._attempt_timeout(request, started, deadline, attempt, last)
                try:
                    raw = await self._client.send(request, stream=True)
                except httpx.TransportError as exc:
                    last = exc
                    self._failed(request, attempt, exc)
                    if attempt >= self._config.max_attempts or not self._delay_fits(started, deadline):
                        break
                    if await self._wait(cancel):
                        raise self._cancelled(request, attempt, last) from last
                    continue
                record_attempt(request.method, "response")
                return InboundResponse(raw)
        raise self._exhausted(request, attempt, last) from last

    async def get(self, path: str, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return await self.execute("GET", path, None, headers, **kwargs)

    async def delete(self, path: str, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return await self.execute("DELETE", path, None, headers, **kwargs)

    async def post(self, path: str, data: Any, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return await self.execute("POST", path, encode_json(data), _json_headers(headers), **kwargs)

    async def put(self, path: str, data: Any, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return await self.execute("PUT", path, encode_json(data), _json_headers(headers), **kwargs)

    async def patch(self, path: str, data: Any, headers: Optional[Mapping[str, str]] = None, **kwargs: Any) -> InboundResponse:
        return await self.execute("PATCH", path, encode_json(data), _json_headers(headers), **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["RequestExecutor", "AsyncRequestExecutor", "encode_json", "merge_headers", "replayable"]
