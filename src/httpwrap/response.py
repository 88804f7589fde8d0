"""Single-use wrapper around a streamed httpx response."""

from __future__ import annotations

import httpx

from .errors import ResponseReadError


class InboundResponse:
    """Status, headers and an unread body that may be consumed exactly once.

    The caller owns the response: read it through :func:`httpwrap.read_raw`
    / :func:`httpwrap.decode_json` (which release it), or call ``close()``.
    """

    def __init__(self, raw: httpx.Response) -> None:
        self._raw = raw
        self._consumed = False

    def __enter__(self) -> "InboundResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def __aenter__(self) -> "InboundResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<InboundResponse [{self.status_code}]>"

    @property
    def status_code(self) -> int:
        return self._raw.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._raw.headers

    @property
    def url(self) -> httpx.URL:
        return self._raw.url

    @property
    def request(self) -> httpx.Request:
        return self._raw.request

    @property
    def is_error(self) -> bool:
        return self._raw.status_code >= 400

    @property
    def is_consumed(self) -> bool:
        return self._consumed

    def _claim(self) -> None:
        if self._consumed:
            raise ResponseReadError("response body already consumed")
        self._consumed = True

    def read(self) -> bytes:
        self._claim()
        try:
            return self._raw.read()
        except (httpx.TransportError, httpx.StreamError) as exc:
            raise ResponseReadError(f"failed to read response body: {exc}") from exc
        finally:
            self._raw.close()

    async def aread(self) -> bytes:
        self._claim()
        try:
            return await self._raw.aread()
        except (httpx.TransportError, httpx.StreamError) as exc:
            raise ResponseReadError(f"failed to read response body: {exc}") from exc
        finally:
            await self._raw.aclose()

    def close(self) -> None:
        self._consumed = True
        self._raw.close()

    async def aclose(self) -> None:
        self._consumed = True
        await self._raw.aclose()


__all__ = ["InboundResponse"]
