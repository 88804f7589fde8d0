from __future__ import annotations

from typing import Any, Dict, List

import httpx
import pytest
from pydantic import BaseModel

from httpwrap.decode import adecode_json, aread_raw, decode_json, read_raw
from httpwrap.errors import DecodeError, ResponseReadError
from httpwrap.response import InboundResponse


class BrokenStream(httpx.SyncByteStream):
    def __iter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


class BrokenAsyncStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


class Status(BaseModel):
    message: str
    code: int


def inbound(body: bytes, status: int = 200) -> InboundResponse:
    return InboundResponse(httpx.Response(status, content=body))


def test_decode_json_into_mapping() -> None:
    result = decode_json(inbound(b'{"message":"success","code":200}'), Dict[str, Any])
    assert result == {"message": "success", "code": 200}


def test_decode_json_empty_object() -> None:
    assert decode_json(inbound(b"{}"), Dict[str, Any]) == {}


def test_decode_json_into_model() -> None:
    result = decode_json(inbound(b'{"message":"success","code":200}'), Status)
    assert result == Status(message="success", code=200)


def test_decode_json_without_shape() -> None:
    assert decode_json(inbound(b"[1, 2, 3]")) == [1, 2, 3]


@pytest.mark.parametrize(
    "body, shape",
    [
        (b"{invalid json}", Dict[str, Any]),
        (b"", Dict[str, Any]),
        (b"   ", Any),
        (b'{"message":"suc', Dict[str, Any]),
        (b"[1, 2]", Dict[str, Any]),
        (b'{"message": 1}', Status),
        (b'{"a": "x"}', Dict[str, List[int]]),
        (b'{"message":"ok","code":"200"}', Status),
        (b'{"count": "3"}', Dict[str, int]),
    ],
)
def test_decode_json_failures(body: bytes, shape: Any) -> None:
    response = inbound(body)
    with pytest.raises(DecodeError):
        decode_json(response, shape)
    assert response.is_consumed


def test_body_is_single_use() -> None:
    response = inbound(b'{"raw":"data"}')
    assert read_raw(response) == b'{"raw":"data"}'
    with pytest.raises(ResponseReadError):
        read_raw(response)
    with pytest.raises(ResponseReadError):
        decode_json(response)


def test_closed_response_cannot_be_read() -> None:
    with inbound(b"data") as response:
        pass
    with pytest.raises(ResponseReadError):
        read_raw(response)


@pytest.mark.parametrize(
    "body",
    [b'{"raw":"data"}', b"", b"\x00\x01\x02\x03"],
)
def test_read_raw(body: bytes) -> None:
    assert read_raw(inbound(body)) == body


def test_read_raw_stream_failure() -> None:
    response = InboundResponse(httpx.Response(200, stream=BrokenStream()))
    with pytest.raises(ResponseReadError) as info:
        read_raw(response)
    assert isinstance(info.value.__cause__, httpx.ReadError)


def test_decode_json_stream_failure() -> None:
    response = InboundResponse(httpx.Response(200, stream=BrokenStream()))
    with pytest.raises(ResponseReadError):
        decode_json(response, Dict[str, Any])


@pytest.mark.asyncio
async def test_async_helpers() -> None:
    assert await aread_raw(inbound(b"")) == b""
    assert await adecode_json(inbound(b'{"code":200}'), Dict[str, int]) == {"code": 200}
    with pytest.raises(DecodeError):
        await adecode_json(inbound(b"{invalid json}"))


@pytest.mark.asyncio
async def test_async_read_stream_failure() -> None:
    response = InboundResponse(httpx.Response(200, stream=BrokenAsyncStream()))
    with pytest.raises(ResponseReadError):
        await aread_raw(response)
    with pytest.raises(ResponseReadError):
        await aread_raw(response)


class Opaque:
    def __init__(self, value: str) -> None:
        self.value = value


def test_unsupported_shape_raises_decode_error() -> None:
    response = inbound(b'{"value": "x"}')
    with pytest.raises(DecodeError):
        decode_json(response, Opaque)
    assert response.is_consumed
