from __future__ import annotations

import asyncio
import socket

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


@pytest.fixture()
def asgi_app() -> FastAPI:
    app = FastAPI()

    @app.get("/items/{item_id}")
    async def get_item(item_id: str):
        await asyncio.sleep(0.01)
        return {"item": item_id}

    @app.post("/echo")
    async def echo(request: Request):
        return {
            "body": await request.json(),
            "content_type": request.headers.get("content-type"),
        }

    @app.get("/boom")
    async def boom():
        return JSONResponse(status_code=500, content={"error": "boom"})

    return app


@pytest.fixture()
def closed_port() -> int:
    # Bind then release so nothing is listening on the port.
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
