from __future__ import annotations

import asyncio
import socket
import threading
import time

import pytest
import uvicorn
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import Response

from httpfacade.client import Http


def free_port() -> int:
    """Return a local port nothing is listening on (at the time of the call)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def create_echo_app() -> FastAPI:
    """Small app the client tests talk to over a real socket."""

    app = FastAPI()

    @app.api_route("/echo/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def echo(path: str, request: Request):
        body = await request.body()
        return {
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query,
            "headers": dict(request.headers.items()),
            "header_list": [[k, v] for k, v in request.headers.items()],
            "body": body.decode("utf-8", errors="replace"),
            "body_length": len(body),
        }

    @app.get("/status/{code}")
    async def status(code: int):
        return Response(content=f"status {code}".encode("utf-8"), status_code=code, media_type="text/plain")

    @app.get("/multi")
    async def multi():
        resp = Response(content=b"ok", media_type="text/plain")
        resp.headers.append("X-Multi", "a")
        resp.headers.append("X-Multi", "b")
        return resp

    @app.get("/latin1")
    async def latin1():
        return Response(content="café".encode("latin-1"), media_type="text/plain; charset=iso-8859-1")

    @app.get("/binary")
    async def binary():
        return Response(content=b"\xff\xfe\x00\x01", media_type="application/octet-stream")

    @app.get("/slow")
    async def slow(delay: float = 1.5):
        await asyncio.sleep(delay)
        return {"slept": delay}

    @app.get("/redirect")
    async def redirect():
        return RedirectResponse("/echo/target", status_code=302)

    @app.post("/form")
    async def form(request: Request):
        parsed = await request.form()
        parts = []
        for name, value in parsed.multi_items():
            if isinstance(value, UploadFile):
                data = await value.read()
                parts.append(
                    {
                        "name": name,
                        "filename": value.filename,
                        "content_type": value.content_type,
                        "data": data.decode("utf-8", errors="replace"),
                    }
                )
            else:
                parts.append({"name": name, "value": value})
        return {"content_type": request.headers.get("content-type"), "parts": parts}

    return app


@pytest.fixture(scope="session")
def live_server():
    """Run the echo app under uvicorn in a background thread."""

    port = free_port()
    config = uvicorn.Config(
        create_echo_app(), host="127.0.0.1", port=port, log_level="warning", lifespan="off"
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 15
    while not server.started:
        if not thread.is_alive() or time.monotonic() > deadline:
            raise RuntimeError("echo server did not start")
        time.sleep(0.05)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=10)


@pytest.fixture()
def http(live_server) -> Http:
    return Http(live_server)


@pytest.fixture()
def unused_port() -> int:
    return free_port()
