"""Shared fixtures: batches wired to an in-memory httpx transport."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from mbatcher import RequestBatch


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every request and counts closes."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []
        self.close_count = 0

        async def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = handler(request)
            if asyncio.iscoroutine(response):
                response = await response
            return response

        super().__init__(recording_handler)

    async def aclose(self) -> None:
        self.close_count += 1


async def example_handler(request: httpx.Request) -> httpx.Response:
    """Serves a tiny fake site on http://example.test."""
    path = request.url.path
    delay = float(request.url.params.get("delay", 0))
    if delay:
        await asyncio.sleep(delay)

    if path == "/ok":
        return httpx.Response(200, text="hi")
    if path == "/create" and request.method == "POST":
        return httpx.Response(201, text="{id:1}", headers={"Content-Type": "application/json"})
    if path == "/echo":
        body = f"{request.method} {request.url.path} {request.content.decode()}"
        return httpx.Response(200, text=body)
    if path == "/cookies":
        return httpx.Response(200, headers=[("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")])
    if path == "/old":
        return httpx.Response(302, headers={"Location": "http://example.test/ok"})
    if path == "/slow":
        await asyncio.sleep(5)
        return httpx.Response(200, text="late")
    if path == "/refused":
        raise httpx.ConnectError("Connection refused", request=request)
    if path == "/unreachable":
        raise httpx.ConnectTimeout("timed out connecting", request=request)
    return httpx.Response(404, text="not found")


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport(example_handler)


@pytest.fixture
def batch(transport: RecordingTransport) -> RequestBatch:
    return RequestBatch(transport=transport)
