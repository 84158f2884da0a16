"""Fake streaming backends and SSE builders shared by the tests.

Bodies are served through httpx.MockTransport so chunk boundaries and
timing are fully under test control.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any

import httpx

BASE_URL = "http://backend.test/b/ibot"


def sse(*payloads: dict[str, Any] | str) -> bytes:
    """Encode payloads as ``data: ...`` frames. Strings are sent verbatim."""
    frames = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        frames.append(f"data: {data}\n\n")
    return "".join(frames).encode("utf-8")


def split_every(body: bytes, size: int) -> list[bytes]:
    return [body[i:i + size] for i in range(0, len(body), size)]


async def stream_chunks(
    chunks: Iterable[bytes],
    hold: asyncio.Event | None = None,
) -> AsyncIterator[bytes]:
    """Yield chunks one read at a time, then optionally block until released."""
    for chunk in chunks:
        yield chunk
        await asyncio.sleep(0)
    if hold is not None:
        await hold.wait()


def streaming_backend(
    chunks: Iterable[bytes],
    hold: asyncio.Event | None = None,
    status_code: int = 200,
    seen: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """MockTransport handler serving an SSE body."""
    chunks = list(chunks)

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(
            status_code,
            headers={"Content-Type": "text/event-stream"},
            content=stream_chunks(chunks, hold),
        )

    return handler


def mock_http_client(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll the event loop until ``predicate`` holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)
