"""Shared httpx mock transports and dispatcher helpers for tests."""

from __future__ import annotations

import asyncio
import threading
from typing import Callable

import httpx

from requestkit.dispatch import Dispatcher


def json_transport(
    status_code: int = 200,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
    seen: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """MockTransport answering every request with the same response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, headers=headers, content=body)

    return httpx.MockTransport(handler)


def raising_transport(error_factory: Callable[[httpx.Request], Exception]) -> httpx.MockTransport:
    """MockTransport raising the error built by error_factory for every request."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise error_factory(request)

    return httpx.MockTransport(handler)


class BlockingTransport(httpx.MockTransport):
    """MockTransport whose responses are held until release() is called.

    entered is set as soon as a request reaches the transport.
    """

    def __init__(self, status_code: int = 200, body: bytes = b'{"ok":true}') -> None:
        self.entered = threading.Event()
        self._released = threading.Event()
        self._status_code = status_code
        self._body = body
        super().__init__(self._handle)

    def release(self) -> None:
        self._released.set()

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.entered.set()
        while not self._released.is_set():
            await asyncio.sleep(0.01)
        return httpx.Response(
            self._status_code,
            headers={"Content-Type": "application/json"},
            content=self._body,
        )


def flush(dispatcher: Dispatcher) -> None:
    """Wait until callbacks already queued on the dispatcher have run."""
    dispatcher.submit(asyncio.sleep(0.05)).result(timeout=5)
