"""Dispatcher - the execution context for exchanges and callbacks.

A Dispatcher owns one asyncio event loop running on one daemon thread. Every
exchange runs as a task on that loop and every completion callback is invoked
on that thread, so callbacks never race each other.

Usage:
    with Dispatcher() as dispatcher:
        Request(url, dispatcher=dispatcher).response_json(handle).run()

Requests created without an explicit dispatcher share the process-wide
default returned by get_default_dispatcher().
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, Coroutine

from requestkit.errors import DispatcherClosed
from requestkit.observability import get_logger

logger = get_logger(__name__, component="dispatcher")


class Dispatcher:
    """Runs coroutines on a private event loop thread."""

    def __init__(self, name: str = "requestkit-dispatcher") -> None:
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def in_dispatch_thread(self) -> bool:
        """True when called from the dispatcher's own thread."""
        return threading.current_thread() is self._thread

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future[Any]:
        """Schedule a coroutine on the loop.

        Raises:
            DispatcherClosed: If close() has been called.
        """
        with self._lock:
            if self._closed:
                coro.close()
                raise DispatcherClosed()
            return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule a plain callable on the dispatcher thread.

        Calls arriving after the loop has shut down are dropped with a warning.
        """
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            logger.warning("dispatch_dropped", callback=getattr(callback, "__qualname__", repr(callback)))

    def close(self, timeout: float | None = 5.0) -> None:
        """Stop the loop, cancel pending exchanges and join the thread.

        Safe to call more than once. Must not be called from the dispatcher thread.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        logger.debug("dispatcher_closed", thread=self._thread.name)

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._shutdown()

    def _shutdown(self) -> None:
        pending = asyncio.all_tasks(self._loop)
        for task in pending:
            task.cancel()
        if pending:
            self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        # One more turn so cancellation callbacks queued above are delivered.
        self._loop.run_until_complete(self._loop.shutdown_asyncgens())
        self._loop.close()


_default_dispatcher: Dispatcher | None = None
_default_lock = threading.Lock()


def get_default_dispatcher() -> Dispatcher:
    """Return the shared dispatcher, creating it on first use."""
    global _default_dispatcher
    with _default_lock:
        if _default_dispatcher is None or _default_dispatcher.closed:
            _default_dispatcher = Dispatcher()
        return _default_dispatcher
