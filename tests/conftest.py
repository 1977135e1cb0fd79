"""Pytest configuration and fixtures for requestkit tests.

This file provides:
- PortReservation: Race-free port allocation for test servers
- ResponseRecorder: A thread-safe completion callback that counts deliveries
- Fixtures: dispatcher, recorder, logging cleanup
"""

from __future__ import annotations

import logging
import socket
import threading
from pathlib import Path
from typing import Any, Generator

import pytest
import structlog

from requestkit.dispatch import Dispatcher
from requestkit.models import Response


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    Usage:
        reservation = PortReservation()
        port = reservation.release()  # port is now free for a server to bind
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))  # Port 0 = OS assigns ephemeral port
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port. Safe to call multiple times."""
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port

    def __enter__(self) -> PortReservation:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


class ResponseRecorder:
    """Completion callback that records every Response it receives."""

    def __init__(self) -> None:
        self.responses: list[Response] = []
        self.threads: list[str] = []
        self._lock = threading.Lock()
        self._event = threading.Event()

    def __call__(self, response: Response) -> None:
        with self._lock:
            self.responses.append(response)
            self.threads.append(threading.current_thread().name)
        self._event.set()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.responses)

    @property
    def last(self) -> Response:
        with self._lock:
            return self.responses[-1]

    def wait(self, timeout: float = 5.0) -> Response:
        """Block until at least one Response has been recorded."""
        if not self._event.wait(timeout):
            raise AssertionError(f"callback not invoked within {timeout}s")
        return self.last


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def dispatcher() -> Generator[Dispatcher, None, None]:
    """A private dispatcher, closed after the test."""
    with Dispatcher(name="requestkit-test-dispatcher") as instance:
        yield instance


@pytest.fixture
def recorder() -> ResponseRecorder:
    return ResponseRecorder()


@pytest.fixture
def clean_logging() -> Generator[None, None, None]:
    """Reset structlog and requestkit logger levels around a test.

    structlog and logging keep global state.
    """
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
    logging.getLogger("requestkit").setLevel(logging.NOTSET)


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Automatically apply markers based on test location.

    Enables running subsets via:
        pytest -m integration  # only integration tests
        pytest -m unit         # only unit tests
    """
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
