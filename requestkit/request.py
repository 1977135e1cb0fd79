"""Request - fluent builder for one HTTP exchange.

A Request collects the URL, method, parameters, headers and encoding, plus
the validators and callback for the exchange. build() turns that
configuration into an immutable WireRequest; run() builds, hands a snapshot
of the validators and callback to a new Connector and starts it.

Usage:
    request = (
        Request("https://api.example.com/search", HTTPMethod.GET, parameters={"q": "hello"})
        .validate(StatusCodeValidator())
        .response_json(on_response)
        .run()
    )
    request.cancel()  # optional

Only one exchange may be active per Request. Calling run() again while it is
active raises AlreadyRunning; once it has completed (or been cancelled) the
Request can be run again.
"""

from __future__ import annotations

import threading
from typing import Any, Iterable, Mapping

import httpx

from requestkit.connector import Connector, ResponseCallback
from requestkit.dispatch import Dispatcher
from requestkit.encoding import ParameterEncoding, URLEncoding
from requestkit.errors import AlreadyRunning, OperationRefused
from requestkit.models import CachePolicy, HTTPMethod, JSONValue, Response, TransportConfig, WireRequest
from requestkit.observability import get_logger
from requestkit.urls import URLConvertible, to_url
from requestkit.validators import ResponseValidator

logger = get_logger(__name__, component="request")

DEFAULT_CONTENT_TYPE = "application/json"
DEFAULT_TIMEOUT = 60.0


class Request:
    """Builder and facade for one HTTP exchange at a time."""

    def __init__(
        self,
        url: URLConvertible | httpx.URL | str,
        method: HTTPMethod | str = HTTPMethod.GET,
        parameters: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        parameter_encoding: ParameterEncoding | None = None,
        *,
        timeout_interval: float = DEFAULT_TIMEOUT,
        cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_DEFAULT,
        configuration: TransportConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Initialize a request.

        Args:
            url: Target URL (string, httpx.URL or URLConvertible).
            method: HTTP method.
            parameters: Parameters embedded by the encoding, if any.
            headers: Request headers. Content-Type defaults to application/json.
            parameter_encoding: How parameters are embedded. Defaults to URLEncoding.
            timeout_interval: Timeout in seconds passed to the transport.
            cache_policy: Cache directives for the request.
            configuration: Transport settings (TLS, proxy, default headers).
            transport: httpx transport override.
            dispatcher: Execution context; defaults to the shared dispatcher.

        Raises:
            ValueError: If the method is unknown or timeout_interval is not positive.
        """
        if not timeout_interval > 0:
            raise ValueError(f"timeout_interval must be positive, got {timeout_interval!r}")

        self.url = url
        self.method = HTTPMethod.coerce(method)
        self.parameters = dict(parameters) if parameters is not None else None
        self.headers = dict(headers) if headers is not None else None
        self.encoding: ParameterEncoding = parameter_encoding or URLEncoding()
        self.timeout_interval = timeout_interval
        self.cache_policy = cache_policy
        self.configuration = configuration or TransportConfig()
        self._transport = transport
        self._dispatcher = dispatcher

        self._validators: list[ResponseValidator] = []
        self._callback: ResponseCallback | None = None
        self._connector: Connector | None = None
        self._run_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Request({self.method.value} {self.url!s})"

    @property
    def validators(self) -> tuple[ResponseValidator, ...]:
        return tuple(self._validators)

    @property
    def connector(self) -> Connector | None:
        """The connector of the most recent run(), if any."""
        return self._connector

    @property
    def is_running(self) -> bool:
        return self._connector is not None and self._connector.is_active

    def build(self) -> WireRequest:
        """Build the wire request without sending it.

        Raises:
            NotConvertible: If the URL is not a valid absolute URL.
            ParameterEncodingError: If the parameters cannot be encoded.
        """
        url = to_url(self.url)

        wire_request = WireRequest(
            method=self.method,
            url=str(url),
            headers=self._build_headers(),
            timeout=self.timeout_interval,
            cache_policy=self.cache_policy,
        )

        if self.parameters is not None:
            wire_request = self.encoding.encode(self.parameters, wire_request)

        logger.debug("request_built", method=wire_request.method.value, url=wire_request.url)
        return wire_request

    def validate(
        self, validators: ResponseValidator | Iterable[ResponseValidator]
    ) -> Request:
        """Append one validator or a batch of them. Order of registration is order of execution."""
        if isinstance(validators, ResponseValidator):
            self._validators.append(validators)
        else:
            self._validators.extend(validators)
        return self

    def response_json(self, callback: ResponseCallback) -> Request:
        """Register the completion callback, replacing any previous one."""
        self._callback = callback
        return self

    def run(self) -> Request:
        """Build the wire request and start the exchange.

        Raises:
            AlreadyRunning: If the previous exchange is still active.
            NotConvertible, ParameterEncodingError: If building fails.
        """
        with self._run_lock:
            if self.is_running:
                raise AlreadyRunning()

            wire_request = self.build()
            connector = Connector(
                wire_request,
                validators=tuple(self._validators),
                callback=self._callback,
                configuration=self.configuration,
                transport=self._transport,
                dispatcher=self._dispatcher,
            )
            connector.connect()
            self._connector = connector
        return self

    def cancel(self) -> Request:
        """Cancel the active exchange.

        Raises:
            OperationRefused: If no exchange is active.
        """
        connector = self._connector
        if connector is None or not connector.is_active:
            raise OperationRefused(f"Cannot cancel the request, no exchange is active: {self!r}")
        connector.cancel()
        return self

    def wait(self, timeout: float | None = None) -> Response[JSONValue]:
        """Block until the most recent exchange has delivered its Response.

        Raises:
            OperationRefused: If run() was never called.
            TimeoutError: If the timeout expires first.
        """
        if self._connector is None:
            raise OperationRefused(f"Cannot wait, the request was never run: {self!r}")
        return self._connector.wait(timeout)

    def _build_headers(self) -> dict[str, str]:
        headers = dict(self.headers or {})
        present = {key.lower() for key in headers}

        if "content-type" not in present:
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE

        for key, value in self.cache_policy.directives().items():
            if key.lower() not in present:
                headers[key] = value

        return headers
