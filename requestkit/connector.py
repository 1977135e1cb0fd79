"""Connector - Executes one exchange and delivers one Response.

The Connector sends its wire request on the dispatcher's event loop, then
turns the outcome into a Response:

1. Connectivity-class failures (host unreachable, cancellation) are delivered
   immediately as NoInternetConnection / OperationCancelled. Validators and
   decoding are skipped.
2. Validators run in registration order. The first one that raises ends the
   chain and its error is delivered. Body decoding is skipped.
3. Any other transport error is delivered wrapped in TransportFailure.
   Otherwise a non-empty body is parsed as JSON (InvalidJSONData on failure)
   and an empty one yields EmptyResponse.

The callback is invoked exactly once per connect(), on the dispatcher thread.
"""

from __future__ import annotations

import concurrent.futures
import json
import ssl
import threading
import time
from typing import Any, Callable, Iterable

import httpx

from requestkit.dispatch import Dispatcher, get_default_dispatcher
from requestkit.errors import (
    AlreadyRunning,
    EmptyResponse,
    InvalidJSONData,
    NoInternetConnection,
    OperationCancelled,
    OperationRefused,
    TransportFailure,
)
from requestkit.models import (
    Completion,
    JSONValue,
    Response,
    TransportConfig,
    TransportResponse,
    WireRequest,
)
from requestkit.observability import get_logger
from requestkit.validators import ResponseValidator

logger = get_logger(__name__, component="connector")

ResponseCallback = Callable[[Response[JSONValue]], Any]


def build_client_kwargs(
    configuration: TransportConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Build kwargs for httpx.AsyncClient including TLS configuration.

    Raises:
        ssl.SSLError: If the cipher string is invalid.
        OSError: If a certificate or CA bundle file cannot be loaded.
    """
    kwargs: dict[str, Any] = {
        "headers": configuration.headers,
        "follow_redirects": configuration.follow_redirects,
        "trust_env": configuration.trust_env,
    }

    if configuration.proxy:
        kwargs["proxy"] = configuration.proxy
    if transport is not None:
        kwargs["transport"] = transport

    # Any custom TLS material needs an explicit SSL context
    if configuration.ciphers or configuration.ca_bundle or configuration.cert:
        ssl_context = ssl.create_default_context(cafile=configuration.ca_bundle)
        if not configuration.verify_ssl:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        if configuration.ciphers:
            ssl_context.set_ciphers(configuration.ciphers)
        if configuration.cert:
            ssl_context.load_cert_chain(
                configuration.cert,
                keyfile=configuration.key,
                password=configuration.key_password,
            )
        kwargs["verify"] = ssl_context
    elif not configuration.verify_ssl:
        kwargs["verify"] = False
    # else: use httpx default (True)

    return kwargs


def convert_response(response: httpx.Response, elapsed_ms: float) -> TransportResponse:
    """Convert an httpx Response to a TransportResponse."""
    # Headers - lowercase keys, list values
    headers: dict[str, list[str]] = {}
    for key, value in response.headers.multi_items():
        headers.setdefault(key.lower(), []).append(value)

    return TransportResponse(
        status_code=response.status_code,
        headers=headers,
        url=str(response.url),
        http_version=getattr(response, "http_version", "HTTP/1.1"),
        elapsed_ms=elapsed_ms,
    )


def decode_result(data: bytes | None, error: BaseException | None) -> Completion[JSONValue, Exception]:
    """Turn the body (or transport error) of a validated exchange into a result."""
    if error is not None:
        return Completion.failed(TransportFailure(error))
    if data:
        try:
            return Completion.success(json.loads(data))
        except ValueError:
            return Completion.failed(InvalidJSONData())
    return Completion.failed(EmptyResponse())


class Connector:
    """Executes one wire request and delivers one Response.

    Usage:
        connector = Connector(wire_request, [StatusCodeValidator()], on_response)
        connector.connect()
        response = connector.wait(timeout=10)
    """

    def __init__(
        self,
        request: WireRequest,
        validators: Iterable[ResponseValidator] = (),
        callback: ResponseCallback | None = None,
        configuration: TransportConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Initialize the connector.

        Args:
            request: The wire request to send.
            validators: Validators to run, in order, before decoding.
            callback: Called with the Response when the exchange completes.
            configuration: Transport settings for the exchange.
            transport: httpx transport override (tests, custom networking).
            dispatcher: Execution context; defaults to the shared dispatcher.
        """
        self.request = request
        self.validators: tuple[ResponseValidator, ...] = tuple(validators)
        self.callback = callback
        self.configuration = configuration or TransportConfig()
        self._transport = transport
        self._dispatcher = dispatcher

        self._lock = threading.Lock()
        self._future: concurrent.futures.Future[Any] | None = None
        self._started = False
        # Only touched on the dispatcher thread.
        self._delivered = False
        self._response: Response[JSONValue] | None = None
        self._done = threading.Event()

    @property
    def is_active(self) -> bool:
        """True between connect() and delivery, unless cancelled."""
        return self._future is not None and not self._done.is_set()

    @property
    def response(self) -> Response[JSONValue] | None:
        """The delivered Response, or None if the exchange has not completed."""
        return self._response

    def connect(self) -> None:
        """Start the exchange. Returns immediately.

        Raises:
            AlreadyRunning: If connect() was already called on this connector.
            DispatcherClosed: If the dispatcher has been closed.
        """
        with self._lock:
            if self._started:
                raise AlreadyRunning("This connector has already been connected")
            if self._dispatcher is None:
                self._dispatcher = get_default_dispatcher()
            future = self._dispatcher.submit(self._exchange())
            self._started = True
            self._future = future

        logger.debug("exchange_started", method=self.request.method.value, url=self.request.url)
        future.add_done_callback(self._on_future_done)

    def cancel(self) -> None:
        """Cancel the in-flight exchange, if any, and release its handle.

        The callback still fires once, with OperationCancelled, unless the
        exchange had already produced its result.
        """
        with self._lock:
            future, self._future = self._future, None
        if future is not None:
            future.cancel()

    def wait(self, timeout: float | None = None) -> Response[JSONValue]:
        """Block until the Response has been delivered and the callback has run.

        Raises:
            OperationRefused: If the exchange was never started, or when called
                from the dispatcher thread (which would deadlock).
            TimeoutError: If the timeout expires first.
        """
        if not self._started or self._dispatcher is None:
            raise OperationRefused("Cannot wait: the exchange was never started")
        if self._dispatcher.in_dispatch_thread():
            raise OperationRefused("Cannot wait from the dispatcher thread")
        if not self._done.wait(timeout):
            raise TimeoutError(f"No response within {timeout} seconds")
        return self._response

    # -------------------------------------------------------------------------
    # Exchange
    # -------------------------------------------------------------------------

    async def _exchange(self) -> None:
        response: TransportResponse | None = None
        data: bytes | None = None
        error: BaseException | None = None

        try:
            response, data = await self._send()
        except httpx.ConnectError as e:
            failure = NoInternetConnection()
            failure.__cause__ = e
            logger.info(
                "exchange_failed",
                method=self.request.method.value,
                url=self.request.url,
                reason="no_internet_connection",
                error=str(e),
            )
            self._deliver(self._make_response(None, None, Completion.failed(failure)))
            return
        except Exception as e:
            # Timeouts, protocol errors, TLS setup; reported after validation.
            error = e

        for validator in self.validators:
            try:
                validator.validate(response, data, error)
            except Exception as e:
                logger.info(
                    "validator_failed",
                    validator=type(validator).__name__,
                    url=self.request.url,
                    error=str(e),
                )
                self._deliver(self._make_response(response, data, Completion.failed(e)))
                return

        self._deliver(self._make_response(response, data, decode_result(data, error)))

    async def _send(self) -> tuple[TransportResponse, bytes | None]:
        client_kwargs = build_client_kwargs(self.configuration, self._transport)
        async with httpx.AsyncClient(**client_kwargs) as client:
            start_time = time.perf_counter()
            http_response = await client.request(
                method=self.request.method.value,
                url=self.request.url,
                headers=self.request.headers or None,
                content=self.request.body,
                timeout=self.request.timeout,
            )
            elapsed_ms = (time.perf_counter() - start_time) * 1000

        return convert_response(http_response, elapsed_ms), http_response.content or None

    def _on_future_done(self, future: concurrent.futures.Future[Any]) -> None:
        # Runs on whichever thread finished or cancelled the future.
        if future.cancelled():
            logger.info("exchange_cancelled", method=self.request.method.value, url=self.request.url)
            result: Completion[JSONValue, Exception] = Completion.failed(OperationCancelled())
        elif future.exception() is not None:
            result = Completion.failed(TransportFailure(future.exception()))
        else:
            return
        assert self._dispatcher is not None
        self._dispatcher.call_soon(self._deliver, self._make_response(None, None, result))

    def _make_response(
        self,
        response: TransportResponse | None,
        data: bytes | None,
        result: Completion[JSONValue, Exception],
    ) -> Response[JSONValue]:
        return Response(request=self.request, response=response, data=data, result=result)

    def _deliver(self, response: Response[JSONValue]) -> None:
        if self._delivered:
            return
        self._delivered = True
        self._response = response

        if response.is_success:
            logger.debug(
                "exchange_completed",
                method=self.request.method.value,
                url=self.request.url,
                status_code=response.status_code,
            )
        else:
            logger.debug(
                "exchange_completed",
                method=self.request.method.value,
                url=self.request.url,
                status_code=response.status_code,
                error=type(response.error).__name__,
            )

        try:
            if self.callback is not None:
                self.callback(response)
        except Exception:
            logger.exception("callback_failed", url=self.request.url)
        finally:
            self._done.set()
