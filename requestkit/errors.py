"""Error taxonomy for requestkit.

Every layer of the request pipeline has its own small family of errors:

- URL conversion errors are raised while turning the caller's URL into an
  httpx URL.
- Parameter encoding errors are raised while embedding parameters into the
  wire request.
- Connectivity, validation, decoding and transport errors never escape
  synchronously. They are delivered as the failed side of a Completion inside
  the Response handed to the callback.
- Usage errors are raised when the builder API is called in a state where the
  call makes no sense.

All of them derive from RequestKitError so callers can catch the library's
errors in one place.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from requestkit.models import WireRequest


class RequestKitError(Exception):
    """Base class for all requestkit errors."""


# =============================================================================
# URL Conversion
# =============================================================================


class URLConversionError(RequestKitError):
    """Base class for URL conversion errors."""


class NotConvertible(URLConversionError):
    """Raised when a value cannot be converted into an absolute URL."""

    def __init__(self, source_description: str) -> None:
        super().__init__(f"{source_description} cannot be converted into a URL")
        self.source_description = source_description


# =============================================================================
# Parameter Encoding
# =============================================================================


class ParameterEncodingError(RequestKitError):
    """Base class for parameter encoding errors."""


class InvalidURL(ParameterEncodingError):
    """Raised when URL encoding produces (or starts from) an unparseable URL."""

    def __init__(self, request: WireRequest, detail: str | None = None) -> None:
        message = f"The request doesn't contain a valid URL: {request.url!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.request = request


class InvalidParameters(ParameterEncodingError):
    """Raised when the parameters cannot be serialized into a JSON body."""

    def __init__(self, parameters: Mapping[str, Any], detail: str | None = None) -> None:
        message = f"The parameters cannot be encoded as JSON data: {dict(parameters)!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.parameters = parameters


class InvalidUsage(ParameterEncodingError):
    """Raised when an encoding is applied to a request it cannot be used with.

    JSON body encoding on a GET request is the canonical case.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# =============================================================================
# Transport Classification
# =============================================================================


class ConnectivityError(RequestKitError):
    """Base class for connectivity-class errors (handled before validation)."""


class NoInternetConnection(ConnectivityError):
    """The exchange failed because the host could not be reached."""

    def __init__(self, message: str = "The operation failed because there is no network connection") -> None:
        super().__init__(message)


class OperationCancelled(ConnectivityError):
    """The exchange was cancelled before it produced a result."""

    def __init__(self, message: str = "The operation was cancelled") -> None:
        super().__init__(message)


class TransportFailure(RequestKitError):
    """A transport error that is not connectivity-class (timeouts, protocol errors).

    The original exception is available as ``cause`` and chained as ``__cause__``.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Request failed: {cause}")
        self.cause = cause
        self.__cause__ = cause


# =============================================================================
# Validation
# =============================================================================


class ResponseValidationError(RequestKitError):
    """Base class for errors raised by the shipped response validators."""


class InvalidHTTPResponse(ResponseValidationError):
    """There is no HTTP response to validate."""

    def __init__(self) -> None:
        super().__init__("The response is not an HTTP response as expected")


class InvalidStatusCode(ResponseValidationError):
    """The response status code is outside the accepted range."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Invalid status code received ({status_code})")
        self.status_code = status_code


class InvalidContentType(ResponseValidationError):
    """The response media type is not one of the accepted media types."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(f"Unacceptable content type received ({content_type or 'none'})")
        self.content_type = content_type


# =============================================================================
# Decoding
# =============================================================================


class DecodingError(RequestKitError):
    """Base class for response body decoding errors."""


class InvalidJSONData(DecodingError):
    """The response body is not a JSON document."""

    def __init__(self) -> None:
        super().__init__("The data retrieved is not convertible to a JSON value")


class EmptyResponse(DecodingError):
    """The exchange succeeded but no body was received."""

    def __init__(self) -> None:
        super().__init__("The request did not fail, but no data was retrieved")


# =============================================================================
# Usage
# =============================================================================


class UsageError(RequestKitError):
    """Base class for builder API misuse."""


class OperationRefused(UsageError):
    """The operation cannot be performed in the current state."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class AlreadyRunning(UsageError):
    """An exchange is already in flight for this request."""

    def __init__(self, message: str = "An exchange is already running for this request") -> None:
        super().__init__(message)


class DispatcherClosed(UsageError):
    """Work was submitted to a dispatcher that has been closed."""

    def __init__(self, message: str = "The dispatcher is closed") -> None:
        super().__init__(message)
