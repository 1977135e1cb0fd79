"""requestkit - a small client-side HTTP request library.

Build a Request, chain validators and a JSON callback, run it:

    Request(url, HTTPMethod.GET, parameters={"q": "hello"}) \\
        .validate(StatusCodeValidator()) \\
        .response_json(on_response) \\
        .run()
"""

from requestkit.connector import Connector
from requestkit.dispatch import Dispatcher, get_default_dispatcher
from requestkit.encoding import JSONEncoding, ParameterEncoding, URLEncoding
from requestkit.errors import (
    AlreadyRunning,
    ConnectivityError,
    DecodingError,
    DispatcherClosed,
    EmptyResponse,
    InvalidContentType,
    InvalidHTTPResponse,
    InvalidJSONData,
    InvalidParameters,
    InvalidStatusCode,
    InvalidURL,
    InvalidUsage,
    NoInternetConnection,
    NotConvertible,
    OperationCancelled,
    OperationRefused,
    ParameterEncodingError,
    RequestKitError,
    ResponseValidationError,
    TransportFailure,
    URLConversionError,
    UsageError,
)
from requestkit.models import (
    CachePolicy,
    Completion,
    HTTPMethod,
    JSONValue,
    Response,
    TransportConfig,
    TransportResponse,
    WireRequest,
)
from requestkit.request import Request
from requestkit.urls import URLConvertible, to_url
from requestkit.validators import ContentTypeValidator, ResponseValidator, StatusCodeValidator

__version__ = "0.1.0"

__all__ = [
    "AlreadyRunning",
    "CachePolicy",
    "Completion",
    "ConnectivityError",
    "Connector",
    "ContentTypeValidator",
    "DecodingError",
    "Dispatcher",
    "DispatcherClosed",
    "EmptyResponse",
    "HTTPMethod",
    "InvalidContentType",
    "InvalidHTTPResponse",
    "InvalidJSONData",
    "InvalidParameters",
    "InvalidStatusCode",
    "InvalidURL",
    "InvalidUsage",
    "JSONEncoding",
    "JSONValue",
    "NoInternetConnection",
    "NotConvertible",
    "OperationCancelled",
    "OperationRefused",
    "ParameterEncoding",
    "ParameterEncodingError",
    "Request",
    "RequestKitError",
    "Response",
    "ResponseValidationError",
    "ResponseValidator",
    "StatusCodeValidator",
    "TransportConfig",
    "TransportFailure",
    "TransportResponse",
    "URLConversionError",
    "URLConvertible",
    "URLEncoding",
    "UsageError",
    "WireRequest",
    "get_default_dispatcher",
    "to_url",
]
