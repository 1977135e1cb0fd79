"""Data models for requestkit.

Wire records and configuration use Pydantic v2. The result types (Completion
and Response) are frozen dataclasses because they carry exceptions and
arbitrary JSON values that need no validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Self, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# A decoded JSON document: null, boolean, number, string, array or object.
JSONValue = Union[None, bool, int, float, str, list[Any], dict[str, Any]]


# =============================================================================
# Enumerations
# =============================================================================


class HTTPMethod(str, Enum):
    """HTTP method (verb). The value is the RFC 7231 token sent on the wire."""

    OPTIONS = "OPTIONS"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @classmethod
    def coerce(cls, method: HTTPMethod | str) -> HTTPMethod:
        """Accept an HTTPMethod or a verb string in any case."""
        if isinstance(method, HTTPMethod):
            return method
        try:
            return cls(method.upper())
        except (AttributeError, ValueError):
            raise ValueError(f"Unknown HTTP method: {method!r}") from None


class CachePolicy(str, Enum):
    """How cached responses may be used for a request.

    httpx keeps no cache, so the policy is expressed as request cache
    directives for any HTTP cache between the client and the origin.
    """

    USE_PROTOCOL_DEFAULT = "use_protocol_default"
    RELOAD_IGNORING_CACHE = "reload_ignoring_cache"
    RETURN_CACHE_DATA_ELSE_LOAD = "return_cache_data_else_load"
    RETURN_CACHE_DATA_DONT_LOAD = "return_cache_data_dont_load"

    def directives(self) -> dict[str, str]:
        """Request headers implementing this policy."""
        if self is CachePolicy.RELOAD_IGNORING_CACHE:
            return {"Cache-Control": "no-cache", "Pragma": "no-cache"}
        if self is CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD:
            return {"Cache-Control": "max-stale"}
        if self is CachePolicy.RETURN_CACHE_DATA_DONT_LOAD:
            return {"Cache-Control": "only-if-cached"}
        return {}


# =============================================================================
# Wire Models
# =============================================================================


class WireRequest(BaseModel):
    """A fully built, transport-ready HTTP request.

    Instances are immutable; parameter encodings return modified copies.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: HTTPMethod = Field(description="HTTP method")
    url: str = Field(description="Absolute URL including any query string")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers")
    body: bytes | None = Field(default=None, description="Raw request body")
    timeout: float = Field(default=60.0, gt=0, description="Timeout in seconds")
    cache_policy: CachePolicy = Field(
        default=CachePolicy.USE_PROTOCOL_DEFAULT, description="Cache policy"
    )

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class TransportResponse(BaseModel):
    """The raw HTTP response of one exchange.

    Header keys are lowercase. Header values are arrays for repeated headers.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    status_code: int = Field(description="HTTP status code")
    headers: dict[str, list[str]] = Field(
        default_factory=dict, description="Response headers (lowercase keys, array values)"
    )
    url: str = Field(default="", description="Final URL of the response")
    http_version: str = Field(default="HTTP/1.1", description="Protocol version")
    elapsed_ms: float = Field(default=0.0, description="Response time in milliseconds")

    def header(self, name: str) -> str | None:
        """First value of a header, or None."""
        values = self.headers.get(name.lower())
        return values[0] if values else None

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")


# =============================================================================
# Configuration Models
# =============================================================================


class TransportConfig(BaseModel):
    """Settings shared by every exchange a Connector performs."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers sent with every request (request headers take precedence)",
    )
    follow_redirects: bool = Field(default=False, description="Follow 3xx redirects")
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    ca_bundle: str | None = Field(default=None, description="Path to a CA bundle")
    cert: str | None = Field(default=None, description="Client certificate path (mTLS)")
    key: str | None = Field(default=None, description="Client key path (mTLS)")
    key_password: str | None = Field(default=None, description="Client key password")
    ciphers: str | None = Field(default=None, description="OpenSSL cipher string")
    proxy: str | None = Field(default=None, description="Proxy URL")
    trust_env: bool = Field(default=True, description="Honour proxy/SSL environment variables")

    @model_validator(mode="after")
    def check_client_certificate(self) -> Self:
        if self.key is not None and self.cert is None:
            raise ValueError("key requires cert")
        if self.key_password is not None and self.key is None:
            raise ValueError("key_password requires key")
        return self


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging settings applied by observability.setup_logging."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", description="Log level name")
    json_logs: bool = Field(default=True, description="Render JSON instead of console output")
    include_timestamp: bool = Field(default=True, description="Add ISO timestamps")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(_LOG_LEVELS)}")
        return level


class Settings(BaseModel):
    """Top-level settings file structure."""

    model_config = ConfigDict(extra="forbid")

    transport: TransportConfig = Field(default_factory=TransportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Result Models
# =============================================================================

V = TypeVar("V")
E = TypeVar("E", bound=BaseException)


class CompletionKind(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class Completion(Generic[V, E]):
    """The outcome of an operation: exactly one of success(value) or failed(error).

    Build instances with Completion.success() and Completion.failed().
    """

    kind: CompletionKind
    payload: Any

    @classmethod
    def success(cls, value: V) -> Completion[V, E]:
        return cls(CompletionKind.SUCCESS, value)

    @classmethod
    def failed(cls, error: E) -> Completion[V, E]:
        return cls(CompletionKind.FAILED, error)

    @property
    def is_success(self) -> bool:
        return self.kind is CompletionKind.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.kind is CompletionKind.FAILED

    @property
    def value(self) -> V | None:
        """The value on success, None on failure."""
        return self.payload if self.is_success else None

    @property
    def error(self) -> E | None:
        """The error on failure, None on success."""
        return self.payload if self.is_failure else None

    def unwrap(self) -> V:
        """Return the value, or raise the error."""
        if self.is_failure:
            raise self.payload
        return self.payload


@dataclass(frozen=True)
class Response(Generic[V]):
    """Snapshot of one completed exchange.

    request is None only when the exchange never had a wire request. data is
    None when no body was received.
    """

    request: WireRequest | None
    response: TransportResponse | None
    data: bytes | None
    result: Completion[V, Exception]

    @property
    def value(self) -> V | None:
        return self.result.value

    @property
    def error(self) -> Exception | None:
        return self.result.error

    @property
    def is_success(self) -> bool:
        return self.result.is_success

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None
