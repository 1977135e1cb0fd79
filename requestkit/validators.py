"""Response validators.

Validators run in registration order after the transport finishes and before
the body is decoded. A validator signals an invalid response by raising; the
first raise ends the chain and its error becomes the exchange result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from requestkit.errors import InvalidContentType, InvalidHTTPResponse, InvalidStatusCode
from requestkit.models import TransportResponse


@runtime_checkable
class ResponseValidator(Protocol):
    """Inspects a raw response and raises if it is not acceptable.

    Args:
        response: The HTTP response, or None if the transport produced none.
        data: The raw body, or None if no body was received.
        error: The transport error, if any.
    """

    def validate(
        self,
        response: TransportResponse | None,
        data: bytes | None,
        error: BaseException | None,
    ) -> None: ...


def _as_range(value: range | tuple[int, int]) -> range:
    if isinstance(value, range):
        if value.step != 1:
            raise ValueError("status code range must have a step of 1")
        return value
    lo, hi = value
    return range(lo, hi)


@dataclass(frozen=True)
class StatusCodeValidator:
    """Checks the status code against a half-open range, 200..<300 by default."""

    valid_status_codes: range = range(200, 300)

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__.
        object.__setattr__(self, "valid_status_codes", _as_range(self.valid_status_codes))

    def validate(
        self,
        response: TransportResponse | None,
        data: bytes | None,
        error: BaseException | None,
    ) -> None:
        if response is None:
            raise InvalidHTTPResponse()
        if response.status_code not in self.valid_status_codes:
            raise InvalidStatusCode(response.status_code)


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


@dataclass(frozen=True)
class ContentTypeValidator:
    """Checks the response media type.

    Accepts exact media types, ``type/*`` and ``*/*``. Parameters such as
    charset are ignored. Responses without a body pass.
    """

    accepted: tuple[str, ...] = field(default=("application/json",))

    def __post_init__(self) -> None:
        if isinstance(self.accepted, str):
            object.__setattr__(self, "accepted", (self.accepted,))
        object.__setattr__(
            self, "accepted", tuple(_media_type(media) for media in self.accepted)
        )

    def validate(
        self,
        response: TransportResponse | None,
        data: bytes | None,
        error: BaseException | None,
    ) -> None:
        if response is None:
            raise InvalidHTTPResponse()
        if not data:
            return

        content_type = response.content_type
        if content_type is None or not self._accepts(_media_type(content_type)):
            raise InvalidContentType(content_type)

    def _accepts(self, media_type: str) -> bool:
        main_type = media_type.split("/", 1)[0]
        for accepted in self.accepted:
            if accepted in ("*/*", media_type):
                return True
            if accepted.endswith("/*") and accepted[:-2] == main_type:
                return True
        return False
