"""Parameter encodings.

A ParameterEncoding embeds a parameter mapping into a draft WireRequest and
returns the new request. URLEncoding puts the parameters in the query string,
JSONEncoding serializes them into the body.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, runtime_checkable

import httpx

from requestkit.errors import InvalidParameters, InvalidURL, InvalidUsage
from requestkit.models import HTTPMethod, WireRequest


@runtime_checkable
class ParameterEncoding(Protocol):
    """Embeds parameters into a request."""

    def encode(self, parameters: Mapping[str, Any], request: WireRequest) -> WireRequest: ...


def _stringify(value: Any) -> str:
    """Render a scalar query value."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
    return str(value)


def _query_values(value: Any) -> list[str]:
    """Lists and tuples become repeated keys; everything else is one value."""
    if isinstance(value, (list, tuple)):
        return [_stringify(item) for item in value]
    return [_stringify(value)]


@dataclass(frozen=True)
class URLEncoding:
    """Encodes parameters in the URL query string.

    Keys are emitted in sorted order. Pairs already present in the URL are kept,
    except those whose key is being set again, which are replaced.
    """

    def encode(self, parameters: Mapping[str, Any], request: WireRequest) -> WireRequest:
        try:
            url = httpx.URL(request.url)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise InvalidURL(request, str(e)) from e

        new_pairs: list[tuple[str, str]] = []
        for key in sorted(parameters, key=str):
            for value in _query_values(parameters[key]):
                new_pairs.append((str(key), value))

        replaced = {str(key) for key in parameters}
        kept = [(k, v) for k, v in url.params.multi_items() if k not in replaced]

        try:
            encoded_url = url.copy_with(params=kept + new_pairs)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise InvalidURL(request, str(e)) from e

        return request.model_copy(update={"url": str(encoded_url)})


@dataclass(frozen=True)
class JSONEncoding:
    """Encodes parameters as a UTF-8 JSON document in the request body.

    GET requests carry no body, so encoding one is refused with InvalidUsage.
    """

    def encode(self, parameters: Mapping[str, Any], request: WireRequest) -> WireRequest:
        if request.method is HTTPMethod.GET:
            raise InvalidUsage("Cannot encode JSON in the body of a GET request")

        try:
            body = json.dumps(
                dict(parameters),
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            ).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            raise InvalidParameters(parameters, str(e)) from e

        return request.model_copy(update={"body": body})
