"""URL conversion.

Anything with a ``to_url()`` method returning an httpx.URL can be used as a
request URL. Strings and httpx.URL values are converted by ``to_url()`` at
module level, which is the single entry point the rest of the library uses.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from requestkit.errors import NotConvertible


@runtime_checkable
class URLConvertible(Protocol):
    """A value that can produce an absolute URL or fail with NotConvertible."""

    def to_url(self) -> httpx.URL: ...


def to_url(value: URLConvertible | httpx.URL | str) -> httpx.URL:
    """Convert a value into an absolute httpx.URL.

    Args:
        value: A URL string, an httpx.URL, or a URLConvertible.

    Returns:
        The parsed URL.

    Raises:
        NotConvertible: If the value is not a well-formed absolute URL.
    """
    if isinstance(value, httpx.URL):
        url = value
    elif isinstance(value, str):
        url = _parse_string(value)
    elif isinstance(value, URLConvertible):
        url = value.to_url()
        if not isinstance(url, httpx.URL):
            raise NotConvertible(repr(value))
    else:
        raise NotConvertible(repr(value))

    if not url.is_absolute_url or not url.host:
        raise NotConvertible(repr(value))
    return url


def _parse_string(value: str) -> httpx.URL:
    # httpx strips surrounding whitespace silently; treat it as malformed instead.
    if not value or value != value.strip():
        raise NotConvertible(repr(value))
    try:
        return httpx.URL(value)
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise NotConvertible(repr(value)) from e
