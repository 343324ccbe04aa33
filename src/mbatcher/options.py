"""
Per-request configuration.

Each registered request gets its own immutable `RequestOptions`, built by
overlaying the caller's overrides onto the defaults for its method.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from mbatcher.errors import InvalidMethodError, InvalidOptionError, MissingKeyError

DEFAULT_CONNECT_TIMEOUT = 4.0
DEFAULT_TIMEOUT = 4.0

METHODS = ("GET", "POST", "PUT", "DELETE")
BODY_METHODS = ("POST", "PUT")

# Names callers may override through the `options` mapping.
OVERRIDABLE = ("follow_redirects", "connect_timeout", "timeout", "params")

Header = tuple[str, str]


@dataclass(frozen=True)
class RequestOptions:
    """Everything the transport needs to issue one request.

    Attributes:
        method: Upper-cased HTTP method
        headers: Ordered (name, value) header pairs
        body: Payload for POST and PUT, always None otherwise
        follow_redirects: Whether redirects are followed
        connect_timeout: Seconds allowed to establish the connection
        timeout: Total seconds allowed for the whole request, None for no limit
        params: Query parameters appended to the URL
    """

    method: str = "GET"
    headers: tuple[Header, ...] = ()
    body: bytes | str | None = None
    follow_redirects: bool = False
    connect_timeout: float | None = DEFAULT_CONNECT_TIMEOUT
    timeout: float | None = DEFAULT_TIMEOUT
    params: Mapping[str, Any] | None = None

    @classmethod
    def for_method(
        cls,
        method: str,
        headers: Sequence[str | Header] = (),
        body: bytes | str | None = None,
    ) -> RequestOptions:
        """Build the default options for `method`."""
        normalized = normalize_method(method)
        return cls(
            method=normalized,
            headers=parse_headers(headers),
            body=body if normalized in BODY_METHODS else None,
        )

    def merge(self, overrides: Mapping[str, Any] | None) -> RequestOptions:
        """Return a copy with `overrides` applied on top."""
        if overrides is None:
            return self
        if not isinstance(overrides, Mapping):
            raise InvalidOptionError("options", f"expected a mapping, got {type(overrides).__name__}")

        changes = {}
        for name, value in overrides.items():
            if name not in OVERRIDABLE:
                raise InvalidOptionError(str(name), "unknown option")
            changes[name] = _check_option(name, value)
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class RequestSpec:
    """A registered request that has not been sent yet."""

    key: Hashable
    url: str
    options: RequestOptions

    @property
    def method(self) -> str:
        return self.options.method

    @classmethod
    def build(
        cls,
        key: Hashable,
        url: str,
        headers: Sequence[str | Header] = (),
        method: str = "GET",
        body: bytes | str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> RequestSpec:
        if key is None:
            raise MissingKeyError()
        try:
            hash(key)
        except TypeError:
            raise MissingKeyError(f"Request key must be hashable, got {type(key).__name__}") from None

        request_options = RequestOptions.for_method(method, headers, body).merge(options)
        return cls(key=key, url=url, options=request_options)


def normalize_method(method: str | None) -> str:
    if method is None:
        return "GET"
    if not isinstance(method, str) or method.upper() not in METHODS:
        raise InvalidMethodError(method)
    return method.upper()


def parse_headers(headers: Sequence[str | Header] | None) -> tuple[Header, ...]:
    """Split "Name: value" strings into pairs, keeping their order.

    Only the separator (the colon and one following space) is removed from
    a header line; the value is otherwise kept as given. Names must be ASCII
    and values must be encodable as latin-1, which is how they go on the wire.
    """
    if not headers:
        return ()
    if isinstance(headers, (str, bytes)):
        raise InvalidOptionError("headers", "expected a sequence of header lines")

    pairs = []
    for header in headers:
        if isinstance(header, tuple) and len(header) == 2 and all(isinstance(part, str) for part in header):
            name, value = header
        elif isinstance(header, str) and ":" in header:
            name, value = header.split(":", 1)
            if value.startswith(" "):
                value = value[1:]
        else:
            raise InvalidOptionError("headers", f"malformed header {header!r}")

        name = name.strip()
        if not name:
            raise InvalidOptionError("headers", f"empty header name in {header!r}")
        if not name.isascii():
            raise InvalidOptionError("headers", f"header name must be ASCII in {header!r}")
        try:
            value.encode("latin-1")
        except UnicodeEncodeError:
            raise InvalidOptionError("headers", f"header value must be latin-1 in {header!r}") from None
        pairs.append((name, value))
    return tuple(pairs)


def encode_headers(headers: tuple[Header, ...]) -> list[tuple[str, bytes]]:
    """Header pairs with values as latin-1 bytes, ready for the transport."""
    return [(name, value.encode("latin-1")) for name, value in headers]


def _check_option(name: str, value: Any) -> Any:
    if name == "follow_redirects":
        if not isinstance(value, bool):
            raise InvalidOptionError(name, f"expected a bool, got {value!r}")
        return value

    if name in ("connect_timeout", "timeout"):
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidOptionError(name, f"expected seconds, got {value!r}")
        if value <= 0:
            raise InvalidOptionError(name, f"must be positive, got {value!r}")
        return float(value)

    # params
    if value is not None and not isinstance(value, Mapping):
        raise InvalidOptionError(name, f"expected a mapping, got {type(value).__name__}")
    return dict(value) if value is not None else None
