"""
Error classes for mbatcher.

Registration errors are raised synchronously to the caller of `register`.
A `TransportError` is never raised by `execute`; it is attached to the
`ResultEntry` of the request that failed.
"""

from __future__ import annotations

from enum import Enum

import httpx


class BatchError(Exception):
    """Base class for all mbatcher errors."""


class RegistrationError(BatchError, ValueError):
    """A request could not be registered. The batch is left unchanged."""


class InvalidMethodError(RegistrationError):
    def __init__(self, method: object):
        self.method = method
        super().__init__(f"Invalid method: {method!r}")


class MissingKeyError(RegistrationError):
    def __init__(self, message: str = "A request key is required"):
        super().__init__(message)


class InvalidOptionError(RegistrationError):
    def __init__(self, option: str, message: str):
        self.option = option
        super().__init__(f"{option}: {message}")


class ErrorKind(str, Enum):
    """What went wrong at the transport level."""

    CONNECT = "connect"
    CONNECT_TIMEOUT = "connect_timeout"
    TIMEOUT = "timeout"
    PROTOCOL = "protocol"
    OTHER = "other"


class TransportError(BatchError):
    """A single request failed before a complete response was read."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.OTHER,
        url: str | None = None,
        cause: BaseException | None = None,
    ):
        self.kind = kind
        self.url = url
        self.cause = cause
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: BaseException, url: str | None = None) -> TransportError:
        """Classify an httpx or deadline exception."""
        if isinstance(exc, httpx.ConnectTimeout):
            kind = ErrorKind.CONNECT_TIMEOUT
        elif isinstance(exc, (httpx.TimeoutException, TimeoutError)):
            kind = ErrorKind.TIMEOUT
        elif isinstance(exc, httpx.ConnectError):
            kind = ErrorKind.CONNECT
        elif isinstance(exc, (httpx.ProtocolError, httpx.DecodingError, httpx.TooManyRedirects)):
            kind = ErrorKind.PROTOCOL
        else:
            kind = ErrorKind.OTHER

        detail = str(exc) or type(exc).__name__
        return cls(f"{kind.value} error: {detail}", kind=kind, url=url, cause=exc)
