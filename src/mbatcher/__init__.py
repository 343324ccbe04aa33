"""
mbatcher: run a batch of independent HTTP requests concurrently.

Register requests under your own keys, then execute them together:

    >>> batch = RequestBatch()
    >>> batch.get("home", "https://example.com/")
    >>> batch.post("login", "https://example.com/login", body="user=me")
    >>> results = batch.execute()
    >>> results["home"].status_code
    200
"""

from mbatcher.client import RequestBatch, run
from mbatcher.delivery import Delivery, SynchronousDelivery
from mbatcher.errors import (
    BatchError,
    ErrorKind,
    InvalidMethodError,
    InvalidOptionError,
    MissingKeyError,
    RegistrationError,
    TransportError,
)
from mbatcher.options import DEFAULT_CONNECT_TIMEOUT, DEFAULT_TIMEOUT, RequestOptions, RequestSpec
from mbatcher.result import ResultEntry

__version__ = "0.1.0"

__all__ = [
    "BatchError",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_TIMEOUT",
    "Delivery",
    "ErrorKind",
    "InvalidMethodError",
    "InvalidOptionError",
    "MissingKeyError",
    "RegistrationError",
    "RequestBatch",
    "RequestOptions",
    "RequestSpec",
    "ResultEntry",
    "SynchronousDelivery",
    "TransportError",
    "run",
]
