import functools
import logging
import time
from collections.abc import Hashable, Iterable, Mapping, Sequence
from typing import Any, Dict, List, Tuple

import aiometer
import anyio
import httpx

from mbatcher.delivery import Delivery, SynchronousDelivery
from mbatcher.errors import InvalidOptionError, TransportError
from mbatcher.options import Header, RequestSpec, encode_headers
from mbatcher.result import ResultEntry

log = logging.getLogger(__name__)


class RequestBatch:
    """Registers independent HTTP requests and executes them all at once.

    Requests are stored under caller-chosen keys. `execute()` sends every
    registered request concurrently, waits for all of them and returns a
    dict mapping each key to its `ResultEntry`. A request that fails at the
    transport level does not raise; its entry carries the error instead.

    Registration is not synchronized. Callers sharing a batch between threads
    must finish registering before calling `execute()`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        max_concurrent: int | None = None,
        max_per_second: float | None = None,
        max_connections: int | None = None,
        http2: bool = False,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
        delivery: Delivery | None = None,
    ):
        """Initialize an empty batch.

        `max_concurrent` and `max_per_second` default to None, which starts
        every request together.
        """
        self.base_url = base_url
        self.max_concurrent = max_concurrent
        self.max_per_second = max_per_second
        self.max_connections = max_connections
        self.delivery = delivery or SynchronousDelivery()

        client_kwargs: Dict[str, Any] = {}
        if http2:
            client_kwargs["http2"] = http2
        if base_url:
            client_kwargs["base_url"] = base_url
        if not verify:
            client_kwargs["verify"] = False
        if transport is not None:
            client_kwargs["transport"] = transport
        self.client_kwargs = client_kwargs

        self._requests: Dict[Hashable, RequestSpec] = {}

    def __len__(self) -> int:
        return len(self._requests)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._requests

    def keys(self) -> List[Hashable]:
        return list(self._requests)

    def clear(self) -> None:
        self._requests.clear()

    def unregister(self, key: Hashable) -> None:
        del self._requests[key]

    def register(
        self,
        key: Hashable,
        url: str,
        headers: Sequence[str | Header] = (),
        method: str = "GET",
        body: bytes | str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Register a request under `key`, replacing any request already there.

        Nothing is sent until `execute()`. Raises `MissingKeyError`,
        `InvalidMethodError` or `InvalidOptionError` without touching the
        batch when the request is rejected.
        """
        spec = RequestSpec.build(key, url, headers, method, body, options)
        if key in self._requests:
            log.debug("Replacing request %r with %s %s", key, spec.method, url)
        else:
            log.debug("Registered request %r: %s %s", key, spec.method, url)
        self._requests[key] = spec

    def get(self, key: Hashable, url: str, **kwargs) -> None:
        """Register a GET request."""
        self.register(key, url, method="GET", **kwargs)

    def post(self, key: Hashable, url: str, body: bytes | str | None = None, **kwargs) -> None:
        """Register a POST request."""
        self.register(key, url, method="POST", body=body, **kwargs)

    def put(self, key: Hashable, url: str, body: bytes | str | None = None, **kwargs) -> None:
        """Register a PUT request."""
        self.register(key, url, method="PUT", body=body, **kwargs)

    def delete(self, key: Hashable, url: str, **kwargs) -> None:
        """Register a DELETE request."""
        self.register(key, url, method="DELETE", **kwargs)

    def execute(self) -> Dict[Hashable, ResultEntry]:
        """Send every registered request concurrently and wait for all of them.

        The registered requests are consumed; the batch is empty afterwards
        and can be filled again.
        """
        pending = list(self._requests.items())
        self._requests.clear()
        if not pending:
            return {}
        return self.delivery.deliver(functools.partial(self._process, pending))

    async def _process(self, pending: List[Tuple[Hashable, RequestSpec]]) -> Dict[Hashable, ResultEntry]:
        """Run all requests over one client and pair each result with its key."""
        started = time.monotonic()
        log.info("Executing batch of %d requests", len(pending))

        # Without a connection cap every request gets its own connection and
        # starts at once. With one, requests are held back before their clock
        # starts instead of waiting on the pool inside their deadline.
        client_kwargs = dict(self.client_kwargs)
        max_at_once = self.max_concurrent
        if self.max_connections:
            client_kwargs["limits"] = httpx.Limits(max_connections=self.max_connections)
            max_at_once = min(max_at_once or self.max_connections, self.max_connections)
        else:
            client_kwargs["limits"] = httpx.Limits(max_connections=None, max_keepalive_connections=None)

        async with httpx.AsyncClient(**client_kwargs) as client:
            entries = await aiometer.run_all(
                [functools.partial(self._fetch, client, key, spec) for key, spec in pending],
                max_at_once=max_at_once,
                max_per_second=self.max_per_second,
            )

        # run_all returns results in input order, whatever order they finished in.
        results = {key: entry for (key, _), entry in zip(pending, entries, strict=True)}

        failed = sum(1 for entry in entries if not entry.ok)
        log.info(
            "Batch finished in %.3fs: %d succeeded, %d failed",
            time.monotonic() - started,
            len(entries) - failed,
            failed,
        )
        return results

    async def _fetch(self, client: httpx.AsyncClient, key: Hashable, spec: RequestSpec) -> ResultEntry:
        """Execute a single request and capture its outcome."""
        options = spec.options
        started = time.monotonic()
        response = None
        try:
            request = client.build_request(
                options.method,
                spec.url,
                headers=encode_headers(options.headers),
                content=options.body,
                params=options.params,
                timeout=httpx.Timeout(options.timeout, connect=options.connect_timeout, pool=None),
            )
            with anyio.fail_after(options.timeout):
                response = await client.send(request, follow_redirects=options.follow_redirects)
        except (httpx.HTTPError, httpx.InvalidURL, TimeoutError) as e:
            error = TransportError.from_exception(e, url=spec.url)
            log.warning("Request %r (%s %s) failed: %s", key, spec.method, spec.url, error)
            return ResultEntry.from_error(key, spec.method, spec.url, error, time.monotonic() - started)
        finally:
            if response is not None:
                await response.aclose()

        elapsed = time.monotonic() - started
        log.debug("Request %r (%s %s) returned %d in %.3fs", key, spec.method, spec.url, response.status_code, elapsed)
        return ResultEntry.from_response(key, spec.method, spec.url, response, elapsed)


def run(requests: Iterable[Any], **batch_kwargs) -> Dict[Hashable, ResultEntry]:
    """Build a batch from request descriptions and execute it.

    Each item is a URL string (keyed by the URL), a ``(key, url)`` tuple, or a
    dict with ``url`` and optional ``key``, ``method``, ``headers``, ``body``
    and ``options``.
    """
    batch = RequestBatch(**batch_kwargs)
    for item in requests:
        if isinstance(item, dict):
            url = item.get("url")
            if not url:
                raise InvalidOptionError("url", "request dict must contain a url")
            batch.register(
                item.get("key", url),
                url,
                headers=item.get("headers", ()),
                method=item.get("method", "GET"),
                body=item.get("body"),
                options=item.get("options"),
            )
        elif isinstance(item, tuple):
            key, url = item
            batch.register(key, url)
        else:
            batch.register(item, item)
    return batch.execute()
