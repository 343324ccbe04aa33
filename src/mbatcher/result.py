"""Outcome of one executed request."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any, Dict

import httpx

from mbatcher.errors import TransportError


@dataclass
class ResultEntry:
    """Status, metadata and body of one request in a batch.

    A request that failed at the transport level has `status_code == 0`,
    an empty body and its failure in `error`.
    """

    key: Hashable
    url: str
    method: str
    status_code: int = 0
    effective_url: str = ""
    total_time: float = 0.0
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""
    http_version: str | None = None
    reason_phrase: str | None = None
    content_type: str | None = None
    redirect_count: int = 0
    error: TransportError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def size_download(self) -> int:
        return len(self.content)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @classmethod
    def from_response(
        cls, key: Hashable, method: str, url: str, response: httpx.Response, elapsed: float
    ) -> ResultEntry:
        """Capture a fully read response."""
        return cls(
            key=key,
            url=url,
            method=method,
            status_code=response.status_code,
            effective_url=str(response.url),
            total_time=elapsed,
            headers=response.headers,
            content=response.content,
            http_version=response.http_version,
            reason_phrase=response.reason_phrase,
            content_type=response.headers.get("content-type"),
            redirect_count=len(response.history),
        )

    @classmethod
    def from_error(
        cls, key: Hashable, method: str, url: str, error: TransportError, elapsed: float
    ) -> ResultEntry:
        return cls(
            key=key,
            url=url,
            method=method,
            effective_url=url,
            total_time=elapsed,
            error=error,
        )

    def as_dict(self) -> Dict[str, Any]:
        """Flat metadata mapping, with the body under "content"."""
        return {
            "url": self.effective_url,
            "http_code": self.status_code,
            "total_time": self.total_time,
            "content_type": self.content_type,
            "redirect_count": self.redirect_count,
            "size_download": self.size_download,
            "http_version": self.http_version,
            "error": str(self.error) if self.error else None,
            "errno": self.error.kind.value if self.error else None,
            "content": self.content,
        }
