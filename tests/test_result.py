"""Tests for ResultEntry."""

import httpx

from mbatcher import ErrorKind, ResultEntry, TransportError


def test_from_response() -> None:
    """Response metadata is captured."""
    request = httpx.Request("GET", "http://example.test/ok")
    response = httpx.Response(200, text="hi", headers={"Content-Type": "text/plain"}, request=request)

    entry = ResultEntry.from_response("a", "GET", "http://example.test/ok", response, 0.25)

    assert entry.ok
    assert entry.status_code == 200
    assert entry.content == b"hi"
    assert entry.text == "hi"
    assert entry.size_download == 2
    assert entry.effective_url == "http://example.test/ok"
    assert entry.http_version == "HTTP/1.1"
    assert entry.reason_phrase == "OK"
    assert entry.content_type == "text/plain"
    assert entry.headers["content-type"] == "text/plain"
    assert entry.total_time == 0.25


def test_from_error() -> None:
    """A failed request has no status and no body."""
    error = TransportError("connect error: refused", kind=ErrorKind.CONNECT)

    entry = ResultEntry.from_error("a", "POST", "http://example.test/x", error, 0.01)

    assert not entry.ok
    assert entry.status_code == 0
    assert entry.content == b""
    assert entry.headers == {}
    assert entry.effective_url == "http://example.test/x"
    assert entry.error is error


def test_as_dict() -> None:
    """as_dict flattens metadata and includes the body."""
    error = TransportError("timeout error: slow", kind=ErrorKind.TIMEOUT)
    entry = ResultEntry.from_error("a", "GET", "http://example.test/slow", error, 4.0)

    info = entry.as_dict()

    assert info["http_code"] == 0
    assert info["url"] == "http://example.test/slow"
    assert info["total_time"] == 4.0
    assert info["errno"] == "timeout"
    assert info["error"] == "timeout error: slow"
    assert info["content"] == b""
