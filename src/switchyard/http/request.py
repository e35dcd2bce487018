"""Immutable HTTP request.

A frozen snapshot of one inbound call. Built once per request from the
WSGI environ and never changed afterwards; the body is read and parsed
up front so middleware never touches the raw input stream.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from switchyard.errors import HTTPError
from switchyard.http.forms import EMPTY_BODY, FormData, parse_body
from switchyard.http.headers import Headers
from switchyard.http.query import QueryParams

AJAX_HEADER = "x-requested-with"
AJAX_VALUE = "xmlhttprequest"


def is_ajax_request(headers: Mapping[str, str]) -> bool:
    """True when ``X-Requested-With`` is ``XMLHttpRequest`` (any case)."""
    value = headers.get(AJAX_HEADER)
    return value is not None and value.strip().lower() == AJAX_VALUE


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` never carries a query component; query parameters live in
    ``query`` and the parsed body in ``body``. ``is_ajax`` is derived
    from the ``X-Requested-With`` header and is the only input the
    error layer uses to pick a response format.
    """

    method: str
    path: str
    query: QueryParams = field(default_factory=QueryParams)
    body: Mapping[str, Any] = field(default_factory=FormData)
    is_ajax: bool = False
    headers: Headers = field(default_factory=Headers)
    remote_addr: str | None = None

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Request path plus the original query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    # -- Factories --

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, Any],
        *,
        max_content_length: int | None = None,
    ) -> Request:
        """Create a Request from a WSGI environ.

        Raises:
            HTTPError: 413 when the declared body length exceeds
                *max_content_length*, 400 for an unparseable body.
        """
        headers = Headers.from_environ(environ)
        raw = _read_body(environ, max_content_length)
        return cls(
            method=str(environ.get("REQUEST_METHOD", "GET")).upper(),
            path=_decode_path(environ.get("PATH_INFO", "")) or "/",
            query=QueryParams(environ.get("QUERY_STRING", "")),
            body=parse_body(raw, headers.get("content-type")),
            is_ajax=is_ajax_request(headers),
            headers=headers,
            remote_addr=environ.get("REMOTE_ADDR"),
        )

    @classmethod
    def build(
        cls,
        method: str,
        target: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> Request:
        """Build a request from a method and a ``path?query`` target.

        Convenience for tests and programmatic dispatch::

            Request.build("GET", "/api/users?page=2", headers={"X-Requested-With": "XMLHttpRequest"})
        """
        path, _, query_string = target.partition("?")
        hdrs = Headers(tuple((headers or {}).items()))
        return cls(
            method=method.upper(),
            path=path or "/",
            query=QueryParams(query_string),
            body=body if body is not None else EMPTY_BODY,
            is_ajax=is_ajax_request(hdrs),
            headers=hdrs,
        )


def _decode_path(raw: str) -> str:
    # PEP 3333: PATH_INFO arrives as latin-1 decoded bytes
    try:
        return raw.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return raw


def _read_body(environ: Mapping[str, Any], limit: int | None) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        raise HTTPError(status=400, detail="Invalid Content-Length header") from None
    if length <= 0:
        return b""
    if limit is not None and length > limit:
        raise HTTPError(
            status=413,
            detail=f"Request body of {length} bytes exceeds the {limit} byte limit",
        )
    stream = environ.get("wsgi.input")
    if stream is None:
        return b""
    return stream.read(length)
