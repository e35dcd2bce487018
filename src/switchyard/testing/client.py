"""Synchronous test client for switchyard applications.

Drives the app through its WSGI interface directly — no sockets —
and returns a ``TestResponse`` snapshot of what was written.
"""

from __future__ import annotations

import io
import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from switchyard.app import App


@dataclass(frozen=True, slots=True)
class TestResponse:
    """Status, headers and body captured from one WSGI call."""

    __test__ = False

    status: int
    headers: tuple[tuple[str, str], ...]
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    def header(self, name: str) -> str | None:
        """Return the first value for header *name*, or ``None``."""
        lowered = name.lower()
        for n, v in self.headers:
            if n.lower() == lowered:
                return v
        return None

    def json(self) -> Any:
        return json_module.loads(self.body)


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Test client for switchyard applications.

    Usage::

        with TestClient(app) as client:
            response = client.get("/api/users")
            assert response.status == 200

        # ajax requests set X-Requested-With: XMLHttpRequest
        response = client.get("/api/users", ajax=True)
    """

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    def __enter__(self) -> TestClient:
        self.app.freeze()
        return self

    def __exit__(self, *args: object) -> None:
        return None

    def get(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
        ajax: bool = False,
    ) -> TestResponse:
        """Send a GET request."""
        return self.request("GET", path, headers=headers, query=query, ajax=ajax)

    def post(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        data: Mapping[str, str] | None = None,
        json: Any = None,
        ajax: bool = False,
    ) -> TestResponse:
        """Send a POST request.

        ``data`` is sent URL-encoded, ``json`` as a JSON document.
        """
        extra: dict[str, str] = {}
        payload = body or b""
        if data is not None:
            payload = urlencode(data).encode("utf-8")
            extra["Content-Type"] = "application/x-www-form-urlencoded"
        elif json is not None:
            payload = json_module.dumps(json).encode("utf-8")
            extra["Content-Type"] = "application/json"
        merged = {**extra, **(headers or {})}
        return self.request("POST", path, headers=merged, body=payload, ajax=ajax)

    def put(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        ajax: bool = False,
    ) -> TestResponse:
        """Send a PUT request."""
        return self.request("PUT", path, headers=headers, body=body, ajax=ajax)

    def delete(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        ajax: bool = False,
    ) -> TestResponse:
        """Send a DELETE request."""
        return self.request("DELETE", path, headers=headers, ajax=ajax)

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
        body: bytes | None = None,
        ajax: bool = False,
    ) -> TestResponse:
        """Send an arbitrary request through the WSGI interface."""
        path_part, _, query_string = path.partition("?")
        if query:
            extra_qs = urlencode(query)
            query_string = f"{query_string}&{extra_qs}" if query_string else extra_qs

        all_headers = dict(headers or {})
        if ajax:
            all_headers.setdefault("X-Requested-With", "XMLHttpRequest")

        environ = _build_environ(method, path_part, query_string, all_headers, body or b"")
        captured: dict[str, Any] = {}

        def start_response(status: str, response_headers: list[tuple[str, str]], exc_info: Any = None) -> None:
            captured["status"] = int(status.split(" ", 1)[0])
            captured["headers"] = tuple(response_headers)

        chunks = self.app(environ, start_response)
        body_bytes = b"".join(chunks)
        return TestResponse(
            status=captured["status"],
            headers=captured["headers"],
            body=body_bytes,
        )


def _build_environ(
    method: str,
    path: str,
    query_string: str,
    headers: Mapping[str, str],
    body: bytes,
) -> dict[str, Any]:
    environ: dict[str, Any] = {
        "REQUEST_METHOD": method.upper(),
        "SCRIPT_NAME": "",
        "PATH_INFO": path.encode("utf-8").decode("latin-1"),
        "QUERY_STRING": query_string,
        "SERVER_NAME": "testserver",
        "SERVER_PORT": "80",
        "SERVER_PROTOCOL": "HTTP/1.1",
        "REMOTE_ADDR": "127.0.0.1",
        "wsgi.version": (1, 0),
        "wsgi.url_scheme": "http",
        "wsgi.input": io.BytesIO(body),
        "wsgi.errors": io.StringIO(),
        "wsgi.multithread": False,
        "wsgi.multiprocess": False,
        "wsgi.run_once": False,
    }
    if body:
        environ["CONTENT_LENGTH"] = str(len(body))
    for name, value in headers.items():
        key = name.upper().replace("-", "_")
        if key in ("CONTENT_TYPE", "CONTENT_LENGTH"):
            environ[key] = value
        else:
            environ[f"HTTP_{key}"] = value
    return environ
