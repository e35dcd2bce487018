"""Per-request response sink.

Middleware write output directly as a side effect rather than returning
a value, so each request gets one mutable ``ResponseWriter``. The WSGI
layer turns it into a status line, headers and a body once dispatch has
finished. Output already written is never rolled back.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Callable, Mapping
from http import HTTPStatus
from pathlib import Path
from typing import Any

from switchyard.errors import HTTPError

DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"


class ResponseWriter:
    """Accumulates status, headers and body for one request.

    Usage inside a middleware::

        def hello(next):
            get_response().write("hello")
            next()
    """

    __slots__ = ("_chunks", "_headers", "content_type", "status")

    def __init__(self) -> None:
        self.status: int = 200
        self.content_type: str = DEFAULT_CONTENT_TYPE
        self._headers: list[tuple[str, str]] = []
        self._chunks: list[bytes] = []

    # -- Status and headers --

    def set_status(self, status: int) -> ResponseWriter:
        self.status = status
        return self

    def set_header(self, name: str, value: str) -> ResponseWriter:
        """Set a header, replacing any previous value with the same name."""
        if name.lower() == "content-type":
            self.content_type = value
            return self
        lowered = name.lower()
        self._headers = [(n, v) for n, v in self._headers if n.lower() != lowered]
        self._headers.append((name, value))
        return self

    def add_header(self, name: str, value: str) -> ResponseWriter:
        """Append a header without touching existing ones (e.g. ``Set-Cookie``)."""
        self._headers.append((name, value))
        return self

    def header(self, name: str) -> str | None:
        """Return the last value set for *name*, or ``None``."""
        if name.lower() == "content-type":
            return self.content_type
        for n, v in reversed(self._headers):
            if n.lower() == name.lower():
                return v
        return None

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._headers)

    # -- Body --

    def write(self, data: str | bytes) -> ResponseWriter:
        """Append *data* to the body. Strings are UTF-8 encoded."""
        self._chunks.append(data.encode("utf-8") if isinstance(data, str) else data)
        return self

    def json(self, payload: Any, *, status: int | None = None, indent: int | None = None) -> ResponseWriter:
        """Write *payload* as a JSON document."""
        if status is not None:
            self.status = status
        self.content_type = "application/json"
        return self.write(json_module.dumps(payload, indent=indent, default=str))

    def send(
        self,
        payload: Any = None,
        *,
        status: int = 200,
        render: Callable[[Any], Any] | None = None,
        file_path: str | Path | None = None,
    ) -> ResponseWriter:
        """Write a success response, picking the format from the arguments.

        - *render* given -> ``render(payload)`` writes the output itself
        - dict or list -> JSON
        - str -> written as-is
        - *file_path* given -> file download

        Raises:
            HTTPError: 500 when nothing usable was provided.
        """
        self.status = status
        if render is not None:
            render(payload)
            return self
        if isinstance(payload, Mapping | list):
            return self.json(dict(payload) if isinstance(payload, Mapping) else payload)
        if isinstance(payload, str):
            return self.write(payload)
        if file_path is not None and Path(file_path).is_file():
            return self.send_file(file_path)
        raise HTTPError(status=500, detail=f"Invalid response type: {type(payload).__name__}")

    def send_file(self, file_path: str | Path, *, download_name: str | None = None) -> ResponseWriter:
        """Write a file as an attachment download."""
        path = Path(file_path)
        name = download_name or path.name
        self.content_type = "application/octet-stream"
        self.set_header("Content-Disposition", f'attachment; filename="{name}"')
        return self.write(path.read_bytes())

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def written(self) -> bool:
        """True once any body bytes have been written."""
        return any(self._chunks)

    # -- WSGI --

    @property
    def status_line(self) -> str:
        try:
            phrase = HTTPStatus(self.status).phrase
        except ValueError:
            phrase = "Unknown"
        return f"{self.status} {phrase}"

    def wsgi_headers(self) -> list[tuple[str, str]]:
        """Headers for ``start_response``, with Content-Type and Content-Length."""
        body_length = sum(len(chunk) for chunk in self._chunks)
        headers = [("Content-Type", self.content_type)]
        headers.extend((n, v) for n, v in self._headers if n.lower() != "content-length")
        headers.append(("Content-Length", str(body_length)))
        return headers

    def __repr__(self) -> str:
        return f"ResponseWriter(status={self.status}, bytes={sum(len(c) for c in self._chunks)})"
