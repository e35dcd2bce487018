"""Request body parsing — URL-encoded, multipart and JSON.

``FormData`` implements ``MultiValueDict`` so form fields read the same
way as query parameters. Multipart bodies are parsed with
``python-multipart``; URL-encoded and JSON bodies use the stdlib.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from switchyard._internal.multimap import MultiValueDict
from switchyard.errors import HTTPError


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    The content is held in memory as bytes (suitable for typical web
    uploads).
    """

    filename: str
    content_type: str
    size: int
    _content: bytes

    def read(self) -> bytes:
        """Return the file content as bytes."""
        return self._content

    def save(self, path: str | Path) -> Path:
        """Write the file content to *path* and return it.

        If *path* is an existing directory the upload's own filename is
        used inside it. Parent directories must exist.
        """
        target = Path(path)
        if target.is_dir():
            target = target / Path(self.filename).name
        target.write_bytes(self._content)
        return target

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(MultiValueDict):
    """Immutable parsed form data.

    Holds string field values and uploaded files::

        form = get_request().body
        username = form["username"]
        avatars = form.files.get("avatar")  # list[UploadFile] or None
    """

    __slots__ = ("_files",)

    def __init__(
        self,
        data: dict[str, list[str]] | None = None,
        files: dict[str, list[UploadFile]] | None = None,
    ) -> None:
        super().__init__(data)
        object.__setattr__(self, "_files", MappingProxyType(files or {}))

    @property
    def files(self) -> Mapping[str, list[UploadFile]]:
        """Uploaded files by field name (a field may carry several files)."""
        return self._files


EMPTY_BODY: Mapping[str, Any] = FormData()


def parse_body(raw: bytes, content_type: str | None) -> Mapping[str, Any]:
    """Parse a request body into a read-only mapping.

    - ``application/x-www-form-urlencoded`` -> ``FormData``
    - ``multipart/form-data`` -> ``FormData`` with ``files``
    - ``application/json`` -> read-only view of the decoded object

    Empty bodies and other content types produce an empty mapping.

    Raises:
        HTTPError: 400 for malformed JSON, a JSON body that is not an
            object, a form body that is not UTF-8, or a multipart body
            that has no boundary, is badly framed or is truncated.
    """
    if not raw:
        return EMPTY_BODY

    mime = (content_type or "").split(";", 1)[0].strip().lower()

    if mime == "application/x-www-form-urlencoded":
        return _parse_urlencoded(raw)
    if mime == "multipart/form-data":
        return _parse_multipart(raw, content_type or "")
    if mime == "application/json" or mime.endswith("+json"):
        return _parse_json(raw)
    return EMPTY_BODY


def _parse_urlencoded(raw: bytes) -> FormData:
    from urllib.parse import parse_qs

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPError(status=400, detail="Form body is not valid UTF-8") from exc
    return FormData(parse_qs(text, keep_blank_values=True))


def _parse_json(raw: bytes) -> Mapping[str, Any]:
    try:
        decoded = json.loads(raw)
    except ValueError:
        raise HTTPError(status=400, detail="Malformed JSON body") from None
    if not isinstance(decoded, dict):
        raise HTTPError(status=400, detail="JSON body must be an object")
    return MappingProxyType(decoded)


class _MultipartCollector:
    """Accumulates fields and files from python-multipart parser callbacks."""

    def __init__(self) -> None:
        self.data: dict[str, list[str]] = {}
        self.files: dict[str, list[UploadFile]] = {}
        self._headers: dict[str, str] = {}
        self._pending_field = ""
        self._buffer = bytearray()
        self.complete = False

    def callbacks(self) -> dict[str, Any]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._buffer = bytearray()

    def on_part_data(self, chunk: bytes, start: int, end: int) -> None:
        self._buffer.extend(chunk[start:end])

    def on_header_field(self, chunk: bytes, start: int, end: int) -> None:
        self._pending_field += chunk[start:end].decode("latin-1").lower()

    def on_header_value(self, chunk: bytes, start: int, end: int) -> None:
        name = self._pending_field
        self._headers[name] = self._headers.get(name, "") + chunk[start:end].decode("latin-1")

    def on_header_end(self) -> None:
        self._pending_field = ""

    def on_end(self) -> None:
        self.complete = True

    def on_part_end(self) -> None:
        from python_multipart.multipart import parse_options_header

        disposition = self._headers.get("content-disposition")
        if disposition is None:
            return
        _, params = parse_options_header(disposition)
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        content = bytes(self._buffer)

        if filename is None:
            self.data.setdefault(field_name, []).append(
                content.decode("utf-8", errors="replace")
            )
            return

        upload = UploadFile(
            filename=filename.decode("utf-8"),
            content_type=self._headers.get("content-type", "application/octet-stream"),
            size=len(content),
            _content=content,
        )
        self.files.setdefault(field_name, []).append(upload)


def _parse_multipart(raw: bytes, content_type: str) -> FormData:
    from python_multipart.exceptions import MultipartParseError
    from python_multipart.multipart import MultipartParser, parse_options_header

    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        raise HTTPError(status=400, detail="Multipart form data missing boundary parameter")

    collector = _MultipartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        parser.write(raw)
        parser.finalize()
    except MultipartParseError as exc:
        raise HTTPError(status=400, detail=f"Malformed multipart body: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise HTTPError(status=400, detail="Multipart field name or filename is not valid UTF-8") from exc
    if not collector.complete:
        raise HTTPError(status=400, detail="Truncated multipart body: closing boundary missing")
    return FormData(collector.data, collector.files)
