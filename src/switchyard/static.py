"""Static file fallback.

Serves files from a root directory when dispatch finds no route. The
Content-Type comes from an explicit extension table, optionally
extended or overridden per application; unknown extensions are served
as ``application/octet-stream``.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from switchyard.errors import NotFound
from switchyard.http.response import ResponseWriter

logger = logging.getLogger("switchyard.static")

DEFAULT_CONTENT_TYPE = "application/octet-stream"

MIME_TYPES: Mapping[str, str] = {
    ".html": "text/html; charset=utf-8",
    ".htm": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "text/javascript; charset=utf-8",
    ".mjs": "text/javascript; charset=utf-8",
    ".json": "application/json",
    ".map": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain; charset=utf-8",
    ".csv": "text/csv; charset=utf-8",
    ".md": "text/markdown; charset=utf-8",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".ico": "image/x-icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".wasm": "application/wasm",
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
}


class StaticFiles:
    """Serves files below ``directory`` for paths no route claimed.

    Usage::

        static = StaticFiles("./public", mime_types={".webmanifest": "application/manifest+json"})
        static.serve("/css/site.css", response)

    ``serve`` raises ``NotFound`` for a path without a file extension
    (without touching the filesystem), and for a file that does not
    exist, is not a regular file, is not readable, or resolves outside
    ``directory``.
    """

    __slots__ = ("_cache_control", "_directory", "_mime_types")

    def __init__(
        self,
        directory: str | Path,
        *,
        mime_types: Mapping[str, str] | None = None,
        cache_control: str | None = None,
    ) -> None:
        self._directory = Path(directory).resolve()
        self._mime_types = {**MIME_TYPES, **{_normalize_ext(k): v for k, v in (mime_types or {}).items()}}
        self._cache_control = cache_control

    @property
    def directory(self) -> Path:
        return self._directory

    def content_type_for(self, path: str | Path) -> str:
        """Content-Type for *path*'s extension, or the generic binary type."""
        return self._mime_types.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)

    def resolve(self, request_path: str) -> Path:
        """Map a request path to a readable file under the root.

        Raises:
            NotFound: If the path has no extension or no readable file exists.
        """
        relative = request_path.lstrip("/")
        if not Path(relative).suffix:
            raise NotFound(f"No file extension in {request_path!r}")

        try:
            file_path = (self._directory / relative).resolve()
            if not file_path.is_relative_to(self._directory):
                raise NotFound(f"{request_path!r} resolves outside the static root")
            readable = file_path.is_file() and os.access(file_path, os.R_OK)
        except (OSError, ValueError) as exc:
            # Embedded NUL bytes, overlong names, symlink loops
            raise NotFound(f"Unusable static path {request_path!r}") from exc
        if not readable:
            raise NotFound(f"No readable file for {request_path!r}")
        return file_path

    def serve(self, request_path: str, response: ResponseWriter) -> Path:
        """Write the file for *request_path* into *response* and return its path."""
        file_path = self.resolve(request_path)
        body = file_path.read_bytes()
        response.set_status(200)
        response.set_header("Content-Type", self.content_type_for(file_path))
        if self._cache_control:
            response.set_header("Cache-Control", self._cache_control)
        response.write(body)
        logger.debug("Served %s (%d bytes)", file_path, len(body))
        return file_path


def _normalize_ext(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"
