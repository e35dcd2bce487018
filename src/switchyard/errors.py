"""Switchyard exception hierarchy.

Shared across the dispatcher, routes, static serving and error
handlers so every module raises and catches the same types.
"""

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when app configuration is invalid.

    Typically raised while routes are being registered, before any
    request is served.
    """


class InvalidMiddleware(ConfigurationError):  # noqa: N818 — mirrors the taxonomy name
    """A registered middleware entry is not callable.

    Raised at registration time, never while a chain is running.
    """

    def __init__(self, entry: Any, position: int | None = None) -> None:
        self.entry = entry
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Non-callable middleware{where}: {entry!r}")


class MissingErrorHandler(SwitchyardError):
    """A route chain was run without a usable error handler."""

    def __init__(self, handler: Any = None) -> None:
        self.handler = handler
        super().__init__(f"A callable error handler is required, got {handler!r}")


@dataclass(frozen=True, slots=True)
class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    ``detail`` is the developer-facing description (logged, shown in
    debug mode). ``message`` is the public text sent to clients; it
    defaults to the standard reason phrase for ``status``.
    """

    status: int
    detail: str = ""
    message: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @property
    def public_message(self) -> str:
        if self.message:
            return self.message
        try:
            return HTTPStatus(self.status).phrase
        except ValueError:
            return "Error"


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched and no static file could be served."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail, message="Not Found")


class UpstreamMiddlewareError(SwitchyardError):
    """A middleware passed a non-exception error value to its continuation.

    The original value is kept on ``value`` so error handlers can
    inspect whatever the middleware reported.
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Middleware reported an error: {value!r}")


class UnhandledException(SwitchyardError):  # noqa: N818 — mirrors the taxonomy name
    """Wraps any other exception raised while running middleware or serving a file."""

    def __init__(self, original: BaseException) -> None:
        self.original = original
        super().__init__(f"{type(original).__name__}: {original}")
