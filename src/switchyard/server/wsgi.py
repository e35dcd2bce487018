"""WSGI bridge.

Builds the frozen ``Request`` from the environ, dispatches it, and
hands the written ``ResponseWriter`` to ``start_response``. Failures
before dispatch (oversized or malformed bodies) go through the same
error handler; if the error handler itself fails, a bare 500 is sent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from switchyard.context import bind
from switchyard.errors import SwitchyardError
from switchyard.http.headers import Headers
from switchyard.http.request import Request, is_ajax_request
from switchyard.http.response import ResponseWriter
from switchyard.routing.chain import as_unhandled

if TYPE_CHECKING:
    from switchyard.app import App

logger = logging.getLogger("switchyard.server")

_FALLBACK_BODY = b"Internal Server Error"


def handle_environ(
    app: App,
    environ: dict[str, Any],
    start_response: Callable[..., Any],
) -> Iterable[bytes]:
    """Serve one WSGI call through *app*."""
    try:
        response = _respond(app, environ)
    except Exception:
        logger.exception(
            "Error handler failed for %s %s",
            environ.get("REQUEST_METHOD", "?"),
            environ.get("PATH_INFO", "?"),
        )
        start_response(
            "500 Internal Server Error",
            [("Content-Type", "text/plain; charset=utf-8"), ("Content-Length", str(len(_FALLBACK_BODY)))],
        )
        return [_FALLBACK_BODY]

    start_response(response.status_line, response.wsgi_headers())
    if environ.get("REQUEST_METHOD", "").upper() == "HEAD":
        return [b""]
    return [response.body]


def _respond(app: App, environ: dict[str, Any]) -> ResponseWriter:
    try:
        request = Request.from_environ(environ, max_content_length=app.config.max_content_length)
    except Exception as exc:
        return _reject(app, environ, as_unhandled(exc))
    return app.handle(request)


def _reject(app: App, environ: dict[str, Any], exc: SwitchyardError) -> ResponseWriter:
    """Report a request that could not be parsed, using the app's error handler."""
    headers = Headers.from_environ(environ)
    bare = Request(
        method=str(environ.get("REQUEST_METHOD", "GET")).upper(),
        path=environ.get("PATH_INFO", "") or "/",
        is_ajax=is_ajax_request(headers),
        headers=headers,
        remote_addr=environ.get("REMOTE_ADDR"),
    )
    response = ResponseWriter()
    with bind(bare, response):
        app.error_handler(exc, bare.is_ajax)
    return response
