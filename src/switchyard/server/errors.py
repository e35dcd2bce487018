"""Default error handler.

Turns any failure reported by dispatch into a response. The ajax flag
picks the format: JSON for ajax requests, a small HTML page otherwise.
Debug mode adds the developer detail and a stack trace.
"""

import html
import json
import logging
import traceback
from collections.abc import Mapping
from typing import Any

from switchyard.context import get_request, get_response
from switchyard.errors import HTTPError, UnhandledException, UpstreamMiddlewareError

logger = logging.getLogger("switchyard.server")

_DEV_STYLES = """<style>
  pre { width: fit-content; min-width: calc(100% - 20px); padding: 10px; margin: 0 0 10px;
        overflow: auto; font-size: 12px; line-height: 20px; background: #efefef; border: 1px solid #777; }
  pre code { padding: 10px; color: #333; }
</style>
"""


def error_status(error: BaseException) -> int:
    """HTTP status for *error*: the HTTPError status, a status reported by
    middleware, or 500."""
    if isinstance(error, HTTPError):
        return error.status
    if isinstance(error, UpstreamMiddlewareError) and isinstance(error.value, Mapping):
        for key in ("status", "statusCode", "status_code"):
            status = error.value.get(key)
            if isinstance(status, int) and 400 <= status <= 599:
                return status
    return 500


def public_message(error: BaseException) -> str:
    """Client-safe message for *error*."""
    if isinstance(error, HTTPError):
        return error.public_message
    if isinstance(error, UpstreamMiddlewareError) and isinstance(error.value, Mapping):
        message = error.value.get("message")
        if isinstance(message, str) and message:
            return message
    return "Internal Server Error"


def format_error(error: BaseException, *, debug: bool) -> dict[str, Any]:
    """Build the error payload sent to clients."""
    payload: dict[str, Any] = {
        "success": False,
        "statusCode": error_status(error),
        "message": public_message(error),
    }
    if debug:
        original = error.original if isinstance(error, UnhandledException) else error
        payload["detailed_message"] = str(error)
        payload["stackTrace"] = traceback.format_exception(original)
    return payload


class DefaultErrorHandler:
    """Writes an error response for the current request.

    Usage::

        app = App(error_handler=DefaultErrorHandler(debug=True))

    Production (``debug=False``) responses carry only the status code
    and the public message. Debug responses add ``detailed_message`` and
    ``stackTrace``; the HTML variant also echoes the request.
    """

    __slots__ = ("debug",)

    def __init__(self, *, debug: bool = False) -> None:
        self.debug = debug

    def __call__(self, error: BaseException, is_ajax: bool) -> None:
        payload = format_error(error, debug=self.debug)
        status = payload["statusCode"]
        self._log(error, status)

        response = get_response()
        response.set_status(status)
        if isinstance(error, HTTPError):
            for name, value in error.headers:
                response.set_header(name, value)

        if is_ajax:
            response.json(payload, indent=2)
        elif self.debug:
            response.set_header("Content-Type", "text/html; charset=utf-8")
            response.write(self._render_debug_page(error, payload))
        else:
            response.set_header("Content-Type", "text/html; charset=utf-8")
            response.write(f"<h1>{status}</h1>\n<p>{html.escape(payload['message'])}</p>\n")

    def _log(self, error: BaseException, status: int) -> None:
        try:
            request = get_request()
            where = f"{request.method} {request.path}"
        except LookupError:
            where = "<no request>"
        if status >= 500:
            logger.error("%d %s", status, where, exc_info=error)
        else:
            logger.debug("%d %s — %s", status, where, error)

    def _render_debug_page(self, error: BaseException, payload: dict[str, Any]) -> str:
        parts = [_DEV_STYLES, "<h2>Request</h2>\n"]
        try:
            request = get_request()
        except LookupError:
            parts.append("<p>(outside a request)</p>\n")
        else:
            query = json.dumps(dict(request.query.items()), indent=2)
            body = json.dumps(_jsonable(request.body), indent=2, default=str)
            parts.append(
                f"<p>{html.escape(request.url)} , {html.escape(request.method)}</p>\n"
                f"<p>QUERY PARAMS:</p><pre><code>{html.escape(query)}</code></pre>\n"
                f"<p>BODY:</p><pre><code>{html.escape(body)}</code></pre>\n"
            )
        summary = {k: v for k, v in payload.items() if k != "stackTrace"}
        parts.append("<h2>Error</h2>\n")
        parts.append(f"<pre><code>{html.escape(json.dumps(summary, indent=2))}</code></pre>\n")
        parts.append("<h2>Stack trace</h2>\n")
        parts.append(f"<pre>{html.escape(''.join(payload['stackTrace']))}</pre>\n")
        return "".join(parts)


def _jsonable(body: Mapping[str, Any]) -> dict[str, Any]:
    to_dict = getattr(body, "to_dict", None)
    if to_dict is not None:
        return to_dict()
    return dict(body)
