"""Development server.

Serves a live ``App`` with the standard library's ``wsgiref`` server,
one thread per request. Not meant for production; point a WSGI server
such as gunicorn at ``module:app`` instead.
"""

import logging
from socketserver import ThreadingMixIn
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

logger = logging.getLogger("switchyard.server")


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    """Routes access lines through logging instead of stderr."""

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002 — signature from BaseHTTPRequestHandler
        logger.info("%s - %s", self.address_string(), format % args)


def configure_logging(level: str) -> None:
    """Attach a stream handler to the ``switchyard`` logger at *level*."""
    root = logging.getLogger("switchyard")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)


def run_dev_server(app: Any, host: str, port: int, *, log_level: str = "info") -> None:
    """Serve *app* on ``host:port`` until interrupted.

    Args:
        app: WSGI callable (switchyard App instance).
        host: Bind host address.
        port: Bind port number.
        log_level: Level for the ``switchyard`` logger.
    """
    configure_logging(log_level)
    with make_server(
        host,
        port,
        app,
        server_class=_ThreadingWSGIServer,
        handler_class=_QuietHandler,
    ) as server:
        logger.info("Serving on http://%s:%d", host, port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
