"""Switchyard application class.

Mutable during setup (route registration, error handler).
Frozen when the first request is handled.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from switchyard.config import AppConfig
from switchyard.dispatcher import Dispatcher
from switchyard.errors import ConfigurationError
from switchyard.http.request import Request
from switchyard.http.response import ResponseWriter
from switchyard.middleware.protocol import ErrorHandler, Middleware
from switchyard.routing.registry import RouteRegistry
from switchyard.routing.route import Route
from switchyard.server.errors import DefaultErrorHandler
from switchyard.static import StaticFiles

logger = logging.getLogger("switchyard.server")


class App:
    """The switchyard application.

    Owns one ``Dispatcher``, one error handler and the static fallback::

        app = App(AppConfig(static_dir="./public"))

        def list_users(next):
            get_response().send({"users": ["ada", "grace"]})

        app.add_route("/api", "/api/users", "GET", [list_users])

    ``App`` is a WSGI callable; ``app.run()`` starts a development server.

    Thread safety:
        Setup is single-threaded. The freeze on first request uses a
        Lock + double-check so exactly one thread performs it even when
        a threaded server calls the app concurrently.
    """

    __slots__ = (
        "_dispatcher",
        "_error_handler",
        "_freeze_lock",
        "_frozen",
        "_static",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._dispatcher = Dispatcher()
        self._error_handler: ErrorHandler | None = error_handler
        self._static: StaticFiles | None = None
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Route registration --

    def add_route(
        self,
        prefix: str,
        path: str,
        method: str,
        middleware: Iterable[Middleware | Any],
        *,
        is_ajax: bool = False,
    ) -> Route:
        """Register *middleware* as the chain for ``method path`` in the *prefix* group.

        Raises:
            InvalidMiddleware: If any middleware entry is not callable.
        """
        self._check_not_frozen()
        return self._dispatcher.register_route(prefix, path, method, is_ajax, middleware)

    def route(
        self,
        prefix: str,
        path: str,
        *,
        method: str = "GET",
        is_ajax: bool = False,
        before: Iterable[Middleware] = (),
    ) -> Callable[[Middleware], Middleware]:
        """Register the decorated function as the last link of a chain.

        ``before`` lists the links that run ahead of it::

            @app.route("/api", "/api/users", method="POST", is_ajax=True, before=[validate_user])
            def create_user(next):
                get_response().send({"created": True}, status=201)
        """

        def decorator(func: Middleware) -> Middleware:
            self.add_route(prefix, path, method, [*before, func], is_ajax=is_ajax)
            return func

        return decorator

    def registry(self) -> RouteRegistry:
        """A fresh, empty registry for building a group to ``mount()``."""
        return RouteRegistry()

    def mount(self, prefix: str, registry: RouteRegistry) -> None:
        """Attach a prebuilt registry under *prefix*."""
        self._check_not_frozen()
        self._dispatcher.mount(prefix, registry)

    def error(self, handler: ErrorHandler) -> ErrorHandler:
        """Install the error handler. Usable as a decorator::

            @app.error
            def on_error(error, is_ajax):
                ...
        """
        self._check_not_frozen()
        if not callable(handler):
            msg = f"Error handler must be callable, got {handler!r}"
            raise ConfigurationError(msg)
        self._error_handler = handler
        return handler

    # -- Accessors --

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def error_handler(self) -> ErrorHandler:
        """The installed handler, or the default one once frozen."""
        if self._error_handler is None:
            return DefaultErrorHandler(debug=self.config.debug)
        return self._error_handler

    @property
    def static(self) -> StaticFiles | None:
        return self._static

    # -- Freeze --

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving requests."
            raise ConfigurationError(msg)

    def freeze(self) -> None:
        """Freeze registration now instead of on the first request."""
        self._ensure_frozen()

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        if self._error_handler is None:
            self._error_handler = DefaultErrorHandler(debug=self.config.debug)
        if self.config.static_dir is not None:
            self._static = StaticFiles(self.config.static_dir, mime_types=self.config.mime_types)
        self._dispatcher.freeze()
        self._frozen = True
        logger.debug("App frozen: %r", self._dispatcher)

    # -- Serving --

    def handle(self, request: Request) -> ResponseWriter:
        """Dispatch one request and return the response it produced."""
        self._ensure_frozen()
        response = ResponseWriter()
        self._dispatcher.dispatch(request, self._error_handler, self._static, response=response)
        return response

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        """WSGI entry point."""
        from switchyard.server.wsgi import handle_environ

        self._ensure_frozen()
        return handle_environ(self, environ, start_response)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the development server (blocking)."""
        from switchyard.server.dev import run_dev_server

        self._ensure_frozen()
        run_dev_server(
            self,
            host or self.config.host,
            port or self.config.port,
            log_level=self.config.log_level,
        )
