"""Switchyard — a synchronous request dispatcher built on middleware chains.

Routes are grouped by path prefix. The first registered prefix that
matches a request path owns it; inside that group the route with the
exact ``(path, method)`` runs its middleware chain. Anything unclaimed
falls back to static files, and every failure goes to one error handler.

Basic usage::

    from switchyard import App, get_response

    app = App()

    def hello(next):
        get_response().write("Hello, World!")
        next()

    app.add_route("/", "/", "GET", [hello])
    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "DefaultErrorHandler",
    "Dispatcher",
    "ErrorHandler",
    "HTTPError",
    "InvalidMiddleware",
    "Middleware",
    "MissingErrorHandler",
    "Next",
    "NotFound",
    "Request",
    "ResponseWriter",
    "Route",
    "RouteRegistry",
    "StaticFiles",
    "SwitchyardError",
    "UnhandledException",
    "UpstreamMiddlewareError",
    "g",
    "get_request",
    "get_response",
]

_ERRORS = frozenset(
    {
        "ConfigurationError",
        "HTTPError",
        "InvalidMiddleware",
        "MissingErrorHandler",
        "NotFound",
        "SwitchyardError",
        "UnhandledException",
        "UpstreamMiddlewareError",
    }
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "App":
        from switchyard.app import App

        return App

    if name == "AppConfig":
        from switchyard.config import AppConfig

        return AppConfig

    if name == "Dispatcher":
        from switchyard.dispatcher import Dispatcher

        return Dispatcher

    if name == "Request":
        from switchyard.http.request import Request

        return Request

    if name == "ResponseWriter":
        from switchyard.http.response import ResponseWriter

        return ResponseWriter

    if name == "Route":
        from switchyard.routing.route import Route

        return Route

    if name == "RouteRegistry":
        from switchyard.routing.registry import RouteRegistry

        return RouteRegistry

    if name == "StaticFiles":
        from switchyard.static import StaticFiles

        return StaticFiles

    if name == "DefaultErrorHandler":
        from switchyard.server.errors import DefaultErrorHandler

        return DefaultErrorHandler

    if name in ("ErrorHandler", "Middleware", "Next"):
        from switchyard.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("g", "get_request", "get_response"):
        from switchyard import context as _ctx

        return getattr(_ctx, name)

    if name in _ERRORS:
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
