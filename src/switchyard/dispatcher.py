"""Dispatcher — prefix groups, first-match resolution and static fallback.

The dispatcher owns an ordered mapping of path prefix -> ``RouteRegistry``.
Resolving a request:

1. Scan prefixes in registration order and take the **first** one that
   is a literal string prefix of the request path. Registration order
   decides precedence; this is not a longest-prefix match.
2. No prefix matched, or the matched group is empty: static fallback.
3. Inside the matched group, the first route equal on
   ``(path, method)`` wins.
4. If nothing in the matched group matches, fall back to static files.
   Later prefixes are never consulted once a group has been chosen.

Prefix keys may carry query placeholders of the form ``/:name&name``
(e.g. ``/search/:q&page``); they are removed before comparison.
"""

import logging
import re
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from switchyard.context import bind
from switchyard.errors import ConfigurationError, MissingErrorHandler, NotFound
from switchyard.http.request import Request
from switchyard.http.response import ResponseWriter
from switchyard.middleware.protocol import ErrorHandler, Middleware
from switchyard.routing.chain import as_unhandled
from switchyard.routing.registry import RouteRegistry
from switchyard.routing.route import Route
from switchyard.static import StaticFiles

logger = logging.getLogger("switchyard.dispatch")

_QUERY_PLACEHOLDER = re.compile(r"/:\w+&\w+")


def match_key(prefix: str) -> str:
    """The string a prefix is compared with: the prefix minus query placeholders."""
    return _QUERY_PLACEHOLDER.sub("", prefix)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of matching one request.

    ``prefix`` is the group that was committed to (``None`` when no
    prefix matched). ``route`` is ``None`` when the request falls back to
    static files.
    """

    prefix: str | None
    route: Route | None

    @property
    def is_static(self) -> bool:
        return self.route is None


class Dispatcher:
    """Maps path prefixes to route registries and dispatches requests.

    Mutable during setup, frozen on the first ``dispatch()``::

        dispatcher = Dispatcher()
        dispatcher.register_route("/api", "/api/users", "GET", False, [list_users])
        dispatcher.dispatch(request, on_error, "./public", response=writer)

    Thread safety:
        Registration is single-threaded setup work. Freezing uses a lock
        with a double check so exactly one thread performs it; after
        that the dispatcher is read-only and safe to share.
    """

    __slots__ = ("_freeze_lock", "_frozen", "_groups", "_match_keys")

    def __init__(self) -> None:
        self._groups: dict[str, RouteRegistry] = {}
        self._match_keys: dict[str, str] = {}
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Registration --

    def register_route(
        self,
        prefix: str,
        path: str,
        method: str,
        is_ajax: bool,
        middleware: Iterable[Middleware | Any],
    ) -> Route:
        """Append a route to the group for *prefix*, creating the group if needed.

        Raises:
            InvalidMiddleware: If any middleware entry is not callable.
            ConfigurationError: If the dispatcher is frozen.
        """
        self._check_not_frozen()
        registry = self._groups.get(prefix)
        if registry is None:
            # Build the route first so a rejected chain leaves no empty group behind
            registry = RouteRegistry()
            route = registry.add(path, method, is_ajax, middleware)
            self._attach(prefix, registry)
            return route
        return registry.add(path, method, is_ajax, middleware)

    def mount(self, prefix: str, registry: RouteRegistry) -> None:
        """Attach a prebuilt registry under *prefix*.

        Mounting over an existing prefix replaces its registry but keeps
        the prefix's original position in the scan order.
        """
        self._check_not_frozen()
        if prefix in self._groups:
            logger.debug("Replacing the route group mounted at %r", prefix)
        self._attach(prefix, registry)

    def _attach(self, prefix: str, registry: RouteRegistry) -> None:
        self._groups[prefix] = registry
        self._match_keys[prefix] = match_key(prefix)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify routes after the dispatcher has started serving."
            raise ConfigurationError(msg)

    def freeze(self) -> None:
        """Make the dispatcher and every mounted registry read-only."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            for registry in self._groups.values():
                registry.freeze()
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Introspection --

    @property
    def prefixes(self) -> tuple[str, ...]:
        """Registered prefixes in scan order."""
        return tuple(self._groups)

    def group(self, prefix: str) -> RouteRegistry | None:
        return self._groups.get(prefix)

    def routes(self) -> Iterator[tuple[str, Route]]:
        """Yield ``(prefix, route)`` pairs in scan order."""
        for prefix, registry in self._groups.items():
            for route in registry:
                yield prefix, route

    # -- Matching --

    def resolve(self, path: str, method: str) -> Resolution:
        """Match *path* and *method* without side effects."""
        for prefix, registry in self._groups.items():
            if not path.startswith(self._match_keys[prefix]):
                continue
            if not registry:
                return Resolution(prefix=prefix, route=None)
            return Resolution(prefix=prefix, route=registry.match(path, method))
        return Resolution(prefix=None, route=None)

    # -- Dispatch --

    def dispatch(
        self,
        request: Request,
        error_handler: ErrorHandler | None,
        static_root: StaticFiles | str | Path | None,
        *,
        response: ResponseWriter | None = None,
    ) -> None:
        """Resolve *request* and produce exactly one outcome.

        Runs the matched route's chain, or serves a static file from
        *static_root*. Failures reach ``error_handler(error, is_ajax)``
        once: chain failures with the route's ajax flag, static
        failures with the request's. When *static_root* is ``None`` the
        fallback always fails with ``NotFound``.

        The response is written into *response* (a fresh writer when
        omitted), which is bound as the current response for the
        duration of the call.

        Raises:
            MissingErrorHandler: If *error_handler* is missing or not callable.
        """
        if error_handler is None or not callable(error_handler):
            raise MissingErrorHandler(error_handler)
        self.freeze()
        writer = response if response is not None else ResponseWriter()

        with bind(request, writer):
            resolution = self.resolve(request.path, request.method)
            route = resolution.route
            if route is not None:
                logger.debug(
                    "%s %s -> %r group, %d-link chain",
                    request.method,
                    request.path,
                    resolution.prefix,
                    len(route.middleware),
                )
                route.run(error_handler)
                return

            logger.debug(
                "%s %s -> static fallback (group %r)",
                request.method,
                request.path,
                resolution.prefix,
            )
            try:
                self._serve_static(request.path, static_root, writer)
            except Exception as exc:
                error_handler(as_unhandled(exc), request.is_ajax)

    @staticmethod
    def _serve_static(
        path: str,
        static_root: StaticFiles | str | Path | None,
        response: ResponseWriter,
    ) -> None:
        if static_root is None:
            raise NotFound(f"No route for {path!r} and no static root configured")
        server = static_root if isinstance(static_root, StaticFiles) else StaticFiles(static_root)
        server.serve(path, response)

    def __repr__(self) -> str:
        total = sum(len(r) for r in self._groups.values())
        return f"Dispatcher({len(self._groups)} groups, {total} routes)"
