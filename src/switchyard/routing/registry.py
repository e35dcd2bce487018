"""Route registry — the ordered routes of one prefix group.

Routes are matched by scanning in registration order; the first route
whose ``(path, method)`` equals the request's wins.
"""

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from switchyard.errors import ConfigurationError
from switchyard.middleware.protocol import Middleware
from switchyard.routing.route import Route

logger = logging.getLogger("switchyard.dispatch")


class RouteRegistry:
    """Ordered collection of routes sharing one path prefix.

    Usage::

        api = RouteRegistry()
        api.add("/api/users", "GET", False, [load_users, render_users])
        api.add("/api/users", "POST", True, [validate_user, create_user])
        dispatcher.mount("/api", api)
    """

    __slots__ = ("_frozen", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._frozen = False

    def add(
        self,
        path: str,
        method: str,
        is_ajax: bool,
        middleware: Iterable[Middleware | Any],
    ) -> Route:
        """Append a route and return it.

        Raises:
            InvalidMiddleware: If any middleware entry is not callable.
            ConfigurationError: If the registry is frozen or the method is
                not supported.
        """
        if self._frozen:
            msg = f"Cannot add route {method} {path!r}: the registry is frozen."
            raise ConfigurationError(msg)
        route = Route(path=path, method=method, is_ajax=is_ajax, middleware=tuple(middleware))
        for existing in self._routes:
            if existing.matches(route.path, route.method):
                logger.warning(
                    "Route %s %s registered twice; the first registration wins",
                    route.method,
                    route.path,
                )
                break
        self._routes.append(route)
        return route

    def match(self, path: str, method: str) -> Route | None:
        """Return the first route matching *path* and *method* exactly."""
        for route in self._routes:
            if route.matches(path, method):
                return route
        return None

    def freeze(self) -> None:
        """Refuse further additions."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(tuple(self._routes))

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RouteRegistry({len(self._routes)} routes)"
