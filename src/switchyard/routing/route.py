"""Route — one ``(path, method, is_ajax)`` key bound to a middleware chain."""

from __future__ import annotations

from dataclasses import dataclass

from switchyard.errors import ConfigurationError
from switchyard.middleware.protocol import ErrorHandler, Middleware, validate_middleware
from switchyard.routing.chain import run_chain

# The fixed verb set a route may be registered for
METHODS: frozenset[str] = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}
)


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Matching uses exact equality on ``path`` and ``method``; ``is_ajax``
    is part of the route's identity and is the flag handed to the error
    handler when the chain fails. The middleware tuple never changes
    after construction and the route keeps no per-run state, so a single
    instance can serve concurrent requests.
    """

    path: str
    method: str
    is_ajax: bool
    middleware: tuple[Middleware, ...]

    def __post_init__(self) -> None:
        verb = self.method.upper()
        if verb not in METHODS:
            msg = f"Unsupported HTTP method {self.method!r} for route {self.path!r}"
            raise ConfigurationError(msg)
        object.__setattr__(self, "method", verb)
        object.__setattr__(self, "is_ajax", bool(self.is_ajax))
        object.__setattr__(self, "middleware", validate_middleware(self.middleware))

    @property
    def key(self) -> tuple[str, str, bool]:
        return (self.path, self.method, self.is_ajax)

    def matches(self, path: str, method: str) -> bool:
        return self.path == path and self.method == method

    def run(self, error_handler: ErrorHandler | None) -> None:
        """Drive the middleware chain for one request.

        Returns immediately for an empty chain. Errors passed to a
        continuation, and exceptions raised by middleware, reach
        ``error_handler(error, self.is_ajax)`` exactly once.

        Raises:
            MissingErrorHandler: If *error_handler* is missing or not callable.
        """
        run_chain(self.middleware, error_handler, self.is_ajax)
