"""Middleware, continuation and error-handler protocols.

A middleware is any callable taking exactly one argument, the
continuation::

    def my_mw(next: Next) -> None: ...

No base class required. Middleware reach the request and response
through ``switchyard.context`` and signal the outcome by what they do
with ``next``:

- ``next()`` hands off to the following link;
- ``next(error)`` stops the chain and reports *error*;
- not calling ``next`` at all ends the chain (the response is done).

Return values are ignored.
"""

from collections.abc import Iterable
from typing import Any, Protocol

from switchyard.errors import InvalidMiddleware


class Next(Protocol):
    """The continuation handed to each middleware."""

    def __call__(self, error: Any = None, /) -> None: ...


class Middleware(Protocol):
    """Protocol for switchyard middleware.

    Accepts both functions and callable objects::

        # Function middleware
        def require_json(next: Next) -> None:
            if get_request().content_type != "application/json":
                next(HTTPError(status=415))
                return
            next()

        # Class middleware
        class Audit:
            def __call__(self, next: Next) -> None:
                ...
    """

    def __call__(self, next: Next, /) -> Any: ...


class ErrorHandler(Protocol):
    """Receives every failure with the request's ajax flag.

    It must finalize the response itself; dispatch never resumes after
    it has been called.
    """

    def __call__(self, error: BaseException, is_ajax: bool, /) -> Any: ...


def validate_middleware(entries: Iterable[Any]) -> tuple[Middleware, ...]:
    """Return *entries* as a tuple, rejecting anything that is not callable.

    Raises:
        InvalidMiddleware: For the first non-callable entry.
    """
    chain = tuple(entries)
    for position, entry in enumerate(chain):
        if not callable(entry):
            raise InvalidMiddleware(entry, position)
    return chain
