"""Continuation-passing middleware chain.

Each middleware receives a continuation bound to its own position in
the chain. Calling it with no error runs the next link synchronously;
calling it with an error hands that error to the error handler and
stops the chain. The position travels with the continuation, so a
``Route`` holds no per-run state and can be shared between concurrent
requests.

The chain is stack-recursive: link ``k`` runs inside the frame of link
``k - 1``'s continuation call, so a fully traversed chain of N links is
N frames deep before the first link returns.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from switchyard.errors import (
    MissingErrorHandler,
    SwitchyardError,
    UnhandledException,
    UpstreamMiddlewareError,
)
from switchyard.middleware.protocol import ErrorHandler, Middleware

logger = logging.getLogger("switchyard.dispatch")


def is_empty_error(error: Any) -> bool:
    """True when a continuation argument means "no error".

    Only ``None`` and empty containers (``{}``, ``[]``, ``()``, ``set()``)
    count as empty. Scalars such as ``False``, ``0`` and ``""`` are
    reported as errors, as are exceptions.
    """
    if error is None:
        return True
    if isinstance(error, Mapping | list | tuple | set | frozenset):
        return len(error) == 0
    return False


def as_reported_error(error: Any) -> BaseException:
    """Normalize a value passed to a continuation into an exception."""
    if isinstance(error, BaseException):
        return error
    return UpstreamMiddlewareError(error)


def as_unhandled(exc: Exception) -> SwitchyardError:
    """Wrap an exception raised by a middleware, keeping switchyard errors as-is."""
    if isinstance(exc, SwitchyardError):
        return exc
    wrapped = UnhandledException(exc)
    wrapped.__cause__ = exc
    return wrapped


class _RunState:
    """State shared by every continuation of one chain run."""

    __slots__ = ("chain", "error_handler", "finished", "handler_error", "is_ajax")

    def __init__(
        self,
        chain: Sequence[Middleware],
        error_handler: ErrorHandler,
        is_ajax: bool,
    ) -> None:
        self.chain = chain
        self.error_handler = error_handler
        self.is_ajax = is_ajax
        self.finished = False
        self.handler_error: BaseException | None = None

    def fail(self, error: BaseException) -> None:
        """Invoke the error handler, at most once per run."""
        if self.finished:
            logger.warning("Error after the chain already failed, ignored: %r", error)
            return
        self.finished = True
        try:
            self.error_handler(error, self.is_ajax)
        except BaseException as exc:
            self.handler_error = exc
            raise

    def invoke(self, position: int) -> None:
        self.chain[position](_Continuation(self, position))


class _Continuation:
    """The ``next`` callable for the middleware at ``position``."""

    __slots__ = ("_called", "_position", "_state")

    def __init__(self, state: _RunState, position: int) -> None:
        self._state = state
        self._position = position
        self._called = False

    def __call__(self, error: Any = None, /) -> None:
        state = self._state
        if state.finished:
            logger.warning(
                "Continuation of link %d called after the error handler ran, ignored",
                self._position,
            )
            return
        if self._called:
            logger.warning("Continuation of link %d called twice, ignored", self._position)
            return
        self._called = True

        if not is_empty_error(error):
            state.fail(as_reported_error(error))
            return

        following = self._position + 1
        if following < len(state.chain):
            state.invoke(following)

    def __repr__(self) -> str:
        return f"<next for link {self._position} of {len(self._state.chain)}>"


def run_chain(
    chain: Sequence[Middleware],
    error_handler: ErrorHandler | None,
    is_ajax: bool = False,
) -> None:
    """Run *chain* from its first link.

    Exceptions raised by a middleware are reported to *error_handler*
    (wrapped in ``UnhandledException`` unless already a switchyard
    error). The handler runs at most once per call; an exception raised
    by the handler itself propagates to the caller.

    Raises:
        MissingErrorHandler: If *error_handler* is missing or not callable.
    """
    if error_handler is None or not callable(error_handler):
        raise MissingErrorHandler(error_handler)
    if not chain:
        return

    state = _RunState(chain, error_handler, is_ajax)
    try:
        state.invoke(0)
    except Exception as exc:
        if exc is state.handler_error:
            raise
        if state.finished:
            logger.exception("Middleware raised after the error handler ran")
            return
        state.fail(as_unhandled(exc))
