"""Request-scoped context via ContextVar.

Middleware receive only their continuation, so the current request,
its response sink and a scratch namespace are reached through here:

- ``get_request()``: the frozen ``Request`` being dispatched.
- ``get_response()``: the ``ResponseWriter`` for that request.
- ``g``: a mutable namespace for passing data down the chain.

All three are bound by ``bind()`` for the duration of one dispatch.
Outside a dispatch, ``get_request``/``get_response`` raise ``LookupError``.

Thread safety:
    ``ContextVar`` values are thread-local under a threaded WSGI server,
    so concurrent requests never see each other's state.
"""

from contextvars import ContextVar, Token
from typing import Any

from switchyard.http.request import Request
from switchyard.http.response import ResponseWriter

request_var: ContextVar[Request] = ContextVar("switchyard_request")
response_var: ContextVar[ResponseWriter] = ContextVar("switchyard_response")
_globals_var: ContextVar[dict[str, Any] | None] = ContextVar("switchyard_g", default=None)


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return request_var.get()


def get_response() -> ResponseWriter:
    """Return the response sink for the current request.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return response_var.get()


class bind:  # noqa: N801 — used like a function: ``with bind(request, response):``
    """Bind *request* and *response* (and a fresh ``g``) for one dispatch.

    A plain context manager class rather than ``@contextmanager``: the
    generator form reassigns ``__traceback__`` on escaping exceptions,
    which frozen ``HTTPError`` instances refuse.
    """

    __slots__ = ("_request", "_response", "_tokens")

    def __init__(self, request: Request, response: ResponseWriter) -> None:
        self._request = request
        self._response = response
        self._tokens: tuple[Token[Any], ...] = ()

    def __enter__(self) -> ResponseWriter:
        self._tokens = (
            request_var.set(self._request),
            response_var.set(self._response),
            _globals_var.set({}),
        )
        return self._response

    def __exit__(self, *exc_info: object) -> None:
        request_token, response_token, globals_token = self._tokens
        _globals_var.reset(globals_token)
        response_var.reset(response_token)
        request_var.reset(request_token)


class _RequestGlobals:
    """A mutable namespace scoped to the current request.

    Usage::

        from switchyard.context import g

        def load_user(next):
            g.user = users.find(get_request().query["id"])
            next()

        def show_user(next):
            get_response().send({"name": g.user.name})
    """

    __slots__ = ()

    def _get_dict(self) -> dict[str, Any]:
        d = _globals_var.get()
        if d is None:
            d = {}
            _globals_var.set(d)
        return d

    def __getattr__(self, name: str) -> Any:
        try:
            return self._get_dict()[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._get_dict()[name] = value

    def __delattr__(self, name: str) -> None:
        d = self._get_dict()
        try:
            del d[name]
        except KeyError:
            raise AttributeError(name) from None

    def __contains__(self, name: str) -> bool:
        return name in self._get_dict()

    def get(self, name: str, default: Any = None) -> Any:
        return self._get_dict().get(name, default)


g = _RequestGlobals()
