"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    def mw(next: Next) -> None
"""

from switchyard.middleware.protocol import ErrorHandler, Middleware, Next, validate_middleware

__all__ = [
    "ErrorHandler",
    "Middleware",
    "Next",
    "validate_middleware",
]
