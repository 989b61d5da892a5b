"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Route stages, route handlers, ``use()`` middleware and app middleware
all share this shape and are chained with ``compose()``.
"""

from routespec.middleware.protocol import Middleware, Next, compose

__all__ = [
    "Middleware",
    "Next",
    "compose",
]
