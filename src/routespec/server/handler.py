"""ASGI handler — translates ASGI scope/messages to routespec types.

The only component that touches raw ASGI directly. Converts scope dicts
to Request objects, runs the middleware chain, and sends the Response
back through ASGI send().
"""

from collections.abc import Callable
from typing import Any

from routespec._internal.types import Receive, Scope, Send
from routespec.errors import HTTPError, NotFound
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.middleware.protocol import Middleware, compose
from routespec.server.errors import handle_http_error, handle_internal_error
from routespec.server.sender import send_response


async def _not_found(request: Request) -> Response:
    raise NotFound(f"No route for {request.method} {request.path}")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    middleware: tuple[Middleware, ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        response = await compose(middleware, _not_found)(request)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, debug)

    await send_response(response, send, head=request.method == "HEAD")
