"""Error handling for routed requests.

Maps HTTPError exceptions and unexpected failures to Response objects,
using registered error handlers or a default JSON / plain-text body.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from routespec.errors import HTTPError
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.server.negotiation import negotiate

logger = logging.getLogger("routespec.server")


def _wants_json(request: Request, exc: HTTPError) -> bool:
    if getattr(exc, "errors", None):
        return True
    if getattr(exc, "facet", ""):
        return True
    accept = request.headers.get("accept") or ""
    return "json" in str(accept).lower()


def default_error_body(exc: HTTPError, *, debug: bool = False) -> dict[str, Any]:
    """JSON body for an error response."""
    body: dict[str, Any] = {"error": exc.detail or f"Error {exc.status}", "status": exc.status}
    facet = getattr(exc, "facet", "")
    if facet:
        body["facet"] = facet
    errors = getattr(exc, "errors", ())
    if errors:
        body["details"] = list(errors)
    if debug:
        body["type"] = type(exc).__name__
    return body


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc) args.
    Supports both sync and async error handlers.
    """
    sig = inspect.signature(handler)
    params = list(sig.parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result

    if isinstance(result, Response):
        return result
    return negotiate(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Preserve the HTTP status from the exception unless the handler
        # explicitly returned a Response with its own status
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    if _wants_json(request, exc):
        resp = Response(body=default_error_body(exc, debug=debug), status=exc.status)
    else:
        detail = exc.detail or f"Error {exc.status}"
        if debug and exc.detail:
            detail = f"{exc.status}: {exc.detail}"
        resp = Response(body=detail, status=exc.status)

    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        return await call_error_handler(handler, request, exc)

    if debug:
        return Response(body=f"Internal Server Error\n\n{type(exc).__name__}: {exc}", status=500)
    return Response(body="Internal Server Error", status=500)
