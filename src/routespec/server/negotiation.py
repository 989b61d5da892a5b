"""Content negotiation — maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

from typing import Any

from routespec.http.response import Response


def negotiate(value: Any) -> Response:
    """Convert a handler's return value to a Response.

    Dispatch order:

    1. ``Response``             -> pass through
    2. ``None``                 -> 204, empty body
    3. ``str`` / ``bytes``      -> 200, text/plain or octet-stream
    4. ``dict`` / ``list``      -> 200, application/json
    5. pydantic model           -> 200, application/json (``model_dump``)
    6. ``(value, int)``         -> negotiate value, override status
    7. ``(value, int, dict)``   -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case None:
            return Response(body="", status=204)
        case str() | bytes() | dict() | list():
            return Response(body=value)
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
        case _ if hasattr(value, "model_dump"):
            return Response(body=value.model_dump(mode="json"))
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return str, bytes, dict, list, a pydantic model, None, or Response."
            )
            raise TypeError(msg)
