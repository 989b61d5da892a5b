"""Per-request HTTP state.

Unlike a plain transport request, this object is the pipeline's working
context: the routing layer fills ``path_params``, the body parser sets
``body`` or ``parts``, validation writes coerced values back onto the
facets, and captured errors accumulate in ``invalid``.

The HTTP layer creates one per request and drops it at response end.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from routespec._internal.types import Receive
from routespec.errors import HTTPError, ParseError
from routespec.http.headers import Headers
from routespec.http.query import QueryParams

if TYPE_CHECKING:
    from routespec.http.multipart import PartStream


class _Unset:
    """Marker for a body that was never parsed."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()

# Shorthand names accepted by ``Request.content_type_is``
_TYPE_ALIASES: dict[str, str] = {
    "json": "application/json",
    "form": "application/x-www-form-urlencoded",
    "urlencoded": "application/x-www-form-urlencoded",
    "multipart": "multipart/*",
    "text": "text/*",
    "html": "text/html",
}


def _mime_matches(mimetype: str, expected: str) -> bool:
    if expected == "application/json" and mimetype.endswith("+json"):
        return True
    main, _, sub = expected.partition("/")
    if sub == "*":
        return mimetype.startswith(f"{main}/")
    return mimetype == expected


@dataclass(slots=True)
class Request:
    """One HTTP request as it moves through the pipeline.

    Facets validated by a route (``headers``, ``query``, ``params``,
    ``body``) are mutable: validation replaces their values with the
    schema engine's coerced output.

    The raw body is read through ``.stream()`` or ``.read()`` and can be
    consumed once; ``.read()`` caches the bytes it collected.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    # Routing-level view, filled by the path router
    path_params: dict[str, Any] = field(default_factory=dict)
    # Request-level view, copied from path_params by the first stage
    params: dict[str, Any] = field(default_factory=dict)

    # Parsed payload for json/form routes
    body: Any = UNSET
    # Lazy part stream for multipart/stream routes
    parts: PartStream | None = None
    # Non-file multipart fields, filled while parts are consumed
    fields: dict[str, Any] = field(default_factory=dict)

    # Free-form per-request state; ``state["route"]`` holds the route spec
    state: dict[str, Any] = field(default_factory=dict)
    # Errors captured under ``continue_on_error``, keyed by facet
    invalid: dict[str, HTTPError] = field(default_factory=dict)

    _receive: Receive | None = field(default=None, repr=False)
    _raw_body: bytes | None = field(default=None, repr=False)
    _stream_consumed: bool = field(default=False, repr=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def mimetype(self) -> str:
        """Content-Type without parameters, lower-cased (``""`` if absent)."""
        return (self.content_type or "").split(";", 1)[0].strip().lower()

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @property
    def route(self) -> Any:
        """The exposed route spec, if a routed pipeline set one."""
        return self.state.get("route")

    def content_type_is(self, *types: str) -> str | None:
        """Return the first of *types* the Content-Type matches, else ``None``.

        Accepts full types (``application/json``), wildcards
        (``multipart/*``) and shorthands (``json``, ``urlencoded``,
        ``multipart``)::

            request.content_type_is("json")          # application/json, */*+json
            request.content_type_is("multipart/*")
        """
        mimetype = self.mimetype
        if not mimetype:
            return None
        for kind in types:
            expected = _TYPE_ALIASES.get(kind, kind).lower()
            if _mime_matches(mimetype, expected):
                return kind
        return None

    # -- Async body access --

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the raw request body in chunks. Single pass."""
        if self._raw_body is not None:
            yield self._raw_body
            return
        if self._stream_consumed:
            msg = "Request body has already been consumed"
            raise RuntimeError(msg)
        self._stream_consumed = True
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def read(self, limit: int | None = None) -> bytes:
        """Read the full body, stopping as soon as it exceeds *limit* bytes.

        Raises ``ParseError`` (413) when the declared or actual length
        is over the limit. The collected bytes are cached.
        """
        if self._raw_body is not None:
            if limit is not None and len(self._raw_body) > limit:
                raise _too_large(limit)
            return self._raw_body

        declared = self.content_length
        if limit is not None and declared is not None and declared > limit:
            raise _too_large(limit)

        chunks: list[bytes] = []
        received = 0
        async for chunk in self.stream():
            received += len(chunk)
            if limit is not None and received > limit:
                raise _too_large(limit)
            chunks.append(chunk)
        self._raw_body = b"".join(chunks)
        return self._raw_body

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )


def _too_large(limit: int) -> ParseError:
    return ParseError(f"request entity too large (limit {limit} bytes)", status=413)
