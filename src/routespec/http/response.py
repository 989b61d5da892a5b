"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. The body stays as the
handler produced it (``dict``, ``list``, ``str`` or ``bytes``) until the
sender serializes it, so output validation sees structured data.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    ``content_type`` defaults by body type: JSON for ``dict``/``list``,
    ``text/plain`` for ``str``, ``application/octet-stream`` for ``bytes``.
    """

    body: Any = ""
    status: int = 200
    content_type: str | None = None
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Body helpers --

    @property
    def media_type(self) -> str:
        """The effective Content-Type."""
        if self.content_type is not None:
            return self.content_type
        match self.body:
            case bytes():
                return "application/octet-stream"
            case str():
                return "text/plain; charset=utf-8"
            case _:
                return "application/json"

    @property
    def body_bytes(self) -> bytes:
        """Body serialized to bytes."""
        match self.body:
            case bytes():
                return self.body
            case str():
                return self.body.encode("utf-8")
            case None:
                return b""
            case _:
                return json_module.dumps(self.body, default=str).encode("utf-8")

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body_bytes.decode("utf-8")

    def json(self) -> Any:
        """Body decoded as JSON (structured bodies are returned as-is)."""
        if isinstance(self.body, (bytes, str)):
            return json_module.loads(self.body)
        return self.body

    def header(self, name: str) -> str | None:
        """First value of response header *name* (case-insensitive)."""
        wanted = name.lower()
        if wanted == "content-type":
            return self.media_type
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None
