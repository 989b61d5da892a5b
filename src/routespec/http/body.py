"""Body decoders — JSON, URL-encoded forms, and multipart streams.

JSON and forms are buffered (up to a byte limit) and parsed with the
standard library. Multipart bodies are never buffered as a whole: they
are exposed as a lazy ``PartStream`` fed from ``request.stream()``.
"""

import json as json_module
from typing import Any
from urllib.parse import parse_qs

from python_multipart.multipart import parse_options_header

from routespec.errors import ParseError
from routespec.http.multipart import MultipartOptions, PartStream
from routespec.http.request import Request


async def _read_text(request: Request, limit: int | None) -> str:
    raw = await request.read(limit)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ParseError("invalid utf-8 in request body") from None


async def parse_json(request: Request, *, limit: int | None = None) -> Any:
    """Read and decode a JSON body.

    An empty body decodes to ``{}``.

    Raises:
        ParseError: The body is not valid JSON (400) or exceeds
            *limit* bytes (413).
    """
    text = await _read_text(request, limit)
    if not text.strip():
        return {}
    try:
        return json_module.loads(text)
    except json_module.JSONDecodeError as exc:
        raise ParseError(f"invalid JSON: {exc.msg}") from exc


async def parse_form(request: Request, *, limit: int | None = None) -> dict[str, Any]:
    """Read and decode an ``application/x-www-form-urlencoded`` body.

    Keys given once map to a string; repeated keys map to a list.

    Raises:
        ParseError: The body exceeds *limit* bytes (413) or is not UTF-8.
    """
    text = await _read_text(request, limit)
    parsed = parse_qs(text, keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


def multipart_stream(request: Request, options: MultipartOptions | None = None) -> PartStream:
    """Expose a multipart body as a lazy, single-pass stream of parts.

    Nothing is read until the stream is iterated. Non-file fields are
    written to ``request.fields`` as they are parsed (``auto_fields``).

    Raises:
        ParseError: The Content-Type carries no boundary.
    """
    _, params = parse_options_header(request.content_type or "")
    boundary = params.get(b"boundary")
    if not boundary:
        raise ParseError("multipart body is missing its boundary")
    return PartStream(
        request.stream(),
        boundary,
        options or MultipartOptions(),
        fields=request.fields,
    )
