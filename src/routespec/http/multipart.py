"""Lazy multipart parsing on top of ``python-multipart``.

``PartStream`` is an async iterator over the file parts of a
``multipart/*`` body. It pulls the request body chunk by chunk and feeds
the push parser only as far as needed to produce the next part, so a
consumer that stops early never reads the rest of the body.

Each ``FilePart`` holds the bytes of one part and can be read exactly
once. Non-file fields never appear in the iteration; with
``auto_fields`` they are collected into ``field``/``field_pairs`` (and the
request's ``fields`` dict) as the parser passes them.
"""

from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from routespec.errors import ParseError


@dataclass(frozen=True, slots=True)
class MultipartOptions:
    """Limits and behaviour for multipart parsing.

    Exceeding a limit raises ``ParseError`` with status 413 from the
    iteration that hit it.
    """

    max_file_size: int | None = None
    max_files: int | None = None
    max_fields: int | None = None
    max_field_size: int | None = 1024 * 1024
    auto_fields: bool = True


@dataclass(slots=True)
class FilePart:
    """One uploaded file from a multipart body. Readable once."""

    name: str
    filename: str
    content_type: str
    headers: dict[str, str] = field(default_factory=dict)
    _content: bytes | None = field(default=None, repr=False)
    _size: int = 0

    @property
    def size(self) -> int:
        """Size of the part body in bytes."""
        return self._size

    @property
    def consumed(self) -> bool:
        """True once ``read()`` or ``save()`` has been called."""
        return self._content is None

    async def read(self) -> bytes:
        """Return the part content and release it.

        Raises ``RuntimeError`` on a second call.
        """
        if self._content is None:
            msg = f"Part {self.name!r} ({self.filename!r}) has already been read"
            raise RuntimeError(msg)
        content, self._content = self._content, None
        return content

    async def save(self, path: Path) -> int:
        """Write the part content to *path* and return the byte count."""
        content = await self.read()
        path.write_bytes(content)
        return len(content)


class PartStream:
    """Single-pass async iterator of ``FilePart`` objects.

    Usage::

        async for part in request.parts:
            await part.save(upload_dir / part.filename)
        title = request.fields.get("title")
    """

    __slots__ = (
        "_chunks",
        "_content_type",
        "_data",
        "_done",
        "_failure",
        "_file_count",
        "_filename",
        "_header_name",
        "_header_value",
        "_headers",
        "_name",
        "_options",
        "_parser",
        "_ready",
        "field",
        "field_pairs",
    )

    def __init__(
        self,
        chunks: AsyncIterator[bytes],
        boundary: bytes | str,
        options: MultipartOptions,
        *,
        fields: dict[str, Any] | None = None,
    ) -> None:
        self._chunks = chunks
        self._options = options
        # Non-file fields: last value per name, and every (name, value) pair
        self.field: dict[str, Any] = fields if fields is not None else {}
        self.field_pairs: list[tuple[str, str]] = []

        self._ready: deque[FilePart] = deque()
        self._done = False
        self._failure: ParseError | None = None
        self._file_count = 0

        self._headers: dict[str, str] = {}
        self._header_name = bytearray()
        self._header_value = bytearray()
        self._name: str | None = None
        self._filename: str | None = None
        self._content_type = "application/octet-stream"
        self._data = bytearray()

        callbacks: dict[str, Any] = {
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
        }
        self._parser = MultipartParser(boundary, callbacks)

    # -- Iteration --

    def __aiter__(self) -> PartStream:
        return self

    async def __anext__(self) -> FilePart:
        while not self._ready:
            if self._done:
                raise StopAsyncIteration
            await self._pull()
        return self._ready.popleft()

    async def _pull(self) -> None:
        """Feed the next body chunk to the parser."""
        try:
            chunk = await anext(self._chunks)
        except StopAsyncIteration:
            self._done = True
            self._feed(None)
            return
        self._feed(chunk)

    def _feed(self, chunk: bytes | None) -> None:
        try:
            if chunk is None:
                self._parser.finalize()
            else:
                self._parser.write(chunk)
        except MultipartParseError as exc:
            self._done = True
            raise ParseError(f"malformed multipart body: {exc}") from exc
        if self._failure is not None:
            self._done = True
            raise self._failure

    def _fail(self, detail: str) -> None:
        if self._failure is None:
            self._failure = ParseError(detail, status=413)

    # -- Parser callbacks --

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._name = None
        self._filename = None
        self._content_type = "application/octet-stream"
        self._data = bytearray()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name.extend(data[start:end])

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value.extend(data[start:end])

    def _on_header_end(self) -> None:
        name = self._header_name.decode("latin-1").lower()
        self._headers[name] = self._header_value.decode("latin-1")
        self._header_name.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        disposition = self._headers.get("content-disposition", "")
        _, params = parse_options_header(disposition)
        name = params.get(b"name")
        filename = params.get(b"filename")
        self._name = name.decode("utf-8") if name is not None else None
        self._filename = filename.decode("utf-8") if filename is not None else None
        self._content_type = self._headers.get("content-type", self._content_type)

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._failure is not None:
            return
        self._data.extend(data[start:end])
        size = len(self._data)
        if self._filename is not None:
            limit = self._options.max_file_size
            if limit is not None and size > limit:
                self._fail(f"file {self._filename!r} exceeds {limit} bytes")
        else:
            limit = self._options.max_field_size
            if limit is not None and size > limit:
                self._fail(f"field {self._name!r} exceeds {limit} bytes")

    def _on_part_end(self) -> None:
        if self._failure is not None or self._name is None:
            return
        if self._filename is not None:
            self._file_count += 1
            limit = self._options.max_files
            if limit is not None and self._file_count > limit:
                self._fail(f"too many files (limit {limit})")
                return
            content = bytes(self._data)
            self._ready.append(
                FilePart(
                    name=self._name,
                    filename=self._filename,
                    content_type=self._content_type,
                    headers=dict(self._headers),
                    _content=content,
                    _size=len(content),
                )
            )
            return
        if not self._options.auto_fields:
            return
        limit = self._options.max_fields
        if limit is not None and len(self.field_pairs) >= limit:
            self._fail(f"too many fields (limit {limit})")
            return
        value = self._data.decode("utf-8", errors="replace")
        self.field_pairs.append((self._name, value))
        self.field[self._name] = value
