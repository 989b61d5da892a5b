"""Async test client for routespec applications.

Uses the same Request and Response types as production.
No wrapper translation layer.
"""

from __future__ import annotations

import json as json_module
import uuid
from collections.abc import Mapping
from typing import Any, TypeAlias
from urllib.parse import urlencode

from routespec.app import App
from routespec.http.response import Response

# name -> bytes, or name -> (filename, content[, content_type])
Files: TypeAlias = Mapping[str, bytes | tuple[str, bytes] | tuple[str, bytes, str]]


def encode_multipart(
    fields: Mapping[str, Any] | None,
    files: Files | None,
    boundary: str,
) -> bytes:
    """Encode *fields* and *files* as a ``multipart/form-data`` body."""
    lines: list[bytes] = []
    for name, value in (fields or {}).items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            lines.append(f"--{boundary}\r\n".encode())
            lines.append(f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode())
            lines.append(str(item).encode("utf-8") + b"\r\n")
    for name, spec in (files or {}).items():
        if isinstance(spec, bytes):
            filename, content, content_type = name, spec, "application/octet-stream"
        elif len(spec) == 2:
            filename, content = spec
            content_type = "application/octet-stream"
        else:
            filename, content, content_type = spec
        lines.append(f"--{boundary}\r\n".encode())
        lines.append(
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'.encode()
        )
        lines.append(f"Content-Type: {content_type}\r\n\r\n".encode())
        lines.append(content + b"\r\n")
    lines.append(f"--{boundary}--\r\n".encode())
    return b"".join(lines)


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for routespec applications.

    Returns the same ``Response`` type used in production, with the body
    as bytes. Sends requests through the ASGI interface directly — no
    HTTP involved.

    Usage::

        async with TestClient(app) as client:
            response = await client.post("/users", json={"name": "ada"})
            assert response.status == 201
            assert response.json()["name"] == "ada"
    """

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        return self

    async def __aexit__(self, *args: object) -> None:
        return None

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def head(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a HEAD request."""
        return await self.request("HEAD", path, headers=headers)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a DELETE request."""
        return await self.request("DELETE", path, headers=headers)

    async def post(self, path: str, **kwargs: Any) -> Response:
        """Send a POST request. Accepts the body options of ``request``."""
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Response:
        """Send a PUT request."""
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Response:
        """Send a PATCH request."""
        return await self.request("PATCH", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
        form: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        files: Files | None = None,
        chunk_size: int | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app.

        Body options (use one): raw ``body`` bytes, ``json``, a urlencoded
        ``form``, or multipart ``data`` and/or ``files``. With
        ``chunk_size`` the body arrives in several ASGI messages.
        """
        extra_headers: dict[str, str] = {}
        request_body = body or b""

        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            extra_headers["content-type"] = "application/json"
        elif form is not None:
            request_body = urlencode(form, doseq=True).encode("utf-8")
            extra_headers["content-type"] = "application/x-www-form-urlencoded"
        elif data is not None or files is not None:
            boundary = uuid.uuid4().hex
            request_body = encode_multipart(data, files, boundary)
            extra_headers["content-type"] = f"multipart/form-data; boundary={boundary}"

        merged = {**extra_headers, **(headers or {})}

        # Split path and query string
        if "?" in path:
            path_part, query_string = path.split("?", 1)
        else:
            path_part = path
            query_string = ""

        # Build raw ASGI headers
        raw_headers: list[tuple[bytes, bytes]] = []
        for name, value in merged.items():
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        step = chunk_size or len(request_body) or 1
        chunks = [request_body[i : i + step] for i in range(0, len(request_body), step)] or [b""]
        pending = list(chunks)

        async def receive() -> dict[str, Any]:
            if pending:
                chunk = pending.pop(0)
                return {"type": "http.request", "body": chunk, "more_body": bool(pending)}
            return {"type": "http.disconnect"}

        # Capture response via send
        response_status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                response_body_parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        content_type: str | None = None
        extra: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name_str = name_b.decode("latin-1")
            value_str = value_b.decode("latin-1")
            if name_str == "content-type":
                content_type = value_str
            elif name_str != "content-length":
                extra.append((name_str, value_str))

        return Response(
            body=b"".join(response_body_parts),
            status=response_status,
            content_type=content_type or "application/octet-stream",
            headers=tuple(extra),
        )
