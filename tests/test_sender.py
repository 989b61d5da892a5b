"""Tests for routespec.server.sender response emission rules."""

import pytest

from routespec.http.response import Response
from routespec.server.sender import send_response


async def _capture(response: Response, *, head: bool = False) -> list[dict]:
    messages: list[dict] = []

    async def send(message: dict) -> None:
        messages.append(message)

    await send_response(response, send, head=head)
    return messages


class TestSendResponse:
    @pytest.mark.asyncio
    async def test_200_preserves_body(self) -> None:
        messages = await _capture(Response("ok"))
        headers = dict(messages[0]["headers"])
        assert messages[0]["status"] == 200
        assert headers[b"content-length"] == b"2"
        assert messages[1]["body"] == b"ok"

    @pytest.mark.asyncio
    async def test_json_body_serialized(self) -> None:
        messages = await _capture(Response({"a": 1}))
        headers = dict(messages[0]["headers"])
        assert headers[b"content-type"] == b"application/json"
        assert messages[1]["body"] == b'{"a": 1}'

    @pytest.mark.asyncio
    async def test_204_drops_body(self) -> None:
        messages = await _capture(Response("unexpected").with_status(204))
        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"0"
        assert messages[1]["body"] == b""

    @pytest.mark.asyncio
    async def test_304_drops_body(self) -> None:
        messages = await _capture(Response("unexpected").with_status(304))
        assert messages[1]["body"] == b""

    @pytest.mark.asyncio
    async def test_head_keeps_length_drops_body(self) -> None:
        messages = await _capture(Response("hello"), head=True)
        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"5"
        assert messages[1]["body"] == b""

    @pytest.mark.asyncio
    async def test_header_names_lowercased(self) -> None:
        messages = await _capture(Response("x").with_header("X-Trace", "1"))
        assert (b"x-trace", b"1") in messages[0]["headers"]
