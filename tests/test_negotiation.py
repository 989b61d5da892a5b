"""Tests for routespec.server.negotiation — handler return values."""

import pytest
from pydantic import BaseModel

from routespec.http.response import Response
from routespec.server.negotiation import negotiate


class User(BaseModel):
    id: int
    name: str


class TestNegotiate:
    def test_response_passthrough(self) -> None:
        original = Response(body="hello", status=201)
        assert negotiate(original) is original

    def test_none_is_204(self) -> None:
        result = negotiate(None)
        assert result.status == 204
        assert result.body_bytes == b""

    def test_str(self) -> None:
        result = negotiate("hi")
        assert result.status == 200
        assert result.media_type.startswith("text/plain")

    def test_bytes(self) -> None:
        result = negotiate(b"\x00\x01")
        assert result.media_type == "application/octet-stream"

    def test_dict_keeps_structure(self) -> None:
        result = negotiate({"a": 1})
        assert result.body == {"a": 1}
        assert result.media_type == "application/json"

    def test_list(self) -> None:
        assert negotiate([1, 2]).body == [1, 2]

    def test_model(self) -> None:
        result = negotiate(User(id=1, name="ada"))
        assert result.body == {"id": 1, "name": "ada"}

    def test_tuple_status(self) -> None:
        result = negotiate(({"created": True}, 201))
        assert result.status == 201
        assert result.body == {"created": True}

    def test_tuple_status_headers(self) -> None:
        result = negotiate(("ok", 202, {"X-Job": "7"}))
        assert result.status == 202
        assert ("X-Job", "7") in result.headers

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert"):
            negotiate(object())
