"""Tests for routespec.routing.params — path compilation."""

import re

import pytest

from routespec.errors import ConfigurationError
from routespec.routing.params import compile_path, convert_param, parse_path


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]
        assert not any(s.is_param for s in segments)

    def test_param(self) -> None:
        segments = parse_path("/users/{id}")
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"
        assert segments[1].param_type == "str"

    def test_typed_param(self) -> None:
        assert parse_path("/users/{id:int}")[1].param_type == "int"

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_rejects_angle_brackets(self) -> None:
        with pytest.raises(ConfigurationError, match="<param>"):
            parse_path("/users/<id>")

    def test_rejects_unknown_converter(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown converter"):
            parse_path("/users/{id:uuid}")


class TestCompilePath:
    def test_literal(self) -> None:
        compiled = compile_path("/users")
        assert compiled.match("/users") == {}
        assert compiled.match("/users/") == {}
        assert compiled.match("/users/1") is None

    def test_root(self) -> None:
        compiled = compile_path("/")
        assert compiled.match("/") == {}
        assert compiled.match("/x") is None

    def test_str_param(self) -> None:
        assert compile_path("/users/{name}").match("/users/ada") == {"name": "ada"}

    def test_int_param_converted(self) -> None:
        compiled = compile_path("/users/{id:int}")
        assert compiled.match("/users/42") == {"id": 42}
        assert compiled.match("/users/abc") is None

    def test_float_param(self) -> None:
        assert compile_path("/p/{x:float}").match("/p/1.5") == {"x": 1.5}

    def test_path_param(self) -> None:
        assert compile_path("/files/{rest:path}").match("/files/a/b.txt") == {"rest": "a/b.txt"}

    def test_literal_is_escaped(self) -> None:
        compiled = compile_path("/a.b")
        assert compiled.match("/a.b") == {}
        assert compiled.match("/axb") is None

    def test_param_names(self) -> None:
        assert compile_path("/{org}/{repo}").param_names == ("org", "repo")

    def test_prefix_mode(self) -> None:
        compiled = compile_path("/api", end=False)
        assert compiled.match("/api") == {}
        assert compiled.match("/api/users") == {}
        assert compiled.match("/apix") is None

    def test_prefix_mode_root(self) -> None:
        assert compile_path("/", end=False).match("/anything") == {}

    def test_pattern_used_as_is(self) -> None:
        compiled = compile_path(re.compile(r"^/v(?P<version>\d+)/status$"))
        assert compiled.match("/v2/status") == {"version": "2"}

    def test_invalid_param_name(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid route path"):
            compile_path("/users/{1bad}")


class TestConvertParam:
    def test_int(self) -> None:
        assert convert_param("7", "int") == 7

    def test_bad_value(self) -> None:
        with pytest.raises(ValueError):
            convert_param("x", "int")
