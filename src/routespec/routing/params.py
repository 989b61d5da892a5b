"""Path compilation and parameter conversion.

Route paths use ``{name}`` and typed ``{name:int}`` segments::

    "/users"             -> literal
    "/users/{id}"        -> id matches one segment, kept as str
    "/users/{id:int}"    -> id matches digits, converted to int
    "/files/{rest:path}" -> rest matches the remaining path

A compiled ``re.Pattern`` is used as-is; its named groups are params.
"""

import re
from dataclasses import dataclass

from routespec.errors import ConfigurationError

# (regex_pattern, python_type) for each supported converter
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path."""

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class CompiledPath:
    """A path turned into a matcher."""

    regex: re.Pattern[str]
    converters: dict[str, str]

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(self.regex.groupindex)

    def match(self, path: str) -> dict[str, str | int | float] | None:
        """Return the converted params if *path* matches, else ``None``."""
        m = self.regex.match(path)
        if m is None:
            return None
        params: dict[str, str | int | float] = {}
        for name, value in m.groupdict().items():
            if value is None:
                continue
            param_type = self.converters.get(name)
            params[name] = convert_param(value, param_type) if param_type else value
        return params


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Raises ``ConfigurationError`` for unknown converters and for
    ``<param>``-style segments.
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = f"Route path {path!r} uses <param> syntax; use {{param}} instead."
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            param_name, _, param_type = inner.partition(":")
            param_type = param_type or "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown converter {param_type!r} in route path {path!r}"
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


def compile_path(path: str | re.Pattern[str], *, end: bool = True) -> CompiledPath:
    """Compile a route path into a ``CompiledPath``.

    With ``end=False`` the path matches as a prefix on a segment
    boundary (``/api`` matches ``/api`` and ``/api/users``), which is
    how ``use()`` middleware paths behave.
    """
    if isinstance(path, re.Pattern):
        return CompiledPath(regex=path, converters={})

    converters: dict[str, str] = {}
    pattern = ""
    for seg in parse_path(path):
        if seg.is_param:
            name = seg.param_name or ""
            expr, _ = CONVERTERS[seg.param_type]
            converters[name] = seg.param_type
            pattern += f"/(?P<{name}>{expr})"
        else:
            pattern += "/" + re.escape(seg.value)

    if end:
        source = f"^{pattern}/?$" if pattern else "^/?$"
    else:
        source = f"^{pattern}(?:/|$)" if pattern else "^/"
    try:
        regex = re.compile(source)
    except re.error as exc:
        msg = f"Invalid route path {path!r}: {exc}"
        raise ConfigurationError(msg) from exc
    return CompiledPath(regex=regex, converters=converters)


def convert_param(value: str, param_type: str) -> str | int | float:
    """Convert a captured path parameter string to the target type.

    Raises ``ValueError`` if the string cannot be converted.
    Raises ``KeyError`` if *param_type* is not a registered converter.
    """
    _, target_type = CONVERTERS[param_type]
    return target_type(value)
