"""Route spec frozen dataclasses.

``RouteSpec`` is the declarative definition of one route; ``Validate``
holds its input/output rules. Both are plain values: the registry
normalizes and checks them, and compiled state lives next to them in a
``CompiledRoute`` rather than on them.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from routespec._internal.types import Handler
from routespec.http.multipart import MultipartOptions

BodyType: TypeAlias = Literal["json", "form", "multipart", "stream"]

BODY_TYPES: frozenset[str] = frozenset({"json", "form", "multipart", "stream"})

# Facets validated before the handlers run, in this order
FACETS: tuple[str, ...] = ("header", "query", "params", "body")


@dataclass(frozen=True, slots=True)
class Output:
    """Expected response shape for one status entry."""

    body: Any = None
    headers: Any = None


@dataclass(frozen=True, slots=True)
class Validate:
    """Validation rules for one route.

    ``header``, ``query``, ``params`` and ``body`` take any schema the
    configured engine understands (with the default pydantic engine: a
    model class, a type, or a ``{"name": type}`` dict).

    ``type`` is required when ``body`` is set and selects the body
    parser. ``max_body`` caps json/form bodies (``"64kb"``, bytes).
    ``output`` maps response statuses to ``Output`` entries or bare body
    schemas. ``failure`` is the status for validation failures; ``None``
    means the router default (400).
    """

    header: Any = None
    query: Any = None
    params: Any = None
    body: Any = None
    type: BodyType | None = None
    max_body: int | str | None = None
    multipart_options: MultipartOptions | None = None
    output: Mapping[int | str, Any] | None = None
    failure: int | None = None
    continue_on_error: bool = False


@dataclass(frozen=True, slots=True)
class RouteSpec:
    """A declarative route definition.

    ``methods`` accepts a sequence or a space-separated string; the
    registry lower-cases it. ``handlers`` may nest lists, which are
    flattened in order. ``meta`` is never read by the router and is kept
    for documentation tooling.
    """

    path: str | re.Pattern[str]
    methods: tuple[str, ...] | str
    handlers: tuple[Handler, ...] | Handler
    validate: Validate | None = None
    meta: Any = None
    name: str | None = None
