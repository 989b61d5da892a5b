"""Ordered path router.

Layers are kept in registration order. A request runs every matching
``use()`` layer plus the first route layer whose path and method match;
later routes for the same path and method are shadowed. ``param()``
hooks run just before the matched route's own stages.

The router knows nothing about validation. It only stores and orders
middleware stages.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from routespec._internal.invoke import invoke
from routespec.errors import ConfigurationError
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.middleware.protocol import Middleware, Next
from routespec.routing.params import CompiledPath, compile_path

logger = logging.getLogger("routespec.router")

# (value, request, next) -> response
ParamHook: TypeAlias = Callable[..., Any]


@dataclass(slots=True)
class Layer:
    """One registered entry: a route, or path-scoped ``use()`` middleware."""

    path: str | re.Pattern[str] | None
    methods: frozenset[str]
    stages: tuple[Middleware, ...]
    matcher: CompiledPath | None
    is_route: bool = True
    name: str | None = None


@dataclass(frozen=True, slots=True)
class Dispatch:
    """Result of a successful dispatch."""

    layer: Layer
    params: dict[str, Any]
    stages: tuple[Middleware, ...] = field(default=())


def _join(prefix: str, path: str) -> str:
    if not prefix:
        return path
    joined = prefix.rstrip("/") + "/" + path.lstrip("/")
    return joined.rstrip("/") or "/"


def _param_stage(name: str, hook: ParamHook) -> Middleware:
    async def run_param(request: Request, next: Next) -> Response:
        return await invoke(hook, request.path_params.get(name), request, next)

    run_param.__name__ = f"param_{name}"
    return run_param


class PathRouter:
    """Ordered method + path dispatcher.

    Usage::

        paths = PathRouter()
        paths.register(("get",), "/users/{id:int}", stage_a, stage_b)
        found = paths.dispatch("GET", "/users/42")
        found.params   # {"id": 42}
        found.stages   # (stage_a, stage_b)
    """

    __slots__ = ("_layers", "_params", "_prefix")

    def __init__(self) -> None:
        self._layers: list[Layer] = []
        self._params: dict[str, list[ParamHook]] = {}
        self._prefix = ""

    @property
    def layers(self) -> tuple[Layer, ...]:
        """All layers in registration order."""
        return tuple(self._layers)

    def register(
        self,
        methods: tuple[str, ...] | frozenset[str],
        path: str | re.Pattern[str],
        *stages: Middleware,
        name: str | None = None,
    ) -> Layer:
        """Append a route layer for *methods* on *path*."""
        if not methods:
            msg = "A route needs at least one method"
            raise ConfigurationError(msg)
        layer = Layer(
            path=path,
            methods=frozenset(m.lower() for m in methods),
            stages=stages,
            matcher=self._compile(path, end=True),
            name=name,
        )
        self._layers.append(layer)
        return layer

    def use(self, *middleware: Middleware, path: str | None = None) -> None:
        """Run *middleware* before the route for every matching path.

        Without *path* the middleware applies to every routed request;
        with it, to paths under that prefix.
        """
        if not middleware:
            msg = "use() needs at least one middleware"
            raise ConfigurationError(msg)
        for mw in middleware:
            if not callable(mw):
                msg = f"use() expects callables, got {type(mw).__name__}"
                raise ConfigurationError(msg)
        matcher = self._compile(path, end=False) if path is not None else None
        self._layers.append(
            Layer(
                path=path,
                methods=frozenset(),
                stages=middleware,
                matcher=matcher,
                is_route=False,
            )
        )

    def param(self, name: str, hook: ParamHook) -> None:
        """Run ``hook(value, request, next)`` before routes declaring *name*."""
        if not callable(hook):
            msg = f"param({name!r}) expects a callable"
            raise ConfigurationError(msg)
        self._params.setdefault(name, []).append(hook)

    def prefix(self, prefix: str) -> None:
        """Prefix every string path, including those already registered."""
        self._prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
        for layer in self._layers:
            if isinstance(layer.path, str):
                layer.matcher = self._compile(layer.path, end=layer.is_route)
            elif isinstance(layer.path, re.Pattern):
                logger.debug("prefix %r not applied to pattern %r", prefix, layer.path.pattern)

    def dispatch(self, method: str, path: str) -> Dispatch | None:
        """Find the stages to run for *method* on *path*.

        Returns ``None`` when no route matches. ``HEAD`` is served by
        ``GET`` routes.
        """
        method = method.lower()
        stages: list[Middleware] = []
        matched: Layer | None = None
        params: dict[str, Any] = {}

        for layer in self._layers:
            if not layer.is_route:
                if layer.matcher is None or layer.matcher.match(path) is not None:
                    stages.extend(layer.stages)
                continue
            if matched is not None or not self._accepts(layer, method):
                continue
            found = layer.matcher.match(path) if layer.matcher is not None else None
            if found is None:
                continue
            matched = layer
            params = found
            for param_name in found:
                hooks = self._params.get(param_name, ())
                stages.extend(_param_stage(param_name, hook) for hook in hooks)
            stages.extend(layer.stages)

        if matched is None:
            return None
        return Dispatch(layer=matched, params=params, stages=tuple(stages))

    def allowed(self, path: str) -> frozenset[str]:
        """Methods registered for any route matching *path*."""
        methods: set[str] = set()
        for layer in self._layers:
            if not layer.is_route or layer.matcher is None:
                continue
            if layer.matcher.match(path) is not None:
                methods |= layer.methods
        if "get" in methods:
            methods.add("head")
        return frozenset(methods)

    # -- Internal --

    @staticmethod
    def _accepts(layer: Layer, method: str) -> bool:
        return method in layer.methods or (method == "head" and "get" in layer.methods)

    def _compile(self, path: str | re.Pattern[str], *, end: bool) -> CompiledPath:
        if isinstance(path, str):
            return compile_path(_join(self._prefix, path), end=end)
        return compile_path(path, end=end)
