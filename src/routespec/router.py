"""Router — the embedder's surface for declaring validated routes.

Specs are checked and compiled when they are registered, so a broken
spec fails at import time rather than on the first request::

    router = Router()

    @router.get("/users/{id}", validate=Validate(params={"id": int}))
    async def show(request, next):
        return {"id": request.params["id"]}

    app = App()
    app.mount(router)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Any, TypeAlias

from routespec._internal.types import Handler
from routespec.config import RouterConfig
from routespec.errors import ConfigurationError, MethodNotAllowed, NotFound
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.middleware.protocol import Middleware, Next, compose
from routespec.pipeline.compiler import compile_route
from routespec.pipeline.registry import CompiledRoute, RouteRegistry
from routespec.routing.route import RouteSpec, Validate
from routespec.routing.router import ParamHook, PathRouter
from routespec.validation.engine import SchemaEngine, default_engine

# Every method ``Router.all`` registers
ALL_METHODS: tuple[str, ...] = (
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "head",
    "options",
    "trace",
    "connect",
)

Path: TypeAlias = str | re.Pattern[str]


class Router:
    """Collects route specs and serves them as one middleware.

    Mutable during setup. ``middleware()`` reads the current route table
    on every call, so routes added later are still served, but the table
    is meant to be complete before the first request.
    """

    __slots__ = ("_engine", "_paths", "_registry", "config")

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        engine: SchemaEngine | None = None,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self._engine: SchemaEngine = engine or default_engine
        self._registry = RouteRegistry(self.config, self._engine)
        self._paths = PathRouter()

    @property
    def routes(self) -> tuple[RouteSpec, ...]:
        """Registered specs, normalized, in registration order."""
        return self._registry.all()

    @property
    def engine(self) -> SchemaEngine:
        return self._engine

    # -- Registration --

    def register(self, spec: RouteSpec | Sequence[RouteSpec]) -> Router:
        """Register one spec or a sequence of specs. Returns ``self``.

        A sequence is checked as a whole first; if any spec is rejected,
        none of them is registered.
        """
        if isinstance(spec, Sequence) and not isinstance(spec, (str, bytes)):
            for compiled in [self._registry.compile(item) for item in _flatten_specs(spec)]:
                self._add(compiled)
            return self

        self._add(self._registry.compile(spec))
        return self

    def _add(self, compiled: CompiledRoute) -> None:
        self._registry.add(compiled)
        stages = compile_route(compiled, config=self.config, engine=self._engine)
        self._paths.register(
            compiled.spec.methods,
            compiled.spec.path,
            *stages,
            name=compiled.spec.name,
        )

    def route(
        self,
        path: Path,
        *,
        methods: Sequence[str] | str = ("get",),
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register the decorated function for several methods at once."""

        def decorator(func: Handler) -> Handler:
            self.register(
                RouteSpec(
                    path=path,
                    methods=methods if isinstance(methods, str) else tuple(methods),
                    handlers=(func,),
                    validate=validate,
                    meta=meta,
                    name=name,
                )
            )
            return func

        return decorator

    def _verb(
        self,
        methods: tuple[str, ...],
        path: Path,
        handlers: tuple[Handler, ...],
        validate: Validate | None,
        meta: Any,
        name: str | None,
    ) -> Any:
        if not handlers:
            return self.route(path, methods=methods, validate=validate, meta=meta, name=name)
        return self.register(
            RouteSpec(
                path=path,
                methods=methods,
                handlers=handlers,
                validate=validate,
                meta=meta,
                name=name,
            )
        )

    def get(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        """``GET`` route. Without handlers, returns a decorator."""
        return self._verb(("get",), path, handlers, validate, meta, name)

    def post(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("post",), path, handlers, validate, meta, name)

    def put(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("put",), path, handlers, validate, meta, name)

    def patch(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("patch",), path, handlers, validate, meta, name)

    def delete(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("delete",), path, handlers, validate, meta, name)

    def head(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("head",), path, handlers, validate, meta, name)

    def options(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("options",), path, handlers, validate, meta, name)

    def trace(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("trace",), path, handlers, validate, meta, name)

    def connect(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        return self._verb(("connect",), path, handlers, validate, meta, name)

    def all(
        self,
        path: Path,
        *handlers: Handler,
        validate: Validate | None = None,
        meta: Any = None,
        name: str | None = None,
    ) -> Any:
        """Route for every HTTP method."""
        return self._verb(ALL_METHODS, path, handlers, validate, meta, name)

    # -- Path router hooks --

    def use(self, *middleware: Middleware, path: str | None = None) -> Router:
        """Run *middleware* before matched routes (under *path*, if given)."""
        self._paths.use(*middleware, path=path)
        return self

    def param(self, name: str, hook: ParamHook) -> Router:
        """Run ``hook(value, request, next)`` before routes declaring *name*."""
        self._paths.param(name, hook)
        return self

    def prefix(self, prefix: str) -> Router:
        """Prefix every string route path, earlier and later ones alike."""
        if not isinstance(prefix, str):
            msg = f"prefix must be a string, got {type(prefix).__name__}"
            raise ConfigurationError(msg)
        self._paths.prefix(prefix)
        return self

    # -- Serving --

    def middleware(self) -> Middleware:
        """Return one middleware that dispatches to the registered routes.

        Unmatched requests go to ``next``. When the path is registered here
        for other methods and nothing later answers it, ``MethodNotAllowed``
        replaces the downstream ``NotFound``.
        """
        paths = self._paths
        answer_405 = self.config.method_not_allowed

        async def dispatch(request: Request, next: Next) -> Response:
            found = paths.dispatch(request.method, request.path)
            if found is None:
                allowed = paths.allowed(request.path) if answer_405 else frozenset()
                if not allowed:
                    return await next(request)
                # Later routers get the request first; 405 only replaces their 404
                try:
                    return await next(request)
                except MethodNotAllowed as exc:
                    raise MethodNotAllowed(allowed | exc.allowed) from None
                except NotFound:
                    raise MethodNotAllowed(allowed) from None
            request.path_params = found.params
            return await compose(found.stages, next)(request)

        return dispatch


def _flatten_specs(specs: Sequence[Any]) -> list[Any]:
    flat: list[Any] = []
    for item in specs:
        if isinstance(item, Sequence) and not isinstance(item, (str, bytes)):
            flat.extend(_flatten_specs(item))
        else:
            flat.append(item)
    return flat
