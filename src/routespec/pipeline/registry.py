"""Route registry — normalize, check, and store route specs.

Every rule a spec must satisfy is checked here, at registration, and a
violation raises ``ConfigurationError``. A request never sees a spec the
registry did not accept.

The registry is ordered and append-only. Duplicates are kept; the path
router decides which one answers.
"""

import copy
import inspect
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Any

from routespec._internal.sizes import parse_size
from routespec.config import RouterConfig
from routespec.errors import ConfigurationError
from routespec.http.multipart import MultipartOptions
from routespec.routing.params import compile_path
from routespec.routing.route import BODY_TYPES, FACETS, RouteSpec, Validate
from routespec.validation.engine import SchemaEngine
from routespec.validation.output import OutputValidator

logger = logging.getLogger("routespec.registry")


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A registered spec plus everything compiled from it.

    ``spec`` is the normalized spec, ``snapshot`` a deep copy of it for
    exposure on requests, ``output`` the compiled output checks (if any)
    and ``body_limit`` the byte cap for json/form bodies.
    """

    spec: RouteSpec
    snapshot: RouteSpec
    output: OutputValidator | None = None
    body_limit: int | None = None


class RouteRegistry:
    """Ordered store of compiled routes.

    Usage::

        registry = RouteRegistry(RouterConfig(), default_engine)
        compiled = registry.register(RouteSpec("/users", "get", list_users))
        registry.all()   # (RouteSpec(path="/users", methods=("get",), ...),)
    """

    __slots__ = ("_config", "_engine", "_routes")

    def __init__(self, config: RouterConfig, engine: SchemaEngine) -> None:
        self._config = config
        self._engine = engine
        self._routes: list[CompiledRoute] = []

    def register(self, spec: RouteSpec) -> CompiledRoute:
        """Check and normalize *spec*, compile it, and append it."""
        return self.add(self.compile(spec))

    def compile(self, spec: RouteSpec) -> CompiledRoute:
        """Check and normalize *spec* without storing it."""
        if not isinstance(spec, RouteSpec):
            msg = f"Expected a RouteSpec, got {type(spec).__name__}"
            raise ConfigurationError(msg)

        _check_path(spec.path)
        methods = _normalize_methods(spec.methods)
        handlers = _flatten_handlers(spec.handlers)
        validate = self._check_validate(spec.validate)

        normalized = replace(spec, methods=methods, handlers=handlers, validate=validate)
        output = None
        if validate is not None and validate.output is not None:
            output = OutputValidator(validate.output, self._engine)

        try:
            # Handlers are shared, not copied
            snapshot = copy.deepcopy(normalized, {id(h): h for h in handlers})
        except (TypeError, copy.Error) as exc:
            msg = f"Route spec for {spec.path!r} cannot be copied: {exc}"
            raise ConfigurationError(msg) from exc

        return CompiledRoute(
            spec=normalized,
            snapshot=snapshot,
            output=output,
            body_limit=self._body_limit(validate),
        )

    def add(self, compiled: CompiledRoute) -> CompiledRoute:
        """Append an already compiled route."""
        self._routes.append(compiled)
        methods = " ".join(m.upper() for m in compiled.spec.methods)
        logger.debug('add %s "%s"', methods, _describe(compiled.spec.path))
        return compiled

    def all(self) -> tuple[RouteSpec, ...]:
        """Normalized specs in registration order."""
        return tuple(route.spec for route in self._routes)

    def __iter__(self) -> Iterator[CompiledRoute]:
        return iter(tuple(self._routes))

    def __len__(self) -> int:
        return len(self._routes)

    # -- Internal --

    def _check_validate(self, validate: Validate | None) -> Validate | None:
        if validate is None:
            return None
        if not isinstance(validate, Validate):
            msg = f"validate must be a Validate instance, got {type(validate).__name__}"
            raise ConfigurationError(msg)

        body_type = validate.type.lower() if isinstance(validate.type, str) else validate.type
        if body_type is not None and body_type not in BODY_TYPES:
            msg = "validate.type must be either json, form, multipart or stream"
            raise ConfigurationError(msg)
        if validate.body is not None and body_type not in ("json", "form"):
            msg = "validate.type must be declared as json or form when using validate.body"
            raise ConfigurationError(msg)

        failure = validate.failure if validate.failure is not None else self._config.default_failure
        if isinstance(failure, bool) or not isinstance(failure, int) or not 400 <= failure <= 599:
            msg = f"validate.failure must be a 4xx or 5xx status, got {failure!r}"
            raise ConfigurationError(msg)

        if validate.max_body is not None:
            _size(validate.max_body, "validate.max_body")
        if validate.multipart_options is not None and not isinstance(
            validate.multipart_options, MultipartOptions
        ):
            msg = "validate.multipart_options must be a MultipartOptions instance"
            raise ConfigurationError(msg)

        for facet in FACETS:
            schema = getattr(validate, facet)
            if schema is not None:
                self._engine.check(schema)

        return replace(validate, type=body_type, failure=failure)

    def _body_limit(self, validate: Validate | None) -> int | None:
        if validate is None:
            return None
        match validate.type:
            case "json":
                default, name = self._config.json_limit, "json_limit"
            case "form":
                default, name = self._config.form_limit, "form_limit"
            case _:
                return None
        if validate.max_body is not None:
            return _size(validate.max_body, "validate.max_body")
        return _size(default, name)


def _check_path(path: Any) -> None:
    if isinstance(path, re.Pattern):
        return
    if not isinstance(path, str) or not path:
        msg = f"Route path must be a non-empty string or compiled pattern, got {path!r}"
        raise ConfigurationError(msg)
    compile_path(path)


def _normalize_methods(methods: Any) -> tuple[str, ...]:
    """Lower-case and de-duplicate, keeping first-seen order."""
    if isinstance(methods, str):
        methods = methods.split()
    elif isinstance(methods, (set, frozenset)):
        methods = sorted(methods, key=str)
    if not isinstance(methods, (list, tuple)):
        msg = f"Route methods must be a string or a sequence, got {type(methods).__name__}"
        raise ConfigurationError(msg)
    if not methods:
        msg = "missing route methods"
        raise ConfigurationError(msg)

    normalized: list[str] = []
    for method in methods:
        if not isinstance(method, str) or not method.strip() or " " in method.strip():
            msg = f"Route method must be a single non-empty string, got {method!r}"
            raise ConfigurationError(msg)
        lowered = method.strip().lower()
        if lowered not in normalized:
            normalized.append(lowered)
    return tuple(normalized)


def _flatten_handlers(handlers: Any) -> tuple[Any, ...]:
    flat: list[Any] = []

    def walk(item: Any) -> None:
        if isinstance(item, (list, tuple)):
            for inner in item:
                walk(inner)
            return
        _check_handler(item)
        flat.append(item)

    walk(handlers)
    if not flat:
        msg = "A route needs at least one handler"
        raise ConfigurationError(msg)
    return tuple(flat)


def _check_handler(handler: Any) -> None:
    if not callable(handler):
        msg = f"Route handler must be callable, got {type(handler).__name__}"
        raise ConfigurationError(msg)
    try:
        signature = inspect.signature(handler)
    except ValueError:
        # Some builtins expose no signature
        return
    try:
        signature.bind(None, None)
    except TypeError as exc:
        name = getattr(handler, "__name__", repr(handler))
        msg = f"Route handler {name} must accept (request, next): {exc}"
        raise ConfigurationError(msg) from exc


def _size(value: int | str, what: str) -> int:
    try:
        return parse_size(value)
    except ValueError as exc:
        msg = f"Invalid {what} {value!r}: {exc}"
        raise ConfigurationError(msg) from exc


def _describe(path: str | re.Pattern[str]) -> str:
    return path.pattern if isinstance(path, re.Pattern) else path
