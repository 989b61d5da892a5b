"""Schema engine — validate and coerce values against declared schemas.

The pipeline talks to a ``SchemaEngine``: anything with ``check`` and
``validate``. The default ``PydanticEngine`` accepts:

- a pydantic model class (the validated instance is returned)
- any type or annotation pydantic understands (``int``, ``list[str]``,
  a ``TypedDict``...)
- a ``{"name": type}`` dict, compiled to a model once; values may be
  ``(type, default)`` tuples or nested dicts, and the coerced result is
  a plain dict keyed by the original names

Validation runs in pydantic's lax mode, so ``"42"`` becomes ``42`` for
an ``int`` field and missing fields take their defaults.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import ConfigDict, Field, TypeAdapter, create_model
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticSchemaGenerationError, PydanticUserError

from routespec.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class SchemaError:
    """A failed validation: a readable message plus structured details."""

    message: str
    details: tuple[dict[str, Any], ...] = ()


@dataclass(frozen=True, slots=True)
class SchemaResult:
    """Outcome of ``SchemaEngine.validate``.

    ``value`` is the coerced value on success and the input on failure.
    """

    value: Any
    error: SchemaError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SchemaEngine(Protocol):
    """Protocol for schema engines."""

    def check(self, schema: Any) -> None:
        """Raise ``ConfigurationError`` if *schema* cannot be used."""
        ...

    def validate(self, value: Any, schema: Any) -> SchemaResult:
        """Validate *value* against *schema*, coercing where allowed."""
        ...


def _format_errors(exc: PydanticValidationError) -> SchemaError:
    details: list[dict[str, Any]] = []
    messages: list[str] = []
    for err in exc.errors(include_url=False):
        loc = [part for part in err.get("loc", ()) if part != "__root__"]
        msg = err.get("msg", "")
        details.append({"loc": loc, "msg": msg, "type": err.get("type", "value_error")})
        where = ".".join(str(part) for part in loc)
        messages.append(f"{where}: {msg}" if where else msg)
    return SchemaError(message="; ".join(messages), details=tuple(details))


class PydanticEngine:
    """Schema engine backed by pydantic ``TypeAdapter``.

    Adapters are built once per schema object and cached.
    """

    __slots__ = ("_adapters", "_strict")

    def __init__(self, *, strict: bool = False) -> None:
        self._strict = strict
        # id(schema) -> (schema, adapter); holding the schema keeps the id stable
        self._adapters: dict[int, tuple[Any, TypeAdapter[Any]]] = {}

    def adapter(self, schema: Any) -> TypeAdapter[Any]:
        """Return the cached ``TypeAdapter`` for *schema*, building it if needed."""
        cached = self._adapters.get(id(schema))
        if cached is not None and cached[0] is schema:
            return cached[1]
        target = _model_for(schema) if isinstance(schema, Mapping) else schema
        adapter: TypeAdapter[Any] = TypeAdapter(target)
        self._adapters[id(schema)] = (schema, adapter)
        return adapter

    def check(self, schema: Any) -> None:
        try:
            self.adapter(schema)
        except (PydanticSchemaGenerationError, PydanticUserError, TypeError) as exc:
            msg = f"Unsupported schema {schema!r}: {exc}"
            raise ConfigurationError(msg) from exc

    def validate(self, value: Any, schema: Any) -> SchemaResult:
        adapter = self.adapter(schema)
        try:
            result = adapter.validate_python(value, strict=self._strict or None)
        except PydanticValidationError as exc:
            return SchemaResult(value=value, error=_format_errors(exc))
        if isinstance(schema, Mapping):
            result = result.model_dump(by_alias=True)
        return SchemaResult(value=result)


def _model_for(schema: Mapping[str, Any]) -> type:
    """Compile a ``{"name": type}`` dict into a pydantic model.

    Field names are positional placeholders aliased to the original keys,
    so keys like ``x-request-id`` work and nothing shadows model methods.
    """
    fields: dict[str, Any] = {}
    for index, (key, spec) in enumerate(schema.items()):
        if isinstance(spec, tuple) and len(spec) == 2:
            annotation, default = spec
        else:
            annotation, default = spec, ...
        if isinstance(annotation, Mapping):
            annotation = _model_for(annotation)
        fields[f"field_{index}"] = (annotation, Field(default, alias=str(key)))
    return create_model(
        "DictSchema",
        __config__=ConfigDict(extra="ignore"),
        **fields,
    )


# The engine used when a Router is created without one
default_engine = PydanticEngine()
