"""Validation — schema engines and response checks.

The request pipeline validates facets through a ``SchemaEngine``
(pydantic by default) and checks responses with an ``OutputValidator``
compiled once per route.
"""

from routespec.validation.engine import (
    PydanticEngine,
    SchemaEngine,
    SchemaError,
    SchemaResult,
    default_engine,
)
from routespec.validation.output import OutputValidator

__all__ = [
    "OutputValidator",
    "PydanticEngine",
    "SchemaEngine",
    "SchemaError",
    "SchemaResult",
    "default_engine",
]
