"""Output validation — check a handler's response against declared shapes.

An ``output`` map is keyed by status. Keys may be:

- an int or numeric string: ``200``, ``"201"``
- a comma list: ``"200,201"``
- a range: ``"400-599"``
- a class: ``"2xx"``
- a wildcard: ``"*"`` or ``"default"``

Each value is an ``Output`` (body and/or headers schema) or a bare body
schema. The most specific key matching the response status wins;
a status no key matches is not constrained.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from routespec.errors import ConfigurationError, OutputValidationError
from routespec.http.response import Response
from routespec.routing.route import Output
from routespec.validation.engine import SchemaEngine, SchemaError

logger = logging.getLogger("routespec.validation")

_WILDCARDS = frozenset({"*", "default"})
_RANGE_RE = re.compile(r"^(\d{3})\s*-\s*(\d{3})$")
_CLASS_RE = re.compile(r"^([1-5])xx$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class _Rule:
    low: int
    high: int
    output: Output

    @property
    def width(self) -> int:
        return self.high - self.low

    def matches(self, status: int) -> bool:
        return self.low <= status <= self.high


def _parse_key(key: int | str) -> list[tuple[int, int]]:
    """Turn one output key into inclusive status ranges."""
    if isinstance(key, bool):
        msg = f"Invalid output status key: {key!r}"
        raise ConfigurationError(msg)
    if isinstance(key, int):
        parts = [str(key)]
    else:
        parts = [part.strip() for part in str(key).split(",")]

    ranges: list[tuple[int, int]] = []
    for part in parts:
        if part.isdigit():
            low = high = int(part)
        elif (m := _RANGE_RE.match(part)) is not None:
            low, high = int(m.group(1)), int(m.group(2))
        elif (m := _CLASS_RE.match(part)) is not None:
            low = int(m.group(1)) * 100
            high = low + 99
        else:
            msg = f"Invalid output status key: {key!r}"
            raise ConfigurationError(msg)
        if not (100 <= low <= high <= 599):
            msg = f"Output status key out of range: {key!r}"
            raise ConfigurationError(msg)
        ranges.append((low, high))
    return ranges


class OutputValidator:
    """Compiled response checks for one route. Immutable after creation.

    Usage::

        validator = OutputValidator({200: UserOut, "4xx": ErrorOut}, engine)
        error = validator.validate(response)   # OutputValidationError | None
    """

    __slots__ = ("_default", "_engine", "_rules")

    def __init__(self, output: Mapping[int | str, Any], engine: SchemaEngine) -> None:
        if not isinstance(output, Mapping) or not output:
            msg = "validate.output must be a non-empty mapping of status -> schema"
            raise ConfigurationError(msg)
        self._engine = engine
        rules: list[_Rule] = []
        default: Output | None = None
        for key, value in output.items():
            entry = value if isinstance(value, Output) else Output(body=value)
            for schema in (entry.body, entry.headers):
                if schema is not None:
                    engine.check(schema)
            if isinstance(key, str) and key.strip().lower() in _WILDCARDS:
                default = entry
                continue
            rules.extend(_Rule(low, high, entry) for low, high in _parse_key(key))
        # Narrowest range first; stable for equal widths
        self._rules: tuple[_Rule, ...] = tuple(sorted(rules, key=lambda r: r.width))
        self._default = default

    def entry_for(self, status: int) -> Output | None:
        """The ``Output`` that applies to *status*, if any."""
        for rule in self._rules:
            if rule.matches(status):
                return rule.output
        return self._default

    def validate(self, response: Response) -> OutputValidationError | None:
        """Check *response* without modifying it."""
        entry = self.entry_for(response.status)
        if entry is None:
            return None

        if entry.headers is not None:
            headers = {name.lower(): value for name, value in response.headers}
            headers.setdefault("content-type", response.media_type)
            result = self._engine.validate(headers, entry.headers)
            if result.error is not None:
                return self._error(response.status, "headers", result.error)

        if entry.body is not None:
            result = self._engine.validate(response.body, entry.body)
            if result.error is not None:
                return self._error(response.status, "body", result.error)

        return None

    @staticmethod
    def _error(
        status: int,
        part: str,
        error: SchemaError,
    ) -> OutputValidationError:
        logger.debug("output %s for status %d failed: %s", part, status, error.message)
        return OutputValidationError(
            detail=f"response {part} for status {status} is invalid: {error.message}",
            errors=error.details,
        )
