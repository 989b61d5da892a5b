"""routespec exception hierarchy.

Shared across the registry, the pipeline stages, and the server layer so
every module raises and catches the same types.

Registration problems raise ``ConfigurationError`` synchronously.
Everything that can happen while serving a request is an ``HTTPError``
carrying the status it should surface with.
"""

from dataclasses import dataclass, field
from typing import Any


class RouteSpecError(Exception):
    """Base for all routespec-specific errors."""


class ConfigurationError(RouteSpecError):
    """Raised when a route spec or router configuration is invalid.

    Always raised at registration time, never while serving a request.
    """


# Short alias used throughout the docs.
ConfigError = ConfigurationError


@dataclass(eq=False)
class HTTPError(RouteSpecError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, the pipeline stages, or handlers. The ASGI
    handler catches these and dispatches to the matching ``@app.error()``
    handler, or renders a default error response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @property
    def msg(self) -> str:
        """The plain error message, exposed for serialization."""
        return self.detail

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view of the error."""
        return {"status": self.status, "msg": self.msg}


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — a route exists for the path but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(m.upper() for m in allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
        self.allowed = frozenset(allowed)


class ContentTypeMismatch(HTTPError):  # noqa: N818
    """400 — the request body is not of the type the route declares.

    Never captured by ``continue_on_error``.
    """

    def __init__(self, expected: str) -> None:
        super().__init__(status=400, detail=f"expected {expected}")
        self.expected = expected


class ParseError(HTTPError):  # noqa: N818
    """The payload is malformed or exceeds its size limit."""

    def __init__(self, detail: str, status: int = 400) -> None:
        super().__init__(status=status, detail=detail)


@dataclass(eq=False)
class ValidationError(HTTPError):
    """A request facet failed its schema.

    ``facet`` is one of ``header``, ``query``, ``params``, ``body``.
    ``errors`` holds the schema engine's structured error list.
    """

    facet: str = ""
    errors: tuple[dict[str, Any], ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["facet"] = self.facet
        if self.errors:
            data["details"] = list(self.errors)
        return data


@dataclass(eq=False)
class OutputValidationError(HTTPError):
    """The handler produced a response that violates its output schema.

    Always a server fault: status 500, never captured.
    """

    status: int = 500
    errors: tuple[dict[str, Any], ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.errors:
            data["details"] = list(self.errors)
        return data
