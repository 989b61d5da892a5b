"""routespec — declarative route specs compiled into validated request pipelines.

A route declares its path, methods, handlers and validation rules; the
router checks the declaration once and serves it as an ordered chain of
middleware: body parsing, header/query/params/body validation with
coercion, the handlers, then output validation.

Basic usage::

    from routespec import App, Router, Validate

    router = Router()

    @router.post(
        "/users",
        validate=Validate(type="json", body={"name": str, "age": int}),
    )
    async def create(request, next):
        return request.body, 201

    app = App()
    app.mount(router)
"""

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "ConfigError",
    "ConfigurationError",
    "ContentTypeMismatch",
    "FilePart",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "MultipartOptions",
    "Next",
    "NotFound",
    "Output",
    "OutputValidationError",
    "ParseError",
    "PydanticEngine",
    "Request",
    "Response",
    "RouteSpec",
    "RouteSpecError",
    "Router",
    "RouterConfig",
    "SchemaEngine",
    "UNSET",
    "Validate",
    "ValidationError",
    "schema",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import routespec`` fast while providing a clean top-level API.
    """
    if name == "Router":
        from routespec.router import Router

        return Router

    if name == "App":
        from routespec.app import App

        return App

    if name == "RouterConfig":
        from routespec.config import RouterConfig

        return RouterConfig

    if name in ("RouteSpec", "Validate", "Output"):
        from routespec.routing import route as _route

        return getattr(_route, name)

    if name in ("MultipartOptions", "FilePart"):
        from routespec.http import multipart as _multipart

        return getattr(_multipart, name)

    if name in ("Request", "UNSET"):
        from routespec.http import request as _request

        return getattr(_request, name)

    if name == "Response":
        from routespec.http.response import Response

        return Response

    if name in ("Middleware", "Next"):
        from routespec.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("PydanticEngine", "SchemaEngine"):
        from routespec.validation import engine as _engine

        return getattr(_engine, name)

    if name == "schema":
        from routespec.validation.engine import default_engine

        return default_engine

    if name in (
        "ConfigError",
        "ConfigurationError",
        "ContentTypeMismatch",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "OutputValidationError",
        "ParseError",
        "RouteSpecError",
        "ValidationError",
    ):
        from routespec import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
