"""Per-route pipeline stages.

Each factory closes over one route's compiled state and returns a
middleware. The compiler strings them together in this order::

    prepare_request -> expose_spec -> parse_body -> validate_request -> handlers

``validate_request`` also owns the output check, which runs after the
handler chain returns.
"""

import logging
from collections.abc import Mapping
from typing import Any

from routespec.errors import (
    ContentTypeMismatch,
    HTTPError,
    OutputValidationError,
    ParseError,
    ValidationError,
)
from routespec.http.body import multipart_stream, parse_form, parse_json
from routespec.http.request import UNSET, Request
from routespec.http.response import Response
from routespec.middleware.protocol import Middleware, Next
from routespec.routing.route import FACETS, RouteSpec, Validate
from routespec.validation.engine import SchemaEngine
from routespec.validation.output import OutputValidator

logger = logging.getLogger("routespec.pipeline")


async def _passthrough(request: Request, next: Next) -> Response:
    return await next(request)


def capture_error(request: Request, facet: str, error: HTTPError) -> None:
    """Record *error* under *facet* instead of failing the request."""
    logger.debug("captured %s error: %s", facet, error.detail)
    request.invalid[facet] = error


async def prepare_request(request: Request, next: Next) -> Response:
    """Copy routing-level params onto the request-level view."""
    request.params = request.path_params
    return await next(request)


def make_spec_exposer(snapshot: RouteSpec, key: str = "route") -> Middleware:
    """Expose the route's spec snapshot as ``request.state[key]``."""

    async def expose_spec(request: Request, next: Next) -> Response:
        request.state[key] = snapshot
        return await next(request)

    return expose_spec


def make_body_parser(validate: Validate | None, limit: int | None = None) -> Middleware:
    """Build the stage that parses the body according to ``validate.type``.

    A content-type mismatch always fails the request. Parse failures
    fail with the route's ``failure`` status, or are captured under
    ``invalid["type"]`` when ``continue_on_error`` is set.
    """
    if validate is None or validate.type is None:
        return _passthrough

    body_type = validate.type
    failure = validate.failure
    capture = validate.continue_on_error

    async def parse_body(request: Request, next: Next) -> Response:
        match body_type:
            case "json":
                if not request.content_type_is("json"):
                    raise ContentTypeMismatch("json")
            case "form":
                if not request.content_type_is("urlencoded"):
                    raise ContentTypeMismatch("x-www-form-urlencoded")
            case _:
                if not request.content_type_is("multipart"):
                    raise ContentTypeMismatch("multipart")

        try:
            match body_type:
                case "json":
                    request.body = await parse_json(request, limit=limit)
                case "form":
                    request.body = await parse_form(request, limit=limit)
                case _:
                    request.parts = multipart_stream(request, validate.multipart_options)
        except ParseError as exc:
            if not capture:
                if failure is not None:
                    exc.status = failure
                raise
            capture_error(request, "type", exc)

        return await next(request)

    return parse_body


def _facet_value(request: Request, facet: str) -> Any:
    match facet:
        case "header":
            return request.headers.to_dict()
        case "query":
            return request.query.to_dict()
        case "params":
            return dict(request.params)
        case _:
            return None if request.body is UNSET else request.body


def _as_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump(by_alias=True)
    return vars(value)


def _write_back(request: Request, facet: str, value: Any) -> None:
    match facet:
        case "header":
            for key, item in _as_mapping(value).items():
                request.headers[key] = item
        case "query":
            for key, item in _as_mapping(value).items():
                request.query[key] = item
        case "params":
            params = {**request.params, **_as_mapping(value)}
            request.params = params
            request.path_params = params
        case _:
            request.body = value


def make_validator(
    validate: Validate | None,
    output: OutputValidator | None,
    engine: SchemaEngine,
) -> Middleware:
    """Build the stage that validates request facets and the response.

    Facets run in the order header, query, params, body. Coerced values
    replace the originals on the request. The output check runs on the
    response the rest of the chain returns and is never captured.
    """
    if validate is None:
        return _passthrough

    checks = tuple(
        (facet, schema)
        for facet in FACETS
        if (schema := getattr(validate, facet)) is not None
    )
    failure = validate.failure if validate.failure is not None else 400
    capture = validate.continue_on_error

    async def validate_request(request: Request, next: Next) -> Response:
        for facet, schema in checks:
            # A body that failed to parse stays unset and unvalidated
            if facet == "body" and request.body is UNSET and "type" in request.invalid:
                continue
            logger.debug("validating %s", facet)
            result = engine.validate(_facet_value(request, facet), schema)
            if result.error is not None:
                error = ValidationError(
                    status=failure,
                    detail=result.error.message,
                    facet=facet,
                    errors=result.error.details,
                )
                if not capture:
                    raise error
                capture_error(request, facet, error)
                continue
            _write_back(request, facet, result.value)

        response = await next(request)

        if output is not None:
            logger.debug("validating output")
            problem: OutputValidationError | None = output.validate(response)
            if problem is not None:
                raise problem
        return response

    return validate_request
