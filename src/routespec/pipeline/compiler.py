"""Turn a compiled route into the ordered stage tuple the path router runs."""

import functools

from routespec._internal.invoke import invoke
from routespec._internal.types import Handler
from routespec.config import RouterConfig
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.middleware.protocol import Middleware, Next
from routespec.pipeline.registry import CompiledRoute
from routespec.pipeline.stages import (
    make_body_parser,
    make_spec_exposer,
    make_validator,
    prepare_request,
)
from routespec.server.negotiation import negotiate
from routespec.validation.engine import SchemaEngine


def wrap_handler(handler: Handler) -> Middleware:
    """Adapt a user handler (sync or async, any return value) to a middleware."""

    @functools.wraps(handler)
    async def run_handler(request: Request, next: Next) -> Response:
        return negotiate(await invoke(handler, request, next))

    return run_handler


def compile_route(
    route: CompiledRoute,
    *,
    config: RouterConfig,
    engine: SchemaEngine,
) -> tuple[Middleware, ...]:
    """Build the stages for *route*, in execution order."""
    validate = route.spec.validate
    stages: list[Middleware] = [prepare_request]
    if config.expose_spec:
        stages.append(make_spec_exposer(route.snapshot, config.state_key))
    stages.append(make_body_parser(validate, route.body_limit))
    stages.append(make_validator(validate, route.output, engine))
    stages.extend(wrap_handler(handler) for handler in route.spec.handlers)
    return tuple(stages)
