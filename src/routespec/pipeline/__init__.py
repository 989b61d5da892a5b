"""Route pipeline — registry, compiler, and per-route stages."""

from routespec.pipeline.compiler import compile_route, wrap_handler
from routespec.pipeline.registry import CompiledRoute, RouteRegistry

__all__ = ["CompiledRoute", "RouteRegistry", "compile_route", "wrap_handler"]
