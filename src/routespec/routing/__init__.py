"""Routing — route spec types and the ordered path router.

``RouteSpec`` and ``Validate`` describe routes; ``PathRouter`` maps
method + path to the stages registered for them.
"""

from routespec.routing.route import FACETS, Output, RouteSpec, Validate
from routespec.routing.router import Dispatch, Layer, PathRouter

__all__ = [
    "FACETS",
    "Dispatch",
    "Layer",
    "Output",
    "PathRouter",
    "RouteSpec",
    "Validate",
]
