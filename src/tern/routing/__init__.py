"""Routing: pattern matching, route table, and prefix resolution.

Routes are registered during setup and frozen into a ``RouteTable``
when the app composes its mounted children.
"""

from tern.routing.pattern import PathMatch, PathSegment, extract_params, match_path, split_path
from tern.routing.prefix import resolve_prefix, select_prefixed
from tern.routing.route import HTTP_METHODS, Route, RouteMatch, route_key
from tern.routing.table import NOT_FOUND, RouteTable

__all__ = [
    "HTTP_METHODS",
    "NOT_FOUND",
    "PathMatch",
    "PathSegment",
    "Route",
    "RouteMatch",
    "RouteTable",
    "extract_params",
    "match_path",
    "resolve_prefix",
    "route_key",
    "select_prefixed",
    "split_path",
]
