"""Route table with linear-scan lookup.

Routes are keyed by ``METHOD:pattern``. Lookup walks every entry in
registration order and returns the first one whose method and pattern
both match, so overlapping patterns for the same method are resolved by
whichever was registered first. Registering such patterns is the
caller's responsibility to avoid.
"""

from collections.abc import Iterator

from tern.routing.pattern import match_segments
from tern.routing.route import Route, RouteMatch

# Lookup miss. Contains no separator, so it never equals a real route key.
NOT_FOUND = "!"


class RouteTable:
    """A mapping from ``METHOD:pattern`` keys to routes.

    Usage::

        table = RouteTable()
        table.add(Route("/user/:id", "GET", show_user))
        match = table.match("GET", "/user/6")
        assert match.params == ("6",)
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: "dict[str, Route] | None" = None) -> None:
        self._routes: dict[str, Route] = dict(routes or {})

    def add(self, route: Route) -> None:
        """Store *route*, replacing any route already under the same key."""
        self._routes[route.key] = route

    def get(self, key: str) -> Route | None:
        return self._routes.get(key)

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Return the first route matching *method* and *path*, or ``None``."""
        for route in self._routes.values():
            if route.method != method:
                continue
            result = match_segments(route.segments, path)
            if result:
                return RouteMatch(route=route, params=result.params)
        return None

    def resolve(self, method: str, path: str) -> Route | None:
        match = self.match(method, path)
        return match.route if match is not None else None

    def resolve_key(self, method: str, path: str) -> str:
        """Return the key of the matching route, or ``NOT_FOUND``."""
        route = self.resolve(method, path)
        return route.key if route is not None else NOT_FOUND

    def copy(self) -> "RouteTable":
        return RouteTable(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, key: object) -> bool:
        return key in self._routes

    def __repr__(self) -> str:
        return f"RouteTable({list(self._routes)!r})"
