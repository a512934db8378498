"""Route and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from tern.errors import ConfigurationError
from tern.routing.pattern import PathSegment, parse_pattern

# Verbs accepted by the registration surface, in the order the App exposes them.
HTTP_METHODS: tuple[str, ...] = (
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "HEAD",
    "CONNECT",
    "TRACE",
)

KEY_SEPARATOR = ":"


def route_key(method: str, pattern: str) -> str:
    """Build the identity key ``METHOD:pattern`` of a route."""
    return f"{method}{KEY_SEPARATOR}{pattern}"


@dataclass(frozen=True, slots=True)
class Route:
    """A registered endpoint.

    Created at registration time, one per verb and pattern. The only
    change a route ever sees is being re-keyed under a mount prefix,
    which produces a new ``Route`` via ``with_pattern()``.
    """

    pattern: str
    method: str
    handler: Callable[..., Any]
    middlewares: tuple[Callable[..., Any], ...] = ()
    segments: tuple[PathSegment, ...] = field(default=(), compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.method not in HTTP_METHODS:
            msg = f"Unsupported HTTP method {self.method!r} for route {self.pattern!r}."
            raise ConfigurationError(msg)
        if not self.segments:
            object.__setattr__(self, "segments", parse_pattern(self.pattern))

    @property
    def key(self) -> str:
        return route_key(self.method, self.pattern)

    def with_pattern(self, pattern: str) -> "Route":
        """Return a copy of this route registered under *pattern*."""
        return Route(
            pattern=pattern,
            method=self.method,
            handler=self.handler,
            middlewares=self.middlewares,
        )


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route lookup."""

    route: Route
    params: tuple[str, ...]
