"""Dependency registry shared by every request.

Two ways to register a dependency:

- by name, with a ready value: ``app.add("db", database)``
- by type, with a zero-argument factory: ``app.provide(Mailer, make_mailer)``

Factories are called once, when the app freezes. Requests read the
resolved values from an immutable ``Dependencies`` snapshot, so nothing
is constructed or cast per request.
"""

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, TypeVar, cast

T = TypeVar("T")


class Container:
    """Mutable registry used during app setup."""

    __slots__ = ("_named", "_providers")

    def __init__(self) -> None:
        self._named: dict[str, Any] = {}
        self._providers: dict[type, Callable[[], Any]] = {}

    def add(self, name: str, value: Any) -> None:
        self._named[name] = value

    def get(self, name: str) -> Any:
        return self._named.get(name)

    def provide(self, annotation: type, factory: Callable[[], Any]) -> None:
        self._providers[annotation] = factory

    def freeze(self) -> "Dependencies":
        """Call every provider factory and return the immutable snapshot."""
        instances = {annotation: factory() for annotation, factory in self._providers.items()}
        return Dependencies(self._named, instances)


class Dependencies:
    """Resolved dependencies, read-only while serving."""

    __slots__ = ("_instances", "_named")

    def __init__(
        self,
        named: Mapping[str, Any] | None = None,
        instances: Mapping[type, Any] | None = None,
    ) -> None:
        self._named = MappingProxyType(dict(named or {}))
        self._instances = MappingProxyType(dict(instances or {}))

    def get(self, name: str) -> Any:
        """Return the value registered under *name*, or ``None``."""
        return self._named.get(name)

    def resolve(self, annotation: type[T]) -> T:
        """Return the instance provided for *annotation*.

        Raises ``LookupError`` if nothing was provided for that type.
        """
        try:
            return cast(T, self._instances[annotation])
        except KeyError:
            msg = f"No provider registered for {annotation.__qualname__}"
            raise LookupError(msg) from None

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._named)

    def __contains__(self, key: object) -> bool:
        return key in self._named or key in self._instances
