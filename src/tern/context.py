"""Request context values and the middleware error channel.

Provides:
- ``Context``: an immutable key/value mapping carried by every request.
  ``with_value()`` returns an extended copy; the original is untouched.
- ``ErrorSignal``: what a middleware attaches to abort the chain with an
  HTTP error instead of continuing.
- ``request_var``: the current ``Request`` for this task, set by the
  dispatcher and reset after each request.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. ``Context`` objects are never mutated after creation.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tern.http.request import Request


class ContextKey:
    """A context key compared by identity.

    Two keys with the same name are still different keys, so values
    stored by one package cannot be read or replaced by another.
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"ContextKey({self.name!r})"


class Context(Mapping[Any, Any]):
    """Immutable mapping of context keys to values.

    Usage::

        user_key = ContextKey("user")
        ctx = Context().with_value(user_key, current_user)
        ctx[user_key]  # current_user
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[Any, Any] | None = None) -> None:
        self._values: dict[Any, Any] = dict(values or {})

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a new context with *key* set to *value*."""
        return Context({**self._values, key: value})

    def __getitem__(self, key: Any) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Context({self._values!r})"


@dataclass(frozen=True, slots=True)
class ErrorSignal:
    """An in-band request to stop the middleware chain.

    When the request handed to ``next`` carries one, the chain writes
    ``status`` and ``str(error)`` as the response and runs nothing else.
    """

    error: BaseException | str
    status: int

    @property
    def message(self) -> str:
        return str(self.error)


# Private: only Request.with_error() and Request.error_signal use it.
_ERROR_SIGNAL = ContextKey("error")


def attach_error(context: Context, signal: ErrorSignal) -> Context:
    return context.with_value(_ERROR_SIGNAL, signal)


def error_signal_of(context: Context) -> ErrorSignal | None:
    return context.get(_ERROR_SIGNAL)


# -- Current request --

request_var: ContextVar[Request] = ContextVar("tern_request")
"""The current request. Set by the dispatcher before the route runs."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()
