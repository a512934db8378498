"""Case-insensitive HTTP headers.

``Headers`` is the read-only view of the ASGI scope's raw byte pairs,
decoded on access. ``ResponseHeaders`` is the mutable header map the
response writer accumulates until the response is flushed.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive request headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw

    def _values(self, key: str) -> Iterator[str]:
        wanted = key.lower().encode("latin-1")
        for name, value in self._raw:
            if name.lower() == wanted:
                yield value.decode("latin-1")

    def __getitem__(self, key: str) -> str:
        if not isinstance(key, str):
            raise KeyError(key)
        for value in self._values(key):
            return value
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name.decode("latin-1").lower() for name, _ in self._raw))

    def __len__(self) -> int:
        return len({name.lower() for name, _ in self._raw})

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._values(key))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw


class ResponseHeaders:
    """Mutable response headers, keeping insertion order and repeats.

    Usage::

        headers = ResponseHeaders()
        headers.set("Content-Type", "text/plain")
        headers.add("Set-Cookie", "a=1")
        headers.add("Set-Cookie", "b=2")
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[tuple[str, str]] = []

    def get(self, name: str, default: str | None = None) -> str | None:
        lowered = name.lower()
        for key, value in self._items:
            if key.lower() == lowered:
                return value
        return default

    def get_list(self, name: str) -> list[str]:
        lowered = name.lower()
        return [value for key, value in self._items if key.lower() == lowered]

    def set(self, name: str, value: str) -> None:
        """Replace every value of *name* with *value*."""
        self.delete(name)
        self._items.append((name, value))

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping existing ones."""
        self._items.append((name, value))

    def delete(self, name: str) -> None:
        lowered = name.lower()
        self._items = [(key, value) for key, value in self._items if key.lower() != lowered]

    def items(self) -> list[tuple[str, str]]:
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __repr__(self) -> str:
        return f"ResponseHeaders({self._items!r})"
