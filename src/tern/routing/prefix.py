"""Longest-prefix resolution over mount prefix maps.

Mounted applications contribute per-prefix configuration: a static
folder, a middleware list, a template set. For each request the
dispatcher picks the most specific prefix for the request path.

Two rules are in use:

- **loose** (static folders, template sets): every key is a candidate.
  The winner is the key whose first occurrence, removed from the path,
  leaves the shortest remainder. Keys need not be prefixes, nor aligned
  on ``/`` boundaries. Callers gate the result with
  ``path.startswith(key)`` before using it.
- **strict** (mount middleware): only keys the path starts with are
  candidates. When none qualify the result is ``None`` and the tier is
  skipped.

Ties keep the first key in insertion order.
"""

from collections.abc import Mapping
from typing import Any


def remainder(path: str, key: str) -> str:
    """Return *path* with the first occurrence of *key* removed."""
    return path.replace(key, "", 1)


def resolve_prefix(
    path: str,
    mapping: Mapping[str, Any],
    *,
    strict: bool = False,
) -> str | None:
    """Return the key of *mapping* that best covers *path*, or ``None``.

    Usage::

        >>> resolve_prefix("/api/v1/users", {"/api": 1, "/api/v1": 2})
        '/api/v1'
        >>> resolve_prefix("/web", {"/api": 1}, strict=True) is None
        True
    """
    best: str | None = None
    best_length = 0
    for key in mapping:
        if strict and not path.startswith(key):
            continue
        length = len(remainder(path, key))
        if best is None or length < best_length:
            best = key
            best_length = length
    return best


def select_prefixed(path: str, mapping: Mapping[str, Any]) -> str | None:
    """Loose resolution gated on the path actually starting with the key."""
    key = resolve_prefix(path, mapping)
    if key is not None and path.startswith(key):
        return key
    return None
