"""Path pattern parsing and matching.

Patterns are ``/``-separated segments. A segment starting with ``:`` is a
named parameter; an optional ``(EXPR)`` after the name constrains the
incoming segment with a regular expression::

    "/users"                -> [literal "users"]
    "/users/:id"            -> [literal "users", param "id"]
    "/users/:id([0-9]+)"    -> [literal "users", param "id" constrained by [0-9]+]
    "/users/:id()"          -> empty constraint, same as ":id"

Constraints use ``re.search`` semantics: the expression may match any
part of the segment. Anchor it (``^[0-9]+$``) for a full match.
"""

import re
from dataclasses import dataclass

from tern.errors import ConfigurationError

PARAM_MARKER = ":"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:      ``users``            (is_param=False)
    Param:        ``:id``              (is_param=True, name="id")
    Constrained:  ``:id([0-9]+)``      (is_param=True, name="id", regex=...)
    """

    value: str
    is_param: bool = False
    name: str | None = None
    regex: re.Pattern[str] | None = None

    def accepts(self, incoming: str) -> bool:
        """Whether *incoming* satisfies this segment's rule."""
        if incoming == self.value:
            return True
        if not self.is_param or not incoming:
            return False
        if self.regex is None:
            return True
        return self.regex.search(incoming) is not None


@dataclass(frozen=True, slots=True)
class PathMatch:
    """Outcome of matching one pattern against one path."""

    matched: bool
    params: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.matched


def split_path(path: str) -> list[str]:
    """Split a path on ``/``, dropping the empty segment before a leading slash.

    The root path ``/`` has zero segments. A trailing slash is significant:
    ``/users/`` splits to ``["users", ""]``.
    """
    parts = path.split("/")
    if parts and parts[0] == "":
        parts = parts[1:]
    if parts == [""]:
        return []
    return parts


def constraint_of(segment: str) -> str | None:
    """Return the text between the first ``(`` and the first ``)`` after it."""
    start = segment.find("(")
    if start < 0:
        return None
    end = segment.find(")", start + 1)
    if end < 0:
        return None
    return segment[start + 1 : end]


def parse_segment(segment: str) -> PathSegment:
    """Parse a single pattern segment."""
    if not segment.startswith(PARAM_MARKER):
        return PathSegment(value=segment)

    expr = constraint_of(segment)
    if expr is None:
        return PathSegment(value=segment, is_param=True, name=segment[1:])

    name = segment[1 : segment.index("(")]
    if not expr:
        return PathSegment(value=segment, is_param=True, name=name)
    try:
        regex = re.compile(expr)
    except re.error as exc:
        msg = f"Invalid constraint {expr!r} in route segment {segment!r}: {exc}"
        raise ConfigurationError(msg) from exc
    return PathSegment(value=segment, is_param=True, name=name, regex=regex)


def parse_pattern(pattern: str) -> tuple[PathSegment, ...]:
    """Parse a route pattern into segments.

    Raises ``ConfigurationError`` if a constraint is not a valid regex.
    """
    return tuple(parse_segment(part) for part in split_path(pattern))


def match_segments(segments: tuple[PathSegment, ...], path: str) -> PathMatch:
    """Match pre-parsed *segments* against an incoming *path*."""
    incoming = split_path(path)
    if len(incoming) != len(segments):
        return PathMatch(matched=False)

    # Every segment is checked before the results are combined.
    results = [seg.accepts(part) for seg, part in zip(segments, incoming, strict=True)]
    if not all(results):
        return PathMatch(matched=False)

    params = tuple(part for seg, part in zip(segments, incoming, strict=True) if seg.is_param)
    return PathMatch(matched=True, params=params)


def match_path(pattern: str, path: str) -> PathMatch:
    """Decide whether *path* matches *pattern*.

    Usage::

        >>> match_path("/user/:id([0-9]+)", "/user/9")
        PathMatch(matched=True, params=('9',))
        >>> bool(match_path("/user/:id([0-9]+)", "/user/agus"))
        False
    """
    return match_segments(parse_pattern(pattern), path)


def extract_params(
    segments: tuple[PathSegment, ...] | str,
    path: str,
    *names: str,
) -> list[str]:
    """Return parameter values from *path* for a matching pattern.

    - No names: every parameter value in pattern order.
    - One name: only the values at positions whose parameter is *name*.
    - Several names: an empty list. Grouping by name is not supported.

    Returns an empty list when *path* does not match.
    """
    if len(names) > 1:
        return []
    if isinstance(segments, str):
        segments = parse_pattern(segments)

    result = match_segments(segments, path)
    if not result:
        return []

    if not names:
        return list(result.params)

    incoming = split_path(path)
    wanted = names[0]
    return [
        part
        for seg, part in zip(segments, incoming, strict=True)
        if seg.is_param and seg.name == wanted
    ]
