"""Tern exception hierarchy.

Route lookups and prefix resolution never raise: a miss is a ``None``
result that the dispatcher turns into a static-file fallback. Exceptions
are reserved for configuration faults and misuse of the response API.
"""


class TernError(Exception):
    """Base for all tern-specific errors."""


class ConfigurationError(TernError):
    """Raised when app configuration is invalid.

    Surfaces at registration time (bad route patterns, unknown methods)
    or during ``App._freeze()`` (unparseable templates).
    """


class RenderError(TernError):
    """Raised by ``Response.render()`` when no template can be rendered."""
