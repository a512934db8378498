"""Cookie parsing and ``Set-Cookie`` serialization.

The read side (``parse_cookies``) backs ``Request.cookie()``; the write
side (``Cookie``) is what handlers hand to ``Response.cookie()``.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from email.utils import format_datetime


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Returns an empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.strip().partition("=")
        if sep and name.strip():
            cookies[name.strip()] = value.strip()
    return cookies


@dataclass(frozen=True, slots=True)
class Cookie:
    """A cookie to set on the response.

    Built with keyword arguments or the chainable ``with_*`` helpers::

        Cookie("session", token).with_path("/").with_max_age(3600)

    ``max_age`` follows the usual convention: ``None`` omits the
    attribute, a negative value deletes the cookie (``Max-Age=0``).
    """

    name: str
    value: str = ""
    path: str | None = None
    domain: str | None = None
    expires: datetime | None = None
    max_age: int | None = None
    secure: bool = False
    http_only: bool = False
    same_site: str | None = None

    def with_value(self, value: str) -> "Cookie":
        return replace(self, value=value)

    def with_path(self, path: str) -> "Cookie":
        return replace(self, path=path)

    def with_max_age(self, max_age: int) -> "Cookie":
        return replace(self, max_age=max_age)

    def with_expires(self, expires: datetime) -> "Cookie":
        return replace(self, expires=expires)

    def expired(self) -> "Cookie":
        """Return a copy that tells the client to delete this cookie."""
        return replace(self, value="", max_age=-1)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.expires is not None:
            parts.append(f"Expires={format_datetime(self.expires, usegmt=True)}")
        if self.max_age is not None:
            parts.append(f"Max-Age={max(self.max_age, 0)}")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        if self.same_site:
            parts.append(f"SameSite={self.same_site}")
        return "; ".join(parts)
