"""Buffered response writer and the handler-facing Response wrapper.

The dispatcher owns one ``ResponseWriter`` per request. Every
``Response`` wrapper built for that request, including the fresh ones
each middleware receives, writes into the same writer: headers, the body
buffer, and the status line are shared. Nothing reaches the client until
the dispatcher flushes the writer after the chain has finished.

Handlers and middleware use the ``Response`` methods; they are plain
synchronous calls, so ``def`` handlers work as well as ``async def``::

    def show_user(request, response):
        (user_id,) = request.params("id")
        response.status(200).type("text/plain").send(f"user {user_id}")
"""

from __future__ import annotations

import json as json_module
from typing import TYPE_CHECKING, Any

from tern.errors import RenderError
from tern.http.cookies import Cookie
from tern.http.headers import ResponseHeaders

if TYPE_CHECKING:
    from tern.templating.integration import TemplateRegistry

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"
APPLICATION_JSON = "application/json"


class ResponseWriter:
    """Accumulates status, headers and body for one request.

    The first status written wins, as on a real connection; ``error()``
    is the exception and replaces whatever was buffered.
    """

    __slots__ = ("_body", "_status", "headers")

    def __init__(self) -> None:
        self.headers = ResponseHeaders()
        self._body = bytearray()
        self._status: int | None = None

    @property
    def status(self) -> int:
        return self._status if self._status is not None else 200

    @property
    def header_written(self) -> bool:
        return self._status is not None

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def write_header(self, status: int) -> None:
        if self._status is None:
            self._status = status

    def write(self, data: str | bytes) -> int:
        chunk = data.encode("utf-8") if isinstance(data, str) else data
        if self._status is None:
            self._status = 200
        self._body.extend(chunk)
        return len(chunk)

    def error(self, status: int, message: str) -> None:
        """Replace the buffered response with a plain-text error."""
        self._status = status
        self.headers.set("Content-Type", TEXT_PLAIN)
        self.headers.delete("Content-Length")
        self._body = bytearray(message.encode("utf-8"))


class Response:
    """Mutable view over a request's ``ResponseWriter``.

    A wrapper keeps its own pending status, applied on the first write.
    Header helpers return ``self`` so calls can be chained.
    """

    __slots__ = ("_status", "path", "templates", "writer")

    def __init__(
        self,
        writer: ResponseWriter | None = None,
        *,
        path: str = "/",
        templates: TemplateRegistry | None = None,
    ) -> None:
        self.writer = writer if writer is not None else ResponseWriter()
        self.path = path
        self.templates = templates
        self._status: int | None = None

    def derive(self) -> Response:
        """Return a fresh wrapper over the same writer."""
        return Response(self.writer, path=self.path, templates=self.templates)

    # -- Headers --

    @property
    def headers(self) -> ResponseHeaders:
        return self.writer.headers

    def set(self, field: str, value: str) -> Response:
        self.writer.headers.set(field, value)
        return self

    def append(self, field: str, value: str) -> Response:
        self.writer.headers.add(field, value)
        return self

    def type(self, content_type: str) -> Response:
        return self.set("Content-Type", content_type)

    def location(self, url: str) -> Response:
        return self.set("Location", url)

    def cookie(self, cookie: Cookie) -> Response:
        return self.append("Set-Cookie", cookie.to_header_value())

    def clear_cookie(self, cookie: Cookie) -> Response:
        return self.cookie(cookie.expired())

    # -- Status and body --

    def status(self, code: int) -> Response:
        """Set the status used by the next write from this wrapper."""
        self._status = code
        return self

    def write_header(self, status: int) -> None:
        self.writer.write_header(status)

    def write(self, data: str | bytes) -> int:
        if self._status is not None:
            self.writer.write_header(self._status)
        return self.writer.write(data)

    def send(self, data: str | bytes) -> None:
        if "Content-Type" not in self.writer.headers:
            self.type(TEXT_PLAIN)
        self.write(data)

    def json(self, data: Any) -> None:
        """Write *data* as JSON. A ``str`` is sent as already-encoded JSON."""
        payload = data if isinstance(data, (str, bytes)) else json_module.dumps(data)
        self.type(APPLICATION_JSON)
        self.write(payload)

    def redirect(self, url: str, status: int = 302) -> None:
        self.location(url)
        self.writer.write_header(status)

    def render(self, data: Any = None, name: str | None = None) -> None:
        """Render a template into the body as HTML.

        The template set is the one mounted under the request path, or
        the application's own set. *name* picks a template from the set;
        without it the set's first file is used.

        Raises:
            RenderError: No template set applies to this request, or
                *name* is empty.
        """
        template_set = self.templates.select(self.path) if self.templates else None
        if template_set is None:
            msg = "Render error: no template registered"
            raise RenderError(msg)
        html = template_set.render(data, name)
        if "Content-Type" not in self.writer.headers:
            self.type(TEXT_HTML)
        self.write(html)

    def __repr__(self) -> str:
        return f"<Response {self.writer.status} path={self.path!r}>"
