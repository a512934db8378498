"""Immutable HTTP request wrapper.

Frozen metadata with async body access. A request never changes after
construction; anything a middleware wants to pass along (context values,
an error signal) goes into a derived copy that it hands to ``next``.
"""

from __future__ import annotations

import base64
import binascii
import json as json_module
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, TypeVar
from urllib.parse import parse_qs

from tern._internal.asgi import Receive, Scope
from tern.context import Context, ErrorSignal, attach_error, error_signal_of
from tern.dependencies import Dependencies
from tern.http.cookies import parse_cookies
from tern.http.headers import Headers
from tern.routing.pattern import extract_params
from tern.routing.route import Route
from tern.routing.table import RouteTable

T = TypeVar("T")


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Carries the transport data from the ASGI scope plus everything the
    dispatcher resolved for it: the route table, the matched route, the
    dependency snapshot, and the request context.
    """

    method: str
    path: str
    headers: Headers
    query_string: bytes = b""
    http_version: str = "1.1"
    client: tuple[str, int] | None = None
    server: tuple[str, int] | None = None
    context: Context = field(default_factory=Context)
    routes: RouteTable = field(default_factory=RouteTable, repr=False)
    route: Route | None = None
    dependencies: Dependencies = field(default_factory=Dependencies, repr=False)
    serverless: bool = False

    # Private: ASGI receive callable for body streaming
    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)

    # Private: body cache, shared by every copy derived from this request
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Derivation --

    def derive(self) -> Request:
        """Return a fresh wrapper with the same contents."""
        return replace(self)

    def with_route(self, route: Route) -> Request:
        """Return a copy bound to the matched *route*."""
        return replace(self, route=route)

    def with_context(self, key: Any, value: Any) -> Request:
        """Return a copy whose context has *key* set to *value*."""
        return replace(self, context=self.context.with_value(key, value))

    def with_error(self, error: BaseException | str, status: int = 500) -> Request:
        """Return a copy that aborts the middleware chain when passed to ``next``.

        Usage::

            async def require_token(request, response, next):
                if "authorization" not in request.headers:
                    request = request.with_error("missing token", 401)
                await next(request, response)
        """
        signal = ErrorSignal(error=error, status=status)
        return replace(self, context=attach_error(self.context, signal))

    @property
    def error_signal(self) -> ErrorSignal | None:
        return error_signal_of(self.context)

    # -- Route parameters --

    def params(self, *names: str) -> list[str]:
        """Return path parameter values.

        - ``params()``: every parameter value, in pattern order.
        - ``params("name")``: values of the parameter called *name*.
        - ``params("a", "b")``: an empty list (multi-name lookup is not
          supported).
        """
        route = self.route
        if route is None:
            route = self.routes.resolve(self.method, self.path)
        if route is None:
            return []
        return extract_params(route.segments, self.path, *names)

    # -- Dependencies --

    def dependency(self, name: str) -> Any:
        return self.dependencies.get(name)

    def resolve(self, annotation: type[T]) -> T:
        return self.dependencies.resolve(annotation)

    # -- Computed properties --

    @property
    def query(self) -> Mapping[str, list[str]]:
        parsed = parse_qs(self.query_string.decode("latin-1"), keep_blank_values=True)
        return MappingProxyType(parsed)

    @property
    def url(self) -> str:
        """Request path plus query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    @property
    def remote_addr(self) -> str:
        """Client address as ``host:port``, or ``""`` when unknown."""
        if self.client is None:
            return ""
        host, port = self.client
        return f"{host}:{port}"

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def referer(self) -> str:
        return self.headers.get("referer", "")

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def cookies(self) -> dict[str, str]:
        return parse_cookies(self.headers.get("cookie", ""))

    def cookie(self, name: str) -> str | None:
        """Return the named cookie's value, or ``None`` if absent."""
        return self.cookies.get(name)

    def basic_auth(self) -> tuple[str, str] | None:
        """Return ``(username, password)`` from a Basic ``Authorization`` header."""
        header = self.headers.get("authorization", "")
        scheme, _, encoded = header.partition(" ")
        if scheme.lower() != "basic" or not encoded:
            return None
        try:
            decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
        username, sep, password = decoded.partition(":")
        if not sep:
            return None
        return username, password

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached. The ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncIterator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        raw = await self.body()
        return raw.decode("utf-8")

    async def json(self) -> Any:
        raw = await self.body()
        return json_module.loads(raw)

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        *,
        context: Context | None = None,
        routes: RouteTable | None = None,
        route: Route | None = None,
        dependencies: Dependencies | None = None,
        serverless: bool = False,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        server = scope.get("server")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query_string=scope.get("query_string", b""),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            server=tuple(server) if server else None,
            context=context if context is not None else Context(),
            routes=routes if routes is not None else RouteTable(),
            route=route,
            dependencies=dependencies if dependencies is not None else Dependencies(),
            serverless=serverless,
            _receive=receive,
        )
