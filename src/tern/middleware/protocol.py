"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, response: Response, next: Next) -> None: ...

No base class required. The framework checks the shape, not the lineage.
Plain ``def`` middleware is accepted too: ``next`` returns an awaitable
step, and a step that a sync middleware never awaited is run by the
chain as soon as the middleware returns.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from tern.http.request import Request
from tern.http.response import Response

# The continuation handed to every middleware
type Next = Callable[[Request, Response], Awaitable[None]]

# A route endpoint. Writes into the response; its return value is ignored.
type Handler = Callable[[Request, Response], Any]


class Middleware(Protocol):
    """Protocol for tern middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, response: Response, next: Next) -> None:
            start = time.monotonic()
            await next(request, response)
            response.set("X-Time", f"{time.monotonic() - start:.3f}")

        # Class middleware
        class RequireToken:
            def __call__(self, request: Request, response: Response, next: Next) -> None:
                if request.headers.get("authorization") is None:
                    request = request.with_error("unauthorized", 401)
                next(request, response)
    """

    def __call__(self, request: Request, response: Response, next: Next) -> Any: ...
