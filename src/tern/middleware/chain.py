"""Three-tier middleware chain.

A request passes through up to three tiers of middleware before its
handler runs:

- ``GlobalTier``: middleware registered with ``App.use()``.
- ``MountTier``: the global middleware of the mounted child whose
  prefix the request path starts with (most specific prefix wins).
- ``RouteTier``: middleware attached to the matched route.

Each tier contributes its list in reverse registration order, so the
last ``use()`` call adds the outermost layer of its tier. The combined
sequence becomes a row of immutable ``Link`` objects; every link holds
its position and the invoke function of the link after it. The last
link's successor is the handler.

A middleware stops the chain by not calling ``next``, or by calling it
with a request that carries an error (``request.with_error()``). In the
second case the error status and text become the response.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from tern._internal.invoke import invoke
from tern.http.request import Request
from tern.http.response import Response
from tern.middleware.protocol import Handler, Middleware
from tern.routing.prefix import resolve_prefix

logger = logging.getLogger("tern.server")

type Invoke = Callable[[Request, Response], Awaitable[None]]


# -- Tier sources --


class Tier(Protocol):
    """A source of middleware for one request."""

    def select(self, request: Request) -> Sequence[Middleware]: ...


@dataclass(frozen=True, slots=True)
class GlobalTier:
    middlewares: tuple[Middleware, ...] = ()

    def select(self, request: Request) -> Sequence[Middleware]:
        return self.middlewares


@dataclass(frozen=True, slots=True)
class MountTier:
    """Middleware of mounted children, keyed by mount prefix."""

    by_prefix: Mapping[str, tuple[Middleware, ...]]

    def select(self, request: Request) -> Sequence[Middleware]:
        if not self.by_prefix:
            return ()
        prefix = resolve_prefix(request.path, self.by_prefix, strict=True)
        if prefix is None:
            return ()
        return self.by_prefix[prefix]


@dataclass(frozen=True, slots=True)
class RouteTier:
    def select(self, request: Request) -> Sequence[Middleware]:
        if request.route is None:
            return ()
        return request.route.middlewares


# -- Links --


class _Step:
    """The awaitable returned by ``next(request, response)``.

    Runs the rest of the chain at most once. When the request carries an
    error signal the rest of the chain is skipped and the error becomes
    the response.
    """

    __slots__ = ("_proceed", "done", "request", "response")

    def __init__(self, proceed: Invoke, request: Request, response: Response) -> None:
        self._proceed = proceed
        self.request = request
        self.response = response
        self.done = False

    def __await__(self):
        return self._run().__await__()

    async def _run(self) -> None:
        if self.done:
            return
        self.done = True
        signal = self.request.error_signal
        if signal is not None:
            logger.debug(
                "Middleware aborted %s %s with %d",
                self.request.method,
                self.request.path,
                signal.status,
            )
            self.response.writer.error(signal.status, signal.message)
            return
        await self._proceed(self.request, self.response)


@dataclass(frozen=True, slots=True)
class Link:
    """One middleware in the flattened chain."""

    index: int
    middleware: Middleware
    proceed: Invoke

    async def __call__(self, request: Request, response: Response) -> None:
        steps: list[_Step] = []

        def next(req: Request, res: Response) -> _Step:
            step = _Step(self.proceed, req, res)
            steps.append(step)
            return step

        await invoke(self.middleware, request.derive(), response.derive(), next)

        # Sync middleware may call next() without awaiting it.
        for step in steps:
            if not step.done:
                await step


def build_links(middlewares: Sequence[Middleware], terminal: Invoke) -> tuple[Link, ...]:
    """Link *middlewares* front to back, ending in *terminal*."""
    links: list[Link] = []
    proceed = terminal
    for index in range(len(middlewares) - 1, -1, -1):
        link = Link(index=index, middleware=middlewares[index], proceed=proceed)
        links.append(link)
        proceed = link
    links.reverse()
    return tuple(links)


class MiddlewareChain:
    """Runs the tiers around a handler.

    Usage::

        chain = MiddlewareChain(GlobalTier((auth,)), MountTier({}), RouteTier())
        await chain.run(handler, request, response)
    """

    __slots__ = ("tiers",)

    def __init__(self, *tiers: Tier) -> None:
        self.tiers = tiers

    def flatten(self, request: Request) -> list[Middleware]:
        """The middleware for *request*, in invocation order."""
        sequence: list[Middleware] = []
        for tier in self.tiers:
            sequence.extend(reversed(tier.select(request)))
        return sequence

    async def run(self, handler: Handler, request: Request, response: Response) -> None:
        middlewares = self.flatten(request)
        if not middlewares:
            await invoke(handler, request, response)
            return

        async def terminal(req: Request, res: Response) -> None:
            await invoke(handler, req, res)

        links = build_links(middlewares, terminal)
        await links[0](request, response)
