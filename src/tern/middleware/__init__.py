"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, response: Response, next: Next) -> None

Tiers:
    GlobalTier -- middleware registered with App.use()
    MountTier -- global middleware of mounted children, by prefix
    RouteTier -- middleware attached to the matched route
"""

from tern.middleware.chain import GlobalTier, Link, MiddlewareChain, MountTier, RouteTier
from tern.middleware.protocol import Handler, Middleware, Next

__all__ = [
    "GlobalTier",
    "Handler",
    "Link",
    "Middleware",
    "MiddlewareChain",
    "MountTier",
    "Next",
    "RouteTier",
]
