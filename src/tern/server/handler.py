"""ASGI handler: translates ASGI scope/messages to tern types.

The only component that touches raw ASGI directly. Converts the scope
to a typed Request, resolves the route, runs the middleware chain (or
the static fallback when nothing matched), and flushes the buffered
response through ASGI send().
"""

import logging
from contextvars import Token

from tern._internal.asgi import Receive, Scope, Send
from tern.context import Context, request_var
from tern.dependencies import Dependencies
from tern.http.request import Request
from tern.http.response import Response, ResponseWriter
from tern.middleware.chain import GlobalTier, MiddlewareChain, MountTier, RouteTier
from tern.mount import Composition
from tern.server.sender import send_response
from tern.server.static import StaticFallback
from tern.templating.integration import TemplateRegistry

logger = logging.getLogger("tern.server")


class Dispatcher:
    """Serves requests against a frozen composition.

    Built once by ``App._freeze()``. Holds no per-request state, so one
    dispatcher serves every concurrent request.
    """

    __slots__ = (
        "access_logger",
        "chain",
        "composition",
        "context",
        "dependencies",
        "serverless",
        "static",
        "templates",
    )

    def __init__(
        self,
        composition: Composition,
        *,
        dependencies: Dependencies | None = None,
        templates: TemplateRegistry | None = None,
        context: Context | None = None,
        access_logger: logging.Logger | None = None,
        serverless: bool = False,
        serverless_root: str = "",
    ) -> None:
        self.composition = composition
        self.dependencies = dependencies if dependencies is not None else Dependencies()
        self.templates = templates if templates is not None else TemplateRegistry()
        self.context = context
        self.access_logger = access_logger
        self.serverless = serverless
        self.chain = MiddlewareChain(
            GlobalTier(composition.middleware),
            MountTier(composition.mount_middleware),
            RouteTier(),
        )
        self.static = StaticFallback(
            composition.static_folder,
            composition.static_path,
            folders=composition.static_folders,
            paths=composition.static_paths,
            serverless_root=serverless_root if serverless else None,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.serve(scope, receive, send)

    async def serve(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Process a single HTTP request through the full pipeline."""
        if scope["type"] != "http":
            return

        request = Request.from_asgi(
            scope,
            receive,
            context=self.context,
            routes=self.composition.routes,
            dependencies=self.dependencies,
            serverless=self.serverless,
        )

        if self.access_logger is not None:
            self.access_logger.info(
                "%s %s %s %s",
                request.method,
                request.path,
                request.remote_addr,
                request.user_agent,
            )

        response = Response(ResponseWriter(), path=request.path, templates=self.templates)
        match = self.composition.routes.match(request.method, request.path)

        # Set request context var (reset after dispatch)
        token: Token[Request] = request_var.set(request)
        try:
            if match is None:
                logger.debug("No route for %s %s, trying static files", request.method, request.path)
                await self.static(request, response)
            else:
                request = request.with_route(match.route)
                request_var.set(request)
                await self.chain.run(match.route.handler, request, response)
        except Exception:
            logger.exception("Unhandled error serving %s %s", request.method, request.path)
            raise
        finally:
            request_var.reset(token)

        await send_response(response.writer, send, method=request.method)
