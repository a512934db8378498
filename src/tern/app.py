"""Tern application class.

Mutable during setup (routes, middleware, mounts, static files,
templates, dependencies). Frozen when ``__call__()`` is first invoked or
when the ASGI lifespan starts.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Self

from tern._internal.asgi import Receive, Scope, Send
from tern._internal.invoke import invoke
from tern.config import AppConfig
from tern.context import Context
from tern.dependencies import Container
from tern.middleware.protocol import Handler, Middleware
from tern.mount import compose
from tern.routing.route import Route
from tern.routing.table import RouteTable
from tern.server.handler import Dispatcher
from tern.templating.integration import TemplateRegistry, TemplateSet

logger = logging.getLogger("tern.app")

ACCESS_LOGGER = "tern.access"


class App:
    """The tern application.

    Usage::

        app = App()

        @app.get("/user/:id([0-9]+)")
        def show_user(request, response):
            (user_id,) = request.params("id")
            response.send(f"user {user_id}")

        app.use(timing).static("public")

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread composes the app, even when several ASGI workers call
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_access_logger",
        "_container",
        "_context",
        # Compiled state (populated by _freeze)
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_middleware_list",
        "_mounts",
        "_routes",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._routes = RouteTable()
        self._middleware_list: list[Middleware] = []
        self._mounts: dict[str, App] = {}
        self._container = Container()
        self._context: Context | None = None
        self._access_logger: logging.Logger | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._dispatcher: Dispatcher | None = None

    # -- Route registration --

    def route(
        self,
        method: str,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
    ) -> Any:
        """Register *handler* for *method* requests matching *pattern*.

        Without *handler* this returns a decorator::

            @app.route("GET", "/items/:id")
            def item(request, response): ...

        Registering the same method and pattern again replaces the
        earlier route.

        Raises:
            ConfigurationError: Unknown method, or an invalid regex
                constraint in *pattern*.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._routes.add(Route(pattern, method.upper(), func, tuple(middleware)))
            return func

        if handler is None:
            return decorator
        decorator(handler)
        return self

    def get(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("GET", pattern, handler, *middleware)

    def post(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("POST", pattern, handler, *middleware)

    def put(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("PUT", pattern, handler, *middleware)

    def patch(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("PATCH", pattern, handler, *middleware)

    def delete(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("DELETE", pattern, handler, *middleware)

    def head(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("HEAD", pattern, handler, *middleware)

    def connect(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("CONNECT", pattern, handler, *middleware)

    def trace(self, pattern: str, handler: Handler | None = None, *middleware: Middleware) -> Any:
        return self.route("TRACE", pattern, handler, *middleware)

    # -- Middleware --

    def use(self, middleware: Middleware | None) -> Self:
        """Add global middleware. The last one added runs first.

        ``None`` is ignored, so optional middleware can be passed through.
        """
        self._check_not_frozen()
        if middleware is not None:
            self._middleware_list.append(middleware)
        return self

    # -- Composition --

    def mount(self, prefix: str, child: "App") -> Self:
        """Serve *child* under *prefix*.

        The child's routes, global middleware, static folder and
        templates apply to paths under *prefix* once this app freezes.
        Mounting the same prefix again replaces the earlier child.
        """
        self._check_not_frozen()
        self._mounts[prefix] = child
        return self

    def register(self, factory: Callable[["App"], "App"], prefix: str = "") -> Self:
        """Build a child app with *factory* and mount it under *prefix*.

        Usage::

            def users(app: App) -> App:
                return app.get("/", list_users).get("/:id", show_user)

            App().register(users, "/users")
        """
        return self.mount(prefix, factory(App()))

    # -- Static files and templates --

    def static(self, folder: str, path: str = "/") -> Self:
        """Serve files from *folder* under URL *path* when no route matches."""
        self._check_not_frozen()
        self.config = replace(self.config, static_dir=folder, static_path=path or "/")
        return self

    def template(self, filename: str) -> Self:
        """Add a template file. The first one added is the default."""
        self._check_not_frozen()
        self.config = replace(self.config, templates=(*self.config.templates, filename))
        return self

    def serverless(self, enabled: bool = True) -> Self:
        """Read static folders and templates under the serverless source root."""
        self._check_not_frozen()
        self.config = replace(self.config, serverless=enabled)
        return self

    # -- Logging and context --

    def log(self, logger: logging.Logger | None = None) -> Self:
        """Log every request (method, path, remote address, user agent)."""
        self._check_not_frozen()
        self._access_logger = logger if logger is not None else logging.getLogger(ACCESS_LOGGER)
        return self

    def use_context(self, context: Mapping[Any, Any]) -> Self:
        """Start every request's context from *context*."""
        self._check_not_frozen()
        self._context = context if isinstance(context, Context) else Context(context)
        return self

    # -- Dependencies --

    def add(self, name: str, value: Any) -> Self:
        """Register a dependency by name, readable via ``request.dependency(name)``."""
        self._check_not_frozen()
        self._container.add(name, value)
        return self

    def dependency(self, name: str) -> Any:
        return self._container.get(name)

    def provide(self, annotation: type, factory: Callable[[], Any]) -> Self:
        """Register a factory for *annotation*, called once when the app freezes.

        Handlers read the instance with ``request.resolve(annotation)``.
        """
        self._check_not_frozen()
        self._container.provide(annotation, factory)
        return self

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return tuple(self._middleware_list)

    @property
    def mounts(self) -> Mapping[str, "App"]:
        return MappingProxyType(self._mounts)

    @property
    def templates(self) -> tuple[str, ...]:
        return self.config.templates

    @property
    def static_folder(self) -> str | None:
        return self.config.static_dir

    @property
    def static_path(self) -> str:
        return self.config.static_path

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the dispatcher.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._dispatcher is not None

        await self._dispatcher.serve(scope, receive, send)

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        await invoke(hook)
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compose the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        config = self.config

        # 1. Fold mounted children into one route table and prefix maps
        composition = compose(self)

        # 2. Parse every template file so a broken one fails startup
        root = config.serverless_root if config.serverless else ""
        templates = TemplateRegistry(
            root=(
                TemplateSet([root + f for f in config.templates], autoescape=config.autoescape)
                if config.templates
                else None
            ),
            mounted={
                prefix: TemplateSet([root + f for f in files], autoescape=config.autoescape)
                for prefix, files in composition.template_files.items()
            },
        )

        # 3. Call provider factories once
        dependencies = self._container.freeze()

        self._dispatcher = Dispatcher(
            composition,
            dependencies=dependencies,
            templates=templates,
            context=self._context,
            access_logger=self._access_logger,
            serverless=config.serverless,
            serverless_root=config.serverless_root,
        )
        self._frozen = True

        logger.debug(
            "App frozen: %d routes, %d mounts, %d global middleware",
            len(composition.routes),
            len(self._mounts),
            len(composition.middleware),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and mounts before the first request."
            )
            raise RuntimeError(msg)
