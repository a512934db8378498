"""Tern: request routing and middleware dispatch for ASGI.

Routes with ``:name`` and ``:name(regex)`` parameters, three tiers of
middleware (global, mounted, per route), mountable sub-applications,
static file fallback, and kida templates.

Basic usage::

    from tern import App

    app = App()

    @app.get("/user/:name")
    def user(request, response):
        response.send(f"Hello, {request.params('name')[0]}!")

Serve it with any ASGI server::

    uvicorn module:app
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "ContextKey",
    "Cookie",
    "Middleware",
    "Next",
    "RenderError",
    "Request",
    "Response",
    "TernError",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import tern`` fast while providing a clean top-level API.
    """
    if name == "App":
        from tern.app import App

        return App

    if name == "AppConfig":
        from tern.config import AppConfig

        return AppConfig

    if name == "Request":
        from tern.http.request import Request

        return Request

    if name == "Response":
        from tern.http.response import Response

        return Response

    if name == "Cookie":
        from tern.http.cookies import Cookie

        return Cookie

    if name in ("Middleware", "Next"):
        from tern.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("Context", "ContextKey", "get_request"):
        from tern import context as _ctx

        return getattr(_ctx, name)

    if name in ("TernError", "ConfigurationError", "RenderError"):
        from tern import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
