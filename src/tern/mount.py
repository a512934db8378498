"""Composition of mounted applications.

``App.mount(prefix, child)`` only records the child. When the parent
freezes, ``compose()`` walks the mount tree once and folds every child
into a single ``Composition``: one route table with the child routes
re-keyed under their prefixes, and prefix maps for the per-mount
middleware, static folders, static paths and template files.

Mounting the same prefix twice keeps the last child. Children are
composed before they are folded in, so grandchildren arrive with both
prefixes applied.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tern.middleware.protocol import Middleware
from tern.routing.table import RouteTable

if TYPE_CHECKING:
    from tern.app import App


def mount_pattern(prefix: str, pattern: str) -> str:
    """Return *pattern* as seen from the parent when mounted under *prefix*.

    A child root pattern contributes nothing, so ``/`` under ``/api``
    becomes ``/api`` rather than ``/api/``.

    Usage::

        >>> mount_pattern("/api", "/items")
        '/api/items'
        >>> mount_pattern("/api", "/")
        '/api'
        >>> mount_pattern("", "/")
        '/'
    """
    if pattern == "/":
        pattern = ""
    return prefix + pattern or "/"


@dataclass(frozen=True, slots=True)
class Composition:
    """The routing state of an application and everything mounted in it.

    The root fields describe the application itself; the prefix maps
    describe its mounted children. Read-only once built.
    """

    routes: RouteTable = field(default_factory=RouteTable)
    middleware: tuple[Middleware, ...] = ()
    static_folder: str | None = None
    static_path: str = "/"
    templates: tuple[str, ...] = ()
    mount_middleware: Mapping[str, tuple[Middleware, ...]] = field(default_factory=dict)
    static_folders: Mapping[str, str] = field(default_factory=dict)
    static_paths: Mapping[str, str] = field(default_factory=dict)
    template_files: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


def _rekey[V](prefix: str, mapping: Mapping[str, V]) -> dict[str, V]:
    return {prefix + key: value for key, value in mapping.items()}


def mount(parent: Composition, prefix: str, child: Composition) -> Composition:
    """Fold *child* into *parent* under *prefix*; return the result.

    Neither input is modified.
    """
    routes = parent.routes.copy()
    for route in child.routes:
        routes.add(route.with_pattern(mount_pattern(prefix, route.pattern)))

    mount_middleware = dict(parent.mount_middleware)
    static_folders = dict(parent.static_folders)
    static_paths = dict(parent.static_paths)
    template_files = dict(parent.template_files)

    mount_middleware.update(_rekey(prefix, child.mount_middleware))
    static_folders.update(_rekey(prefix, child.static_folders))
    static_paths.update(_rekey(prefix, child.static_paths))
    template_files.update(_rekey(prefix, child.template_files))

    if child.middleware:
        mount_middleware[prefix] = child.middleware
    if child.static_folder:
        static_folders[prefix] = child.static_folder
        static_paths[prefix] = child.static_path
    if child.templates:
        template_files[prefix] = child.templates

    return Composition(
        routes=routes,
        middleware=parent.middleware,
        static_folder=parent.static_folder,
        static_path=parent.static_path,
        templates=parent.templates,
        mount_middleware=mount_middleware,
        static_folders=static_folders,
        static_paths=static_paths,
        template_files=template_files,
    )


def compose(app: App) -> Composition:
    """Build the composition of *app* and, recursively, its mounts."""
    composition = Composition(
        routes=app.routes.copy(),
        middleware=app.middleware,
        static_folder=app.static_folder,
        static_path=app.static_path,
        templates=app.templates,
    )
    for prefix, child in app.mounts.items():
        composition = mount(composition, prefix, compose(child))
    return composition
