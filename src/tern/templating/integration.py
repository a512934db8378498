"""Kida template sets and their per-mount selection.

A ``TemplateSet`` is built from the files passed to ``App.template()``.
Each set owns one kida Environment whose loaders cover the directories
of its files, so templates address each other by file name. The first
file is the set's default template.

Sets are created once during ``App._freeze()``; every file is parsed
then, so a broken template stops startup instead of failing a request.
"""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader

from tern.errors import ConfigurationError, RenderError
from tern.routing.prefix import select_prefixed


def create_environment(directories: Sequence[str], *, autoescape: bool = True) -> Environment:
    """Create a kida Environment that loads from *directories* in order."""
    loader = ChoiceLoader([FileSystemLoader(directory) for directory in directories])
    return Environment(loader=loader, autoescape=autoescape)


class TemplateSet:
    """A group of template files rendered through one environment.

    Usage::

        templates = TemplateSet(["views/index.html", "views/user.html"])
        templates.render({"name": "agus"})                  # index.html
        templates.render({"name": "agus"}, name="user.html")
    """

    __slots__ = ("_env", "default", "files", "names")

    def __init__(self, files: Sequence[str], *, autoescape: bool = True) -> None:
        if not files:
            msg = "A template set needs at least one file."
            raise ConfigurationError(msg)

        paths = [Path(f) for f in files]
        directories = list(dict.fromkeys(str(p.parent) for p in paths))

        self.files: tuple[str, ...] = tuple(files)
        self.names: tuple[str, ...] = tuple(p.name for p in paths)
        self.default: str = self.names[0]
        self._env = create_environment(directories, autoescape=autoescape)

        for path, name in zip(paths, self.names, strict=True):
            if not path.is_file():
                msg = f"Template file not found: {path}"
                raise ConfigurationError(msg)
            try:
                self._env.get_template(name)
            except Exception as exc:
                msg = f"Failed to parse template {path}: {exc}"
                raise ConfigurationError(msg) from exc

    def render(self, data: Any = None, name: str | None = None) -> str:
        """Render the default template, or the one called *name*.

        *data* becomes the template context when it is a mapping; any
        other value is exposed to the template as ``data``.
        """
        if name is not None and not name:
            msg = "Render error: empty template name"
            raise RenderError(msg)
        template = self._env.get_template(name or self.default)
        return template.render(_as_context(data))


def _as_context(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if isinstance(data, Mapping):
        return dict(data)
    return {"data": data}


class TemplateRegistry:
    """The root template set plus the sets of mounted applications.

    ``select()`` prefers the mounted set whose prefix covers the request
    path, and falls back to the root set.
    """

    __slots__ = ("mounted", "root")

    def __init__(
        self,
        root: TemplateSet | None = None,
        mounted: Mapping[str, TemplateSet] | None = None,
    ) -> None:
        self.root = root
        self.mounted: dict[str, TemplateSet] = dict(mounted or {})

    def select(self, path: str) -> TemplateSet | None:
        if self.mounted:
            key = select_prefixed(path, self.mounted)
            if key is not None:
                return self.mounted[key]
        return self.root

    def __bool__(self) -> bool:
        return self.root is not None or bool(self.mounted)
