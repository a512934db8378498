"""Static file fallback for requests that match no route.

The folder and URL path come from the application's own ``static()``
call, overridden per request by a mounted child whose prefix covers the
path. Files are read in a worker thread via ``anyio.to_thread`` so a
large file never stalls the event loop.

Security: resolves symlinks and verifies the final path is within the
configured folder to prevent path traversal.
"""

import logging
import mimetypes
from collections.abc import Mapping
from pathlib import Path

import anyio

from tern.http.request import Request
from tern.http.response import Response
from tern.routing.prefix import select_prefixed

logger = logging.getLogger("tern.server")

NOT_FOUND_BODY = "404 page not found"
INDEX_FILE = "index.html"


def not_found(response: Response) -> None:
    response.writer.error(404, NOT_FOUND_BODY)


class StaticFallback:
    """Serves files for unmatched GET and HEAD requests.

    Usage::

        fallback = StaticFallback("public", "/assets")
        await fallback(request, response)   # /assets/app.css -> public/app.css
    """

    __slots__ = ("folder", "folders", "path", "paths", "serverless_root")

    def __init__(
        self,
        folder: str | None = None,
        path: str = "/",
        *,
        folders: Mapping[str, str] | None = None,
        paths: Mapping[str, str] | None = None,
        serverless_root: str | None = None,
    ) -> None:
        self.folder = folder
        self.path = path
        self.folders: dict[str, str] = dict(folders or {})
        self.paths: dict[str, str] = dict(paths or {})
        self.serverless_root = serverless_root

    # -- Selection --

    def select_folder(self, path: str) -> str | None:
        """Folder of the mount covering *path*, else the root folder."""
        folder = self.folder
        if self.folders:
            key = select_prefixed(path, self.folders)
            if key is not None:
                folder = self.folders[key]
        if folder and self.serverless_root is not None:
            folder = self.serverless_root + folder
        return folder

    def select_path(self, path: str) -> str:
        """Longest mounted static URL path *path* starts with, else the root path."""
        best: str | None = None
        for prefix, static_path in self.paths.items():
            candidate = prefix + ("" if static_path == "/" else static_path)
            if candidate == "/":
                continue
            if path.startswith(candidate) and (best is None or len(candidate) > len(best)):
                best = candidate
        if best is not None:
            return best or "/"
        return self.path or "/"

    # -- Serving --

    async def __call__(self, request: Request, response: Response) -> None:
        if request.method not in ("GET", "HEAD"):
            not_found(response)
            return

        folder = self.select_folder(request.path)
        static_path = self.select_path(request.path)
        if not folder or request.path == static_path or not request.path.startswith(static_path):
            not_found(response)
            return

        relative = request.path[len(static_path) :].lstrip("/")
        directory = Path(folder).resolve()
        file_path = (directory / relative).resolve() if relative else directory
        if not file_path.is_relative_to(directory):
            logger.debug("Static path escapes %s: %s", directory, request.path)
            not_found(response)
            return

        if file_path.is_dir():
            index_path = file_path / INDEX_FILE
            if not index_path.is_file():
                not_found(response)
                return
            if not request.path.endswith("/"):
                response.location(request.path + "/").write_header(301)
                return
            file_path = index_path

        if not file_path.is_file():
            not_found(response)
            return

        await self._serve_file(file_path, response)

    async def _serve_file(self, file_path: Path, response: Response) -> None:
        content_type, _ = mimetypes.guess_type(str(file_path))
        if content_type is None:
            content_type = "application/octet-stream"

        body = await anyio.to_thread.run_sync(file_path.read_bytes)

        response.type(content_type).status(200).write(body)
