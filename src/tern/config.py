"""Application configuration.

AppConfig is a frozen dataclass and never changes after creation.
Registration helpers such as ``App.static()``
swap in an updated copy with ``dataclasses.replace``.
"""

from dataclasses import dataclass

# Folder that serverless platforms unpack function sources into.
SERVERLESS_ROOT = "serverless_function_source_code/"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(static_dir="public", static_path="/assets")
    """

    debug: bool = False

    # Serverless deployment: static folders and template files are read
    # relative to serverless_root instead of the working directory.
    serverless: bool = False
    serverless_root: str = SERVERLESS_ROOT

    # Static files (fallback when no route matches)
    static_dir: str | None = None
    static_path: str = "/"

    # Templates
    templates: tuple[str, ...] = ()
    autoescape: bool = True
