"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation and autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path

DEFAULT_EXTENSIONS: tuple[str, ...] = (".py", ".html")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(root_dir="app", debug=True, port=3000)
    """

    # Route tree
    root_dir: str | Path = "app"
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Reload (development mode, requires debug=True)
    reload: bool = True
    reload_interval: float = 0.5  # Seconds between filesystem fingerprint polls

    # Build
    max_route_depth: int = 5  # URL segments before a deep-nesting warning

    # Templates (.html route files)
    autoescape: bool = True

    # Errors
    expose_error_detail: bool = False  # Put exception text in generic 500 pages
