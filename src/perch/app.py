"""Perch application class.

Mutable during setup (middleware registration).  The route manifest is
built on first use; afterwards it is only ever replaced as a whole by
``reload()``.
"""

import logging
import threading
from typing import Any

import anyio

from perch._internal.asgi import Receive, Scope, Send
from perch.config import AppConfig
from perch.http.request import Request
from perch.middleware.protocol import Middleware
from perch.modules.cache import ModuleCache
from perch.modules.loader import create_environment
from perch.routes.manifest import build_manifest
from perch.routes.types import RouteManifest
from perch.server.dispatch import DispatchOutcome, Dispatcher
from perch.server.handler import handle_request
from perch.server.watch import ManifestWatcher

logger = logging.getLogger("perch.server")


class App:
    """The perch application.

    Usage::

        app = App(AppConfig(root_dir="app", debug=True))
        app.run()

    Thread safety:
        The first build uses a Lock + double-check so exactly one thread
        scans the route tree.  ``reload()`` builds a complete manifest
        before swapping a single reference in the dispatcher.
    """

    __slots__ = (
        "_build_lock",
        "_dispatcher",
        "_middleware_list",
        "_modules",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        modules: ModuleCache | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._middleware_list: list[Middleware] = []
        self._build_lock: threading.Lock = threading.Lock()
        self._modules: ModuleCache = modules or ModuleCache(
            create_environment(autoescape=self.config.autoescape)
        )
        self._dispatcher: Dispatcher | None = None

    # -- Setup --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add an app-wide middleware, run around every request."""
        if self._dispatcher is not None:
            msg = (
                "Cannot add middleware after the app has started serving requests. "
                "Register middleware before calling app.run()."
            )
            raise RuntimeError(msg)
        self._middleware_list.append(middleware)

    # -- Manifest --

    def build(self) -> RouteManifest:
        """Scan the route root and build a fresh manifest (no swap)."""
        return build_manifest(
            self.config.root_dir,
            extensions=self.config.extensions,
            max_depth=self.config.max_route_depth,
        )

    def reload(self) -> RouteManifest:
        """Rebuild the manifest and swap it in atomically."""
        manifest = self.build()
        dispatcher = self._ensure_built()
        dispatcher.swap(manifest)
        logger.info("Reloaded route manifest: %d routes", len(manifest.routes))
        return manifest

    @property
    def manifest(self) -> RouteManifest:
        """The manifest currently used for dispatch (read-only)."""
        return self._ensure_built().manifest

    @property
    def modules(self) -> ModuleCache:
        return self._modules

    def check_modules(self) -> list[tuple[str, str]]:
        """Load every file referenced by the manifest.

        Returns ``(path, message)`` for each file that fails to import or
        declares an invalid ``config``.
        """
        manifest = self.manifest
        paths: set[str] = set()
        for entry in manifest.routes:
            paths.add(entry.absolute_path)
        for mapping in (
            manifest.layouts,
            manifest.middleware,
            manifest.error_boundaries,
            manifest.not_found_boundaries,
            manifest.loading_boundaries,
        ):
            paths.update(mapping.values())

        problems: list[tuple[str, str]] = []
        for path in sorted(paths):
            try:
                self._modules.get(path)
            except Exception as exc:
                problems.append((path, str(exc)))
        return problems

    # -- Serving --

    async def dispatch(self, request: Request) -> DispatchOutcome:
        """Dispatch a request without going through ASGI."""
        return await self._ensure_built().dispatch(request)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the pounce server.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        from perch.server.dev import run_server

        self._ensure_built()
        run_server(self, host or self.config.host, port or self.config.port)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        await handle_request(scope, receive, send, dispatcher=self._ensure_built())

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Builds the manifest at startup.  In debug mode with reload
        enabled, a ``ManifestWatcher`` runs until shutdown.
        """
        async with anyio.create_task_group() as tg:
            while True:
                message = await receive()
                msg_type = message["type"]

                if msg_type == "lifespan.startup":
                    try:
                        manifest = self._ensure_built().manifest
                    except Exception as exc:
                        await send({"type": "lifespan.startup.failed", "message": str(exc)})
                        return
                    for issue in manifest.errors:
                        logger.warning("[%s] %s", issue.kind, issue.message)
                    if self.config.debug and self.config.reload:
                        watcher = ManifestWatcher(
                            self.config.root_dir,
                            self.reload,
                            interval=self.config.reload_interval,
                        )
                        tg.start_soon(watcher.run)
                    await send({"type": "lifespan.startup.complete"})

                elif msg_type == "lifespan.shutdown":
                    tg.cancel_scope.cancel()
                    await send({"type": "lifespan.shutdown.complete"})
                    return

    # -- Internal --

    def _ensure_built(self) -> Dispatcher:
        """Thread-safe first build with double-check locking."""
        dispatcher = self._dispatcher
        if dispatcher is not None:
            return dispatcher
        with self._build_lock:
            if self._dispatcher is None:
                self._dispatcher = Dispatcher(
                    self.build(),
                    modules=self._modules,
                    middleware=tuple(self._middleware_list),
                    debug=self.config.debug or self.config.expose_error_detail,
                )
            return self._dispatcher


def create_app(root_dir: str, **overrides: Any) -> App:
    """Shorthand for ``App(AppConfig(root_dir=root_dir, **overrides))``."""
    return App(AppConfig(root_dir=root_dir, **overrides))

