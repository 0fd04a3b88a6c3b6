"""Request dispatcher and composer.

Per-request state machine::

    matching -> middleware -> handling -> {composing | error | not-found} -> responded

The dispatcher holds one ``ManifestSnapshot`` reference.  Each request
reads it exactly once, so a rebuild swapped in mid-request is only seen
by later requests.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from perch._internal.invoke import invoke_with
from perch.context import request_var, route_config_var
from perch.errors import HTTPError, MethodNotAllowed, ModuleLoadError, NotFound
from perch.http.request import Request
from perch.http.response import Redirect, Response
from perch.middleware.protocol import Next
from perch.modules.cache import ModuleCache
from perch.modules.loader import CompiledModule
from perch.routes.resolver import request_directories, resolve_inherited, resolve_nearest
from perch.routes.types import FileType, RouteManifest
from perch.routing.route import RouteMatch
from perch.routing.router import Router
from perch.server.compose import as_html, build_context, compose_layouts, render_module
from perch.server.errors import (
    CORRELATION_HEADER,
    fallback_internal_error,
    fallback_not_found,
    http_error_response,
    new_correlation_id,
)
from perch.server.negotiation import negotiate

logger = logging.getLogger("perch.server")


class DispatchState(StrEnum):
    MATCHING = "matching"
    MIDDLEWARE = "middleware"
    HANDLING = "handling"
    COMPOSING = "composing"
    ERROR = "error"
    NOT_FOUND = "not-found"
    RESPONDED = "responded"


@dataclass(frozen=True, slots=True)
class ManifestSnapshot:
    """A manifest and the router compiled from it, swapped as one value."""

    manifest: RouteManifest
    router: Router

    @classmethod
    def build(cls, manifest: RouteManifest) -> "ManifestSnapshot":
        return cls(manifest=manifest, router=Router.from_manifest(manifest))


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Final response plus the states the request passed through."""

    response: Response
    states: tuple[DispatchState, ...]
    match: RouteMatch | None = None
    correlation_id: str | None = None


@dataclass(slots=True)
class _Trace:
    """Mutable per-request bookkeeping, never shared between requests."""

    request: Request
    states: list[DispatchState] = field(default_factory=list)
    match: RouteMatch | None = None
    correlation_id: str | None = None

    def enter(self, state: DispatchState) -> None:
        self.states.append(state)
        logger.debug("%s %s: %s", self.request.method, self.request.path, state)


def build_chain(middleware: Sequence[Callable[..., Any]], endpoint: Next) -> Next:
    """Wrap *endpoint* so *middleware* runs first-to-last around it.

    Every link negotiates what its middleware returns, so each ``next``
    hands back a ``Response`` even when a middleware short-circuits with
    a ``Redirect``.
    """
    handler = endpoint
    for mw in reversed(middleware):
        outer = handler

        async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
            return negotiate(await _mw(req, _next))

        handler = make_next
    return handler


class Dispatcher:
    """Dispatches requests against the current manifest snapshot.

    Args:
        manifest: Initial route manifest.
        modules: Compiled-module cache shared with the app.
        middleware: App-wide middleware, run around every request.
        debug: Put exception text in generic 500 pages.
    """

    __slots__ = ("_snapshot", "debug", "middleware", "modules")

    def __init__(
        self,
        manifest: RouteManifest,
        *,
        modules: ModuleCache,
        middleware: Sequence[Callable[..., Any]] = (),
        debug: bool = False,
    ) -> None:
        self._snapshot = ManifestSnapshot.build(manifest)
        self.modules = modules
        self.middleware = tuple(middleware)
        self.debug = debug

    @property
    def snapshot(self) -> ManifestSnapshot:
        return self._snapshot

    @property
    def manifest(self) -> RouteManifest:
        return self._snapshot.manifest

    def swap(self, manifest: RouteManifest) -> None:
        """Replace the manifest.  The router is compiled before the swap."""
        self._snapshot = ManifestSnapshot.build(manifest)

    async def dispatch(self, request: Request) -> DispatchOutcome:
        """Run one request to a response.  Never raises."""
        snapshot = self._snapshot
        trace = _Trace(request)
        request_token = request_var.set(request)
        config_token = route_config_var.set(None)

        async def endpoint(req: Request) -> Response:
            return await self._dispatch_route(req, snapshot, trace)

        try:
            try:
                response = await build_chain(self.middleware, endpoint)(request)
            except NotFound as exc:
                response = await self._not_found(request, exc, snapshot, trace)
            except HTTPError as exc:
                logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
                response = http_error_response(exc, debug=self.debug)
            except Exception as exc:
                response = await self._error(request, exc, snapshot, trace)
        finally:
            route_config_var.reset(config_token)
            request_var.reset(request_token)

        trace.enter(DispatchState.RESPONDED)
        return DispatchOutcome(
            response=response,
            states=tuple(trace.states),
            match=trace.match,
            correlation_id=trace.correlation_id,
        )

    async def _dispatch_route(
        self,
        request: Request,
        snapshot: ManifestSnapshot,
        trace: _Trace,
    ) -> Response:
        trace.enter(DispatchState.MATCHING)
        match = snapshot.router.match(request.path)
        trace.match = match
        request = request.with_path_params(match.path_params)
        request_var.set(request)

        entry = match.entry
        module = self.modules.get(entry.absolute_path)
        route_config_var.set(module.config)
        chain = [mw for path in entry.middleware for mw in self.modules.get(path).middleware]

        async def handle(req: Request) -> Response:
            trace.enter(DispatchState.HANDLING)
            if entry.file_type is FileType.ROUTE:
                return negotiate(await self._handle_route(req, match, module))
            return negotiate(await self._handle_page(req, match, module, trace))

        trace.enter(DispatchState.MIDDLEWARE)
        response = await build_chain(chain, handle)(request)

        cache = module.config.cache if module.config is not None else None
        if cache is not None and response.status < 400 and response.header("Cache-Control") is None:
            response = response.with_header("Cache-Control", cache.cache_control)
        return response

    async def _handle_route(self, request: Request, match: RouteMatch, module: CompiledModule) -> Any:
        handler = module.handler_for(request.method)
        if handler is None:
            raise MethodNotAllowed(module.allowed_methods)
        context = build_context(request, match.path_params, module.config)
        return await invoke_with(handler, context)

    async def _handle_page(
        self,
        request: Request,
        match: RouteMatch,
        module: CompiledModule,
        trace: _Trace,
    ) -> Any:
        context = build_context(request, match.path_params, module.config)

        if request.method not in ("GET", "HEAD"):
            action = module.action_for(request.method)
            if action is None:
                verbs = {m for m in module.actions if m != "*"}
                raise MethodNotAllowed(frozenset({"GET", "HEAD", *verbs}))
            result = await invoke_with(action, context)
            if isinstance(result, (Response, Redirect)):
                return result
            context["action_data"] = result

        if module.loader is not None:
            data = await invoke_with(module.loader, context)
            if isinstance(data, (Response, Redirect)):
                return data
            context["data"] = data

        if module.render is None:
            msg = f"{module.path} does not define render()"
            raise ModuleLoadError(msg)
        output = await invoke_with(module.render, context)
        if isinstance(output, (Response, Redirect)):
            return output

        trace.enter(DispatchState.COMPOSING)
        body = await compose_layouts(self.modules, as_html(output), match.entry.layouts, context)
        return Response(body=body)

    def _boundary_for(
        self,
        request: Request,
        snapshot: ManifestSnapshot,
        trace: _Trace,
        kind: FileType,
    ) -> tuple[str | None, tuple[str, ...]]:
        """Nearest boundary of *kind* and the layouts to wrap it in.

        Without a matched route, both resolve along the request path.
        """
        if trace.match is not None:
            entry = trace.match.entry
            boundary = entry.error_boundary if kind is FileType.ERROR else entry.not_found_boundary
            return boundary, entry.layouts

        manifest = snapshot.manifest
        directories = request_directories(request.path)
        boundaries = manifest.error_boundaries if kind is FileType.ERROR else manifest.not_found_boundaries
        return resolve_nearest(directories, boundaries), resolve_inherited(directories, manifest.layouts)

    async def _render_boundary(
        self,
        boundary: str,
        layouts: tuple[str, ...],
        request: Request,
        trace: _Trace,
        **extra: Any,
    ) -> str:
        params = trace.match.path_params if trace.match is not None else {}
        context = build_context(request, params, route_config_var.get(), **extra)
        output = await render_module(self.modules, boundary, context)
        return await compose_layouts(self.modules, as_html(output), layouts, context)

    async def _not_found(
        self,
        request: Request,
        exc: NotFound,
        snapshot: ManifestSnapshot,
        trace: _Trace,
    ) -> Response:
        trace.enter(DispatchState.NOT_FOUND)
        logger.debug("404 %s %s", request.method, request.path)
        boundary, layouts = self._boundary_for(request, snapshot, trace, FileType.NOT_FOUND)
        if boundary is None:
            return fallback_not_found(self.modules.env)
        try:
            body = await self._render_boundary(
                boundary, layouts, request, trace, error=exc, error_type=type(exc).__name__
            )
        except Exception:
            logger.exception("Not-found boundary %s failed for %s %s", boundary, request.method, request.path)
            return fallback_not_found(self.modules.env)
        return Response(body=body, status=404)

    async def _error(
        self,
        request: Request,
        exc: Exception,
        snapshot: ManifestSnapshot,
        trace: _Trace,
    ) -> Response:
        trace.enter(DispatchState.ERROR)
        error_id = new_correlation_id()
        trace.correlation_id = error_id
        logger.error("Error [%s] in %s %s", error_id, request.method, request.path, exc_info=exc)

        detail = f"{type(exc).__name__}: {exc}" if self.debug else None
        boundary, layouts = self._boundary_for(request, snapshot, trace, FileType.ERROR)
        if boundary is None:
            return fallback_internal_error(self.modules.env, error_id, detail=detail)
        try:
            body = await self._render_boundary(
                boundary,
                layouts,
                request,
                trace,
                error=exc,
                error_id=error_id,
                error_type=type(exc).__name__,
            )
        except Exception:
            logger.exception("Error boundary %s failed [%s]", boundary, error_id)
            return fallback_internal_error(self.modules.env, error_id, detail=detail)
        return Response(body=body, status=500).with_header(CORRELATION_HEADER, error_id)
