"""Compile route files into ``CompiledModule`` objects.

Python route files are imported with ``importlib``; their recognized
exports become the module contract:

- ``render``: default render function (pages, layouts, boundaries)
- ``loader``: optional data loader
- ``action`` or ``actions``: mutation handlers (single, or keyed by verb)
- ``get``/``post``/... (either case): verb handlers for route files
- ``middleware``: a middleware callable, or a list of them
- ``config``: per-route configuration mapping

``.html`` files compile to a module whose ``render`` draws the kida
template with the call context.
"""

import hashlib
import importlib.util
import logging
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType, ModuleType
from typing import Any

from kida import Environment

from perch.errors import ModuleLoadError
from perch.modules.route_config import RouteConfig, validate_route_config

logger = logging.getLogger("perch.modules")

HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class CompiledModule:
    """The recognized exports of one route file."""

    path: str
    render: Callable[..., Any] | None = None
    loader: Callable[..., Any] | None = None
    actions: Mapping[str, Callable[..., Any]] = field(default=_EMPTY)
    handlers: Mapping[str, Callable[..., Any]] = field(default=_EMPTY)
    middleware: tuple[Callable[..., Any], ...] = ()
    config: RouteConfig | None = None

    def handler_for(self, method: str) -> Callable[..., Any] | None:
        """Verb handler for a route file.  HEAD falls back to GET."""
        handler = self.handlers.get(method)
        if handler is None and method == "HEAD":
            handler = self.handlers.get("GET")
        return handler

    def action_for(self, method: str) -> Callable[..., Any] | None:
        """Mutation handler for a page.  A single ``action`` serves every verb."""
        return self.actions.get(method) or self.actions.get("*")

    @property
    def allowed_methods(self) -> frozenset[str]:
        """Verbs a route file answers."""
        allowed = set(self.handlers)
        if "GET" in allowed:
            allowed.add("HEAD")
        return frozenset(allowed)


def create_environment(*, autoescape: bool = True) -> Environment:
    """Kida environment used to compile ``.html`` route files."""
    return Environment(autoescape=autoescape)


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8"), usedforsecurity=False).hexdigest()[:12]
    return f"_perch_route_{digest}"


def _import_file(path: Path) -> ModuleType:
    name = _module_name(path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot import route file {path}"
        raise ModuleLoadError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(name, None)
        msg = f"Failed to import {path}: {exc}"
        raise ModuleLoadError(msg) from exc
    return module


def _callable_export(module: ModuleType, name: str, path: Path) -> Callable[..., Any] | None:
    value = getattr(module, name, None)
    if value is None:
        return None
    if not callable(value):
        msg = f"{path}: export {name!r} must be callable, got {type(value).__name__}"
        raise ModuleLoadError(msg)
    return value


def _collect_actions(module: ModuleType, path: Path) -> dict[str, Callable[..., Any]]:
    actions: dict[str, Callable[..., Any]] = {}
    single = _callable_export(module, "action", path)
    if single is not None:
        actions["*"] = single

    keyed = getattr(module, "actions", None)
    if keyed is not None:
        if not isinstance(keyed, Mapping):
            msg = f"{path}: 'actions' must be a mapping of HTTP method to callable"
            raise ModuleLoadError(msg)
        for method, func in keyed.items():
            if not callable(func):
                msg = f"{path}: action for {method!r} is not callable"
                raise ModuleLoadError(msg)
            actions[str(method).upper()] = func
    return actions


def _collect_handlers(module: ModuleType) -> dict[str, Callable[..., Any]]:
    handlers: dict[str, Callable[..., Any]] = {}
    for method in HTTP_METHODS:
        func = getattr(module, method, None) or getattr(module, method.lower(), None)
        if func is not None and callable(func):
            handlers[method] = func
    return handlers


def _collect_middleware(module: ModuleType, path: Path) -> tuple[Callable[..., Any], ...]:
    value = getattr(module, "middleware", None)
    if value is None:
        return ()
    chain = tuple(value) if isinstance(value, (list, tuple)) else (value,)
    for mw in chain:
        if not callable(mw):
            msg = f"{path}: middleware must be callable, got {type(mw).__name__}"
            raise ModuleLoadError(msg)
    return chain


def load_python_module(path: Path) -> CompiledModule:
    module = _import_file(path)
    return CompiledModule(
        path=str(path),
        render=_callable_export(module, "render", path),
        loader=_callable_export(module, "loader", path),
        actions=MappingProxyType(_collect_actions(module, path)),
        handlers=MappingProxyType(_collect_handlers(module)),
        middleware=_collect_middleware(module, path),
        config=validate_route_config(getattr(module, "config", None), str(path)),
    )


def load_template_module(path: Path, env: Environment) -> CompiledModule:
    try:
        template = env.from_string(path.read_text(encoding="utf-8"))
    except Exception as exc:
        msg = f"Failed to compile template {path}: {exc}"
        raise ModuleLoadError(msg) from exc

    def render(**context: Any) -> str:
        return template.render(context)

    return CompiledModule(path=str(path), render=render)


def load_module(path: str | Path, env: Environment) -> CompiledModule:
    """Compile the route file at *path*.

    Raises:
        ModuleLoadError: The file cannot be imported or compiled.
        RouteConfigError: The file exports an invalid ``config``.
    """
    path = Path(path)
    logger.debug("Loading route module %s", path)
    if path.suffix == ".html":
        return load_template_module(path, env)
    return load_python_module(path)
