"""Manifest builder.

Orchestrates scan -> compile -> resolve -> validate and assembles the
immutable :class:`RouteManifest`.  Building never raises for problems in
the route tree; they are recorded on the manifest instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from types import MappingProxyType

from perch.config import DEFAULT_EXTENSIONS
from perch.errors import PatternError
from perch.routes.compiler import compile_route, sort_routes
from perch.routes.resolver import (
    directory_map,
    resolve_error_boundary,
    resolve_layouts,
    resolve_loading_boundary,
    resolve_middleware,
    resolve_not_found_boundary,
)
from perch.routes.scanner import scan_routes
from perch.routes.types import (
    RouteEntry,
    RouteManifest,
    RouteValidationError,
    RouteValidationWarning,
    ScannedFile,
)
from perch.routes.validator import (
    DEFAULT_MAX_DEPTH,
    check_depth,
    check_param_names,
    detect_conflicts,
    detect_shadowed_routes,
    validate_route,
)

logger = logging.getLogger("perch.routes")


def _duplicate_warnings(kind: str, files: Iterable[ScannedFile]) -> list[RouteValidationWarning]:
    """Warn when one directory holds two files of the same role."""
    seen: dict[str, ScannedFile] = {}
    warnings: list[RouteValidationWarning] = []
    for scanned in files:
        first = seen.setdefault(scanned.directory, scanned)
        if first is not scanned:
            warnings.append(
                RouteValidationWarning(
                    "duplicate",
                    f"Directory {scanned.directory or '/'!r} has more than one {kind} file; "
                    f"using {first.relative_path}",
                    (first.relative_path, scanned.relative_path),
                )
            )
    return warnings


def build_manifest(
    root_dir: str | Path,
    *,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> RouteManifest:
    """Scan *root_dir* and build a route manifest.

    Deterministic: an unchanged tree yields equal manifests (only
    ``generated_at`` differs, and it is excluded from equality).
    """
    scan = scan_routes(root_dir, extensions=extensions)
    root = scan.root_dir

    if not scan.root_exists:
        error = RouteValidationError("scan-error", f"Route directory not found: {root}", (root,))
        return RouteManifest(root_dir=root, errors=(error,), generated_at=datetime.now())

    layouts = directory_map(scan.layouts)
    middleware = directory_map(scan.middleware)
    error_boundaries = directory_map(scan.errors)
    not_found_boundaries = directory_map(scan.not_found)
    loading_boundaries = directory_map(scan.loading)

    errors: list[RouteValidationError] = []
    warnings: list[RouteValidationWarning] = []
    for kind, files in (
        ("layout", scan.layouts),
        ("middleware", scan.middleware),
        ("error", scan.errors),
        ("not-found", scan.not_found),
        ("loading", scan.loading),
    ):
        warnings.extend(_duplicate_warnings(kind, files))

    candidates: list[RouteEntry] = []
    rejected: list[RouteEntry] = []
    for scanned in scan.route_files:
        try:
            entry = compile_route(scanned)
        except PatternError as exc:
            logger.debug("Rejected %s: %s", scanned.relative_path, exc)
            errors.append(RouteValidationError("pattern", str(exc), exc.files or (scanned.relative_path,)))
            continue

        path = entry.file_path
        entry = replace(
            entry,
            layouts=resolve_layouts(path, layouts),
            middleware=resolve_middleware(path, middleware),
            error_boundary=resolve_error_boundary(path, error_boundaries),
            not_found_boundary=resolve_not_found_boundary(path, not_found_boundaries),
            loading_boundary=resolve_loading_boundary(path, loading_boundaries),
        )

        route_errors = validate_route(entry)
        if route_errors:
            errors.extend(route_errors)
            rejected.append(entry)
            continue

        warnings.extend(check_param_names(entry))
        depth_warning = check_depth(entry, max_depth)
        if depth_warning is not None:
            warnings.append(depth_warning)
        candidates.append(entry)

    conflicts = detect_conflicts(candidates)
    errors.extend(conflicts)
    conflicted = {f for conflict in conflicts for f in conflict.files}

    servable = sort_routes(e for e in candidates if e.file_path not in conflicted)
    rejected.extend(e for e in candidates if e.file_path in conflicted)
    warnings.extend(detect_shadowed_routes(servable))

    if not scan.route_files:
        warnings.append(
            RouteValidationWarning("no-routes", f"No page or route files found under {root}", (root,))
        )

    manifest = RouteManifest(
        root_dir=root,
        routes=servable,
        rejected=tuple(sorted(rejected, key=lambda e: e.file_path)),
        layouts=MappingProxyType(layouts),
        middleware=MappingProxyType(middleware),
        error_boundaries=MappingProxyType(error_boundaries),
        not_found_boundaries=MappingProxyType(not_found_boundaries),
        loading_boundaries=MappingProxyType(loading_boundaries),
        errors=tuple(errors),
        warnings=tuple(warnings),
        generated_at=datetime.now(),
    )
    logger.info(
        "Built route manifest for %s: %d routes, %d errors, %d warnings",
        root,
        len(manifest.routes),
        len(manifest.errors),
        len(manifest.warnings),
    )
    return manifest
