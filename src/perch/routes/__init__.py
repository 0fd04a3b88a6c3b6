"""File-based route discovery.

Scan a directory tree, compile paths to URL patterns, resolve inherited
layouts/middleware and nearest boundaries, validate, and assemble an
immutable :class:`RouteManifest`.
"""

from perch.routes.compiler import compile_path, compile_route, parse_segment, route_priority, sort_routes
from perch.routes.manifest import build_manifest
from perch.routes.resolver import ancestor_directories, resolve_inherited, resolve_nearest
from perch.routes.scanner import scan_routes
from perch.routes.types import (
    CatchAllSegment,
    DynamicSegment,
    FileType,
    GroupSegment,
    OptionalCatchAllSegment,
    RouteEntry,
    RouteManifest,
    RouteSegment,
    RouteValidationError,
    RouteValidationWarning,
    ScannedFile,
    ScanResult,
    StaticSegment,
)
from perch.routes.validator import (
    detect_conflicts,
    detect_shadowed_routes,
    format_issues,
    has_errors,
    has_warnings,
    validate_route,
)

__all__ = [
    "CatchAllSegment",
    "DynamicSegment",
    "FileType",
    "GroupSegment",
    "OptionalCatchAllSegment",
    "RouteEntry",
    "RouteManifest",
    "RouteSegment",
    "RouteValidationError",
    "RouteValidationWarning",
    "ScanResult",
    "ScannedFile",
    "StaticSegment",
    "ancestor_directories",
    "build_manifest",
    "compile_path",
    "compile_route",
    "detect_conflicts",
    "detect_shadowed_routes",
    "format_issues",
    "has_errors",
    "has_warnings",
    "parse_segment",
    "resolve_inherited",
    "resolve_nearest",
    "route_priority",
    "scan_routes",
    "sort_routes",
    "validate_route",
]
