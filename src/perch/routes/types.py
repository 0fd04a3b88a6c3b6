"""Data model for file-based route discovery.

Frozen dataclasses built once per scan cycle.  A rebuild produces entirely
new values; nothing here is mutated after construction.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any, ClassVar


class FileType(StrEnum):
    """Role of a recognized route file, derived from its base name."""

    PAGE = "page"
    ROUTE = "route"
    LAYOUT = "layout"
    MIDDLEWARE = "middleware"
    LOADING = "loading"
    ERROR = "error"
    NOT_FOUND = "not-found"


@dataclass(frozen=True, slots=True)
class ScannedFile:
    """A recognized file found under the route root.

    Attributes:
        relative_path: Path from the root, always ``/``-separated.
        absolute_path: Resolved filesystem path.
        base_name: File name without extension (``page``, ``index``, ...).
        extension: Extension including the dot (``.py``).
        file_type: Role of the file, or ``None`` if unrecognized.
        is_in_group: True when any ancestor directory is a ``(group)``.
        group_names: Group names from root to leaf.
    """

    relative_path: str
    absolute_path: str
    base_name: str
    extension: str
    file_type: FileType | None
    is_in_group: bool = False
    group_names: tuple[str, ...] = ()

    @property
    def directory(self) -> str:
        """Directory holding the file, relative to the root (``''`` at root)."""
        head, _, _ = self.relative_path.rpartition("/")
        return head


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Categorized output of one scan, each tuple in sorted path order."""

    root_dir: str
    root_exists: bool
    pages: tuple[ScannedFile, ...] = ()
    routes: tuple[ScannedFile, ...] = ()
    layouts: tuple[ScannedFile, ...] = ()
    middleware: tuple[ScannedFile, ...] = ()
    loading: tuple[ScannedFile, ...] = ()
    errors: tuple[ScannedFile, ...] = ()
    not_found: tuple[ScannedFile, ...] = ()

    @property
    def files(self) -> tuple[ScannedFile, ...]:
        """Every recognized file, sorted by relative path."""
        every = (
            *self.pages,
            *self.routes,
            *self.layouts,
            *self.middleware,
            *self.loading,
            *self.errors,
            *self.not_found,
        )
        return tuple(sorted(every, key=lambda f: f.relative_path))

    @property
    def route_files(self) -> tuple[ScannedFile, ...]:
        """Pages and route handlers, sorted by relative path."""
        return tuple(sorted((*self.pages, *self.routes), key=lambda f: f.relative_path))


# -- Route segments --


@dataclass(frozen=True, slots=True)
class StaticSegment:
    """A literal path component: ``users``."""

    value: str
    kind: ClassVar[str] = "static"

    @property
    def token(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class DynamicSegment:
    """Exactly one path component captured as ``name``: ``[id]``."""

    name: str
    kind: ClassVar[str] = "dynamic"

    @property
    def token(self) -> str:
        return f":{self.name}"


@dataclass(frozen=True, slots=True)
class CatchAllSegment:
    """One or more remaining components: ``[...slug]``."""

    name: str
    kind: ClassVar[str] = "catch-all"

    @property
    def token(self) -> str:
        return f"*{self.name}"


@dataclass(frozen=True, slots=True)
class OptionalCatchAllSegment:
    """Zero or more remaining components: ``[[...slug]]``."""

    name: str
    kind: ClassVar[str] = "optional-catch-all"

    @property
    def token(self) -> str:
        return f"*{self.name}?"


@dataclass(frozen=True, slots=True)
class GroupSegment:
    """A ``(group)`` directory.  Structural only, never part of the URL."""

    name: str
    kind: ClassVar[str] = "group"

    @property
    def token(self) -> str:
        return ""


type RouteSegment = (
    StaticSegment | DynamicSegment | CatchAllSegment | OptionalCatchAllSegment | GroupSegment
)

# (per-URL-segment ranks, wildcard count); lower sorts first
type RoutePriority = tuple[tuple[int, ...], int]


def segment_to_dict(segment: RouteSegment) -> dict[str, str]:
    """JSON-friendly form of a segment."""
    if isinstance(segment, StaticSegment):
        return {"kind": segment.kind, "value": segment.value}
    return {"kind": segment.kind, "name": segment.name}


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """One servable (or rejected) page or route handler.

    ``layouts`` and ``middleware`` are absolute paths ordered root to
    leaf.  Boundaries hold the nearest ancestor file or ``None``.
    """

    url_pattern: str
    file_path: str
    absolute_path: str
    file_type: FileType
    segments: tuple[RouteSegment, ...]
    priority: RoutePriority
    layouts: tuple[str, ...] = ()
    middleware: tuple[str, ...] = ()
    error_boundary: str | None = None
    not_found_boundary: str | None = None
    loading_boundary: str | None = None

    @property
    def url_segments(self) -> tuple[RouteSegment, ...]:
        """Segments that contribute to the URL (groups removed)."""
        return tuple(s for s in self.segments if not isinstance(s, GroupSegment))

    @property
    def param_names(self) -> tuple[str, ...]:
        """Names of every dynamic and catch-all segment, in order."""
        return tuple(
            s.name for s in self.url_segments if not isinstance(s, StaticSegment)
        )

    @property
    def directory(self) -> str:
        head, _, _ = self.file_path.rpartition("/")
        return head

    def to_dict(self) -> dict[str, Any]:
        return {
            "url_pattern": self.url_pattern,
            "file_path": self.file_path,
            "absolute_path": self.absolute_path,
            "file_type": str(self.file_type),
            "segments": [segment_to_dict(s) for s in self.segments],
            "priority": [list(self.priority[0]), self.priority[1]],
            "layouts": list(self.layouts),
            "middleware": list(self.middleware),
            "error_boundary": self.error_boundary,
            "not_found_boundary": self.not_found_boundary,
            "loading_boundary": self.loading_boundary,
        }


# -- Validation issues (values, never raised) --


@dataclass(frozen=True, slots=True)
class RouteValidationError:
    """A build-blocking problem.  Files named here are not servable."""

    kind: str
    message: str
    files: tuple[str, ...] = ()

    severity: ClassVar[str] = "error"


@dataclass(frozen=True, slots=True)
class RouteValidationWarning:
    """An informational problem.  Files named here remain servable."""

    kind: str
    message: str
    files: tuple[str, ...] = ()

    severity: ClassVar[str] = "warning"


type RouteIssue = RouteValidationError | RouteValidationWarning


def _frozen_map(data: Mapping[str, str] | None = None) -> Mapping[str, str]:
    return MappingProxyType(dict(data or {}))


@dataclass(frozen=True, slots=True)
class RouteManifest:
    """Compiled, validated table of every discoverable route.

    Built by ``build_manifest`` and never mutated.  ``routes`` holds only
    servable entries, sorted by match priority; excluded entries stay
    visible in ``rejected`` for tooling.  Directory maps are keyed by the
    directory relative to the root (``''`` for the root itself).
    """

    root_dir: str
    routes: tuple[RouteEntry, ...] = ()
    rejected: tuple[RouteEntry, ...] = ()
    layouts: Mapping[str, str] = field(default_factory=_frozen_map)
    middleware: Mapping[str, str] = field(default_factory=_frozen_map)
    error_boundaries: Mapping[str, str] = field(default_factory=_frozen_map)
    not_found_boundaries: Mapping[str, str] = field(default_factory=_frozen_map)
    loading_boundaries: Mapping[str, str] = field(default_factory=_frozen_map)
    errors: tuple[RouteValidationError, ...] = ()
    warnings: tuple[RouteValidationWarning, ...] = ()
    generated_at: datetime = field(default_factory=datetime.now, compare=False)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def find(self, url_pattern: str) -> RouteEntry | None:
        """Return the servable entry registered for *url_pattern*."""
        for entry in self.routes:
            if entry.url_pattern == url_pattern:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable snapshot for build tooling."""
        return {
            "root_dir": self.root_dir,
            "generated_at": self.generated_at.isoformat(),
            "routes": [entry.to_dict() for entry in self.routes],
            "rejected": [entry.to_dict() for entry in self.rejected],
            "layouts": dict(self.layouts),
            "middleware": dict(self.middleware),
            "error_boundaries": dict(self.error_boundaries),
            "not_found_boundaries": dict(self.not_found_boundaries),
            "loading_boundaries": dict(self.loading_boundaries),
            "errors": [_issue_dict(e) for e in self.errors],
            "warnings": [_issue_dict(w) for w in self.warnings],
        }


def _issue_dict(issue: RouteIssue) -> dict[str, Any]:
    return {"kind": issue.kind, "message": issue.message, "files": list(issue.files)}
