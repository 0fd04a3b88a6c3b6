"""Ancestor resolution over the route directory tree.

Two modes share one walk from the root down to the file's directory:

- inheritance (layouts, middleware): every match, root first
- override (error, not-found, loading): the closest match only

Resolution always uses the filesystem path, so ``(group)`` directories
contribute layouts and boundaries even though they are absent from the URL.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from perch.routes.types import ScannedFile


def ancestor_directories(relative_path: str) -> list[str]:
    """Directories from the root to the one holding *relative_path*.

    ::

        >>> ancestor_directories("users/[id]/profile/page.py")
        ['', 'users', 'users/[id]', 'users/[id]/profile']
    """
    parts = [p for p in relative_path.split("/")[:-1] if p]
    return [""] + ["/".join(parts[: i + 1]) for i in range(len(parts))]


def request_directories(path: str) -> list[str]:
    """Ancestor directories for a literal request path.

    Used when no route matched, so there is no file to walk from:
    ``/blog/missing`` walks ``''``, ``blog``, ``blog/missing``.
    """
    parts = [p for p in path.strip("/").split("/") if p]
    return ancestor_directories("/".join([*parts, ""]))


def directory_map(files: Iterable[ScannedFile]) -> dict[str, str]:
    """Map directory -> absolute path.  The first file per directory wins."""
    mapping: dict[str, str] = {}
    for scanned in files:
        mapping.setdefault(scanned.directory, scanned.absolute_path)
    return mapping


def resolve_inherited(directories: Iterable[str], by_directory: Mapping[str, str]) -> tuple[str, ...]:
    """Every file registered along *directories*, root first."""
    return tuple(by_directory[d] for d in directories if d in by_directory)


def resolve_nearest(directories: Iterable[str], by_directory: Mapping[str, str]) -> str | None:
    """The file registered closest to the leaf, or ``None``."""
    nearest: str | None = None
    for directory in directories:
        if directory in by_directory:
            nearest = by_directory[directory]
    return nearest


def resolve_layouts(relative_path: str, layouts: Mapping[str, str]) -> tuple[str, ...]:
    return resolve_inherited(ancestor_directories(relative_path), layouts)


def resolve_middleware(relative_path: str, middleware: Mapping[str, str]) -> tuple[str, ...]:
    return resolve_inherited(ancestor_directories(relative_path), middleware)


def resolve_error_boundary(relative_path: str, boundaries: Mapping[str, str]) -> str | None:
    return resolve_nearest(ancestor_directories(relative_path), boundaries)


def resolve_not_found_boundary(relative_path: str, boundaries: Mapping[str, str]) -> str | None:
    return resolve_nearest(ancestor_directories(relative_path), boundaries)


def resolve_loading_boundary(relative_path: str, boundaries: Mapping[str, str]) -> str | None:
    return resolve_nearest(ancestor_directories(relative_path), boundaries)
