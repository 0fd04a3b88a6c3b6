"""Filesystem scanner for the route root.

Walks the root directory tree and classifies every file whose base name
is a recognized route-file name:

- ``page`` (or ``index``), ``route``: servable entries
- ``layout``, ``middleware``: inherited down the tree
- ``error``, ``not-found``, ``loading``: nearest-ancestor boundaries

Everything else is ignored.  A missing root is not an error here; the
result is flagged ``root_exists=False`` and the manifest builder reports it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from perch.config import DEFAULT_EXTENSIONS
from perch.routes.types import FileType, ScannedFile, ScanResult

logger = logging.getLogger("perch.routes")

# Base name -> role.  ``index`` and ``not_found`` are aliases.
_FILE_TYPES: dict[str, FileType] = {
    "page": FileType.PAGE,
    "index": FileType.PAGE,
    "route": FileType.ROUTE,
    "layout": FileType.LAYOUT,
    "middleware": FileType.MIDDLEWARE,
    "loading": FileType.LOADING,
    "error": FileType.ERROR,
    "not-found": FileType.NOT_FOUND,
    "not_found": FileType.NOT_FOUND,
}

# Directories never descended into
IGNORED_DIRS = frozenset({
    "__pycache__",
    "__tests__",
    "node_modules",
    "site-packages",
    "dist",
    "build",
    "venv",
    ".venv",
})

# Route group directory: (marketing), (auth-pages)
GROUP_RE = re.compile(r"^\(([A-Za-z_][A-Za-z0-9_-]*)\)$")

_TEST_FILE_RE = re.compile(r"(^test_.*\.py$)|(_test\.py$)|(\.(test|spec)\.)")


def get_file_type(name: str) -> FileType | None:
    """Return the role for a file *name* (``"page.py"``), or ``None``."""
    stem = name.split(".", 1)[0] if not name.startswith(".") else ""
    return _FILE_TYPES.get(stem)


def is_ignored_file(name: str) -> bool:
    """True for tests, type stubs, and hidden files."""
    if name.startswith("."):
        return True
    if name.endswith((".pyi", ".d.ts")):
        return True
    return _TEST_FILE_RE.search(name) is not None


def is_ignored_dir(name: str) -> bool:
    return name in IGNORED_DIRS or name.startswith(".")


def extract_route_groups(relative_path: str) -> tuple[str, ...]:
    """Group names found in the directory part of *relative_path*."""
    directories = relative_path.split("/")[:-1]
    groups: list[str] = []
    for part in directories:
        match = GROUP_RE.match(part)
        if match:
            groups.append(match.group(1))
    return tuple(groups)


def walk_files(directory: Path) -> Iterator[Path]:
    """Yield files depth-first in sorted order, pruning ignored directories."""
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        logger.warning("Cannot read %s: %s", directory, exc)
        return
    for entry in entries:
        if entry.is_dir():
            if not is_ignored_dir(entry.name):
                yield from walk_files(entry)
        elif entry.is_file():
            yield entry


def scan_file(path: Path, root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> ScannedFile | None:
    """Classify a single file, or return ``None`` if it is not a route file."""
    if is_ignored_file(path.name) or path.suffix not in tuple(extensions):
        return None
    file_type = get_file_type(path.name)
    if file_type is None:
        return None

    relative_path = path.relative_to(root).as_posix()
    groups = extract_route_groups(relative_path)
    return ScannedFile(
        relative_path=relative_path,
        absolute_path=str(path),
        base_name=path.stem,
        extension=path.suffix,
        file_type=file_type,
        is_in_group=bool(groups),
        group_names=groups,
    )


def scan_routes(
    root_dir: str | Path,
    *,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> ScanResult:
    """Scan *root_dir* and return categorized route files.

    Args:
        root_dir: Directory holding the route tree.
        extensions: File extensions to recognize (``.py``, ``.html``).

    Returns:
        A :class:`ScanResult`.  Each category is sorted by relative path,
        so two scans of an unchanged tree are equal.
    """
    root = Path(root_dir).resolve()
    if not root.is_dir():
        logger.warning("Route root not found: %s", root)
        return ScanResult(root_dir=str(root), root_exists=False)

    extensions = tuple(extensions)
    buckets: dict[FileType, list[ScannedFile]] = {kind: [] for kind in FileType}
    for path in walk_files(root):
        scanned = scan_file(path, root, extensions)
        if scanned is None or scanned.file_type is None:
            continue
        logger.debug("Found %s file %s", scanned.file_type, scanned.relative_path)
        buckets[scanned.file_type].append(scanned)

    def ordered(kind: FileType) -> tuple[ScannedFile, ...]:
        return tuple(sorted(buckets[kind], key=lambda f: f.relative_path))

    return ScanResult(
        root_dir=str(root),
        root_exists=True,
        pages=ordered(FileType.PAGE),
        routes=ordered(FileType.ROUTE),
        layouts=ordered(FileType.LAYOUT),
        middleware=ordered(FileType.MIDDLEWARE),
        loading=ordered(FileType.LOADING),
        errors=ordered(FileType.ERROR),
        not_found=ordered(FileType.NOT_FOUND),
    )
