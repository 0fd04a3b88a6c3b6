"""Path compiler: relative file path -> URL pattern and typed segments.

Directory syntax::

    users           -> StaticSegment("users")
    [id]            -> DynamicSegment("id")            /users/:id
    [...slug]       -> CatchAllSegment("slug")         /docs/*slug
    [[...slug]]     -> OptionalCatchAllSegment("slug") /docs/*slug?
    (marketing)     -> GroupSegment("marketing")       (no URL component)

The file name itself never contributes to the URL.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from perch.errors import PatternError
from perch.routes.types import (
    CatchAllSegment,
    DynamicSegment,
    FileType,
    GroupSegment,
    OptionalCatchAllSegment,
    RouteEntry,
    RoutePriority,
    RouteSegment,
    ScannedFile,
    StaticSegment,
)

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"

_OPTIONAL_CATCH_ALL_RE = re.compile(rf"^\[\[\.\.\.({_NAME})\]\]$")
_CATCH_ALL_RE = re.compile(rf"^\[\.\.\.({_NAME})\]$")
_DYNAMIC_RE = re.compile(rf"^\[({_NAME})\]$")
_GROUP_RE = re.compile(r"^\(([A-Za-z_][A-Za-z0-9_-]*)\)$")
_STATIC_RE = re.compile(r"^[A-Za-z0-9._~-]+$")

# Match rank per URL segment kind; lower is more specific
SEGMENT_RANK: dict[str, int] = {
    StaticSegment.kind: 0,
    DynamicSegment.kind: 1,
    CatchAllSegment.kind: 2,
    OptionalCatchAllSegment.kind: 3,
}


def parse_segment(part: str) -> RouteSegment:
    """Classify one directory name.

    Raises:
        PatternError: Bracketed or parenthesized names that do not parse,
            and static names with characters that are not URL-safe.
    """
    if match := _OPTIONAL_CATCH_ALL_RE.match(part):
        return OptionalCatchAllSegment(match.group(1))
    if match := _CATCH_ALL_RE.match(part):
        return CatchAllSegment(match.group(1))
    if match := _DYNAMIC_RE.match(part):
        return DynamicSegment(match.group(1))
    if match := _GROUP_RE.match(part):
        return GroupSegment(match.group(1))

    if part.startswith(("[", "(")) or part.endswith(("]", ")")):
        msg = f"Malformed segment {part!r}: expected [name], [...name], [[...name]] or (group)"
        raise PatternError(msg)
    if not _STATIC_RE.match(part):
        msg = f"Segment {part!r} contains characters that are not URL-safe"
        raise PatternError(msg)
    return StaticSegment(part)


def parse_segments(relative_path: str) -> tuple[RouteSegment, ...]:
    """Parse every directory component of *relative_path*.

    The last component is the file name and is dropped.
    """
    directories = [p for p in relative_path.split("/")[:-1] if p]
    segments: list[RouteSegment] = []
    for part in directories:
        try:
            segments.append(parse_segment(part))
        except PatternError as exc:
            raise PatternError(str(exc), files=(relative_path,)) from None
    return tuple(segments)


def build_url_pattern(segments: Iterable[RouteSegment]) -> str:
    """Join non-group segment tokens with ``/``.  No segments gives ``/``."""
    tokens = [s.token for s in segments if not isinstance(s, GroupSegment)]
    return "/" + "/".join(tokens)


def compile_path(relative_path: str) -> tuple[str, tuple[RouteSegment, ...]]:
    """Compile a relative file path to ``(url_pattern, segments)``.

    Example::

        >>> compile_path("users/[id]/profile/page.py")
        ('/users/:id/profile', (StaticSegment('users'), DynamicSegment('id'), ...))
    """
    segments = parse_segments(relative_path)
    return build_url_pattern(segments), segments


def route_priority(segments: Iterable[RouteSegment]) -> RoutePriority:
    """Sort key for matching order.

    Compared position by position: a static segment beats a dynamic one,
    which beats a catch-all, which beats an optional catch-all.  Equal
    rank tuples fall back to the number of wildcard segments.
    """
    ranks = tuple(
        SEGMENT_RANK[s.kind] for s in segments if not isinstance(s, GroupSegment)
    )
    wildcards = sum(1 for rank in ranks if rank > 0)
    return ranks, wildcards


def sort_routes(entries: Iterable[RouteEntry]) -> tuple[RouteEntry, ...]:
    """Order entries for first-match-wins dispatch.

    ``sorted`` is stable, so entries with equal priority keep the order
    they arrived in (the scanner's sorted path order).
    """
    return tuple(sorted(entries, key=lambda e: e.priority))


def compile_route(scanned: ScannedFile) -> RouteEntry:
    """Turn a scanned page or route file into a ``RouteEntry`` skeleton.

    Layouts, middleware and boundaries are filled in by the manifest
    builder.

    Raises:
        PatternError: If the path cannot be compiled.
    """
    if scanned.file_type not in (FileType.PAGE, FileType.ROUTE):
        msg = f"{scanned.relative_path} is a {scanned.file_type} file, not a page or route"
        raise PatternError(msg, files=(scanned.relative_path,))

    url_pattern, segments = compile_path(scanned.relative_path)
    return RouteEntry(
        url_pattern=url_pattern,
        file_path=scanned.relative_path,
        absolute_path=scanned.absolute_path,
        file_type=scanned.file_type,
        segments=segments,
        priority=route_priority(segments),
    )
