"""Compiled router over a route manifest.

Entries are tried in manifest order (match priority), first match wins.
Built once per manifest; a rebuild produces a new Router.
"""

from collections.abc import Sequence
from types import MappingProxyType

from perch.errors import NotFound
from perch.routes.types import (
    CatchAllSegment,
    DynamicSegment,
    OptionalCatchAllSegment,
    RouteEntry,
    RouteManifest,
    RouteSegment,
    StaticSegment,
)
from perch.routing.route import RouteMatch


def split_path(path: str) -> list[str]:
    """Split a request path into components.  Empty parts are dropped."""
    return [p for p in path.split("/") if p]


def match_segments(segments: Sequence[RouteSegment], parts: Sequence[str]) -> dict[str, str] | None:
    """Match URL *segments* against request path *parts*.

    Returns the captured params, or ``None`` if the path does not match.
    Catch-alls capture the remaining parts joined with ``/``; an optional
    catch-all with nothing left captures ``""``.
    """
    params: dict[str, str] = {}
    for i, segment in enumerate(segments):
        match segment:
            case StaticSegment(value=value):
                if i >= len(parts) or parts[i] != value:
                    return None
            case DynamicSegment(name=name):
                if i >= len(parts):
                    return None
                params[name] = parts[i]
            case CatchAllSegment(name=name):
                rest = parts[i:]
                if not rest:
                    return None
                params[name] = "/".join(rest)
                return params
            case OptionalCatchAllSegment(name=name):
                params[name] = "/".join(parts[i:])
                return params
    if len(parts) != len(segments):
        return None
    return params


class Router:
    """First-match router compiled from a manifest.

    Usage::

        router = Router.from_manifest(manifest)
        match = router.match("/users/42")
        match.path_params  # {"id": "42"}
    """

    __slots__ = ("_compiled",)

    def __init__(self, entries: Sequence[RouteEntry]) -> None:
        self._compiled: tuple[tuple[RouteEntry, tuple[RouteSegment, ...]], ...] = tuple(
            (entry, entry.url_segments) for entry in entries
        )

    @classmethod
    def from_manifest(cls, manifest: RouteManifest) -> "Router":
        return cls(manifest.routes)

    @property
    def entries(self) -> tuple[RouteEntry, ...]:
        return tuple(entry for entry, _ in self._compiled)

    def match(self, path: str) -> RouteMatch:
        """Match a request path.

        Raises ``NotFound`` if no entry matches.
        """
        parts = split_path(path)
        for entry, segments in self._compiled:
            params = match_segments(segments, parts)
            if params is not None:
                return RouteMatch(entry=entry, path_params=MappingProxyType(params))
        raise NotFound(f"No route matches {path!r}")
