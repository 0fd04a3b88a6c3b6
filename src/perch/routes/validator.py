"""Route validation.

Per-route checks produce ``RouteValidationError`` values that exclude the
route from the servable table.  Cross-route checks find page/route
conflicts (errors) and catch-all shadowing (warnings).  Nothing here
raises: callers decide what a non-empty error list means.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from perch.routes.types import (
    CatchAllSegment,
    FileType,
    OptionalCatchAllSegment,
    RouteEntry,
    RouteIssue,
    RouteSegment,
    RouteValidationError,
    RouteValidationWarning,
    StaticSegment,
)

DEFAULT_MAX_DEPTH = 5

# Names the dispatcher puts in every call context.  A path param with one
# of these names is only reachable through ``params``.
RESERVED_PARAM_NAMES = frozenset({
    "action_data",
    "config",
    "content",
    "data",
    "error",
    "error_id",
    "error_type",
    "params",
    "query",
    "request",
})


def _is_catch_all(segment: RouteSegment) -> bool:
    return isinstance(segment, (CatchAllSegment, OptionalCatchAllSegment))


def validate_route(entry: RouteEntry) -> list[RouteValidationError]:
    """Check a single entry for well-formedness."""
    files = (entry.file_path,)
    errors: list[RouteValidationError] = []

    pattern = entry.url_pattern
    if not pattern or not pattern.startswith("/") or (pattern != "/" and ("//" in pattern or pattern.endswith("/"))):
        errors.append(RouteValidationError("pattern", f"Malformed URL pattern {pattern!r}", files))

    url_segments = entry.url_segments
    catch_alls = [i for i, s in enumerate(url_segments) if _is_catch_all(s)]
    if len(catch_alls) > 1:
        errors.append(
            RouteValidationError(
                "pattern",
                f"Route {pattern} has {len(catch_alls)} catch-all segments; at most one is allowed",
                files,
            )
        )
    if catch_alls and catch_alls[0] != len(url_segments) - 1:
        errors.append(
            RouteValidationError(
                "pattern",
                f"Catch-all segment must be the last segment in {pattern}",
                files,
            )
        )

    seen: set[str] = set()
    for name in entry.param_names:
        if name in seen:
            errors.append(
                RouteValidationError(
                    "pattern",
                    f"Duplicate parameter name {name!r} in {pattern}",
                    files,
                )
            )
        seen.add(name)

    return errors


def check_depth(entry: RouteEntry, max_depth: int = DEFAULT_MAX_DEPTH) -> RouteValidationWarning | None:
    """Warn about routes nested deeper than *max_depth* URL segments."""
    depth = len(entry.url_segments)
    if depth <= max_depth:
        return None
    return RouteValidationWarning(
        "deep-nesting",
        f"Route {entry.url_pattern} is nested {depth} segments deep (more than {max_depth})",
        (entry.file_path,),
    )


def check_param_names(entry: RouteEntry) -> list[RouteValidationWarning]:
    """Warn about path params hidden by a call-context name such as ``data``."""
    return [
        RouteValidationWarning(
            "reserved-param",
            f"Parameter {name!r} in {entry.url_pattern} is shadowed by the call context; "
            f"read it as params[{name!r}]",
            (entry.file_path,),
        )
        for name in entry.param_names
        if name in RESERVED_PARAM_NAMES
    ]


def detect_conflicts(entries: Sequence[RouteEntry]) -> list[RouteValidationError]:
    """Find URL patterns claimed by both a page and a route handler.

    One error per pattern, naming every file involved.
    """
    by_pattern: dict[str, list[RouteEntry]] = defaultdict(list)
    for entry in entries:
        by_pattern[entry.url_pattern].append(entry)

    errors: list[RouteValidationError] = []
    for pattern, group in by_pattern.items():
        kinds = {e.file_type for e in group}
        if FileType.PAGE in kinds and FileType.ROUTE in kinds:
            errors.append(
                RouteValidationError(
                    "conflict",
                    f"Both a page and a route handler resolve to {pattern}",
                    tuple(e.file_path for e in group),
                )
            )
    return errors


def could_shadow(earlier: RouteEntry, later: RouteEntry) -> bool:
    """True if *earlier* (which has a catch-all) can capture *later*'s URLs.

    Compares the segments before the catch-all: static literals must be
    equal; anything involving a wildcard may overlap.
    """
    first = earlier.url_segments
    second = later.url_segments
    index = next((i for i, s in enumerate(first) if _is_catch_all(s)), None)
    if index is None:
        return False

    required = isinstance(first[index], CatchAllSegment)
    if len(second) < index + (1 if required else 0):
        return False

    for mine, theirs in zip(first[:index], second[:index], strict=False):
        if isinstance(mine, StaticSegment) and isinstance(theirs, StaticSegment):
            if mine.value != theirs.value:
                return False
    return True


def detect_shadowed_routes(entries: Sequence[RouteEntry]) -> list[RouteValidationWarning]:
    """Pairwise scan of priority-ordered *entries* for ambiguous matches.

    Quadratic in the number of routes.
    """
    warnings: list[RouteValidationWarning] = []
    for i, earlier in enumerate(entries):
        for later in entries[i + 1 :]:
            if earlier.url_pattern == later.url_pattern:
                if earlier.file_type == later.file_type:
                    warnings.append(
                        RouteValidationWarning(
                            "shadow",
                            f"{earlier.file_path} and {later.file_path} both serve "
                            f"{earlier.url_pattern}; the first one wins",
                            (earlier.file_path, later.file_path),
                        )
                    )
                continue
            if could_shadow(earlier, later):
                warnings.append(
                    RouteValidationWarning(
                        "shadow",
                        f"Route {earlier.url_pattern} is matched before "
                        f"{later.url_pattern} and may intercept its requests",
                        (earlier.file_path, later.file_path),
                    )
                )
    return warnings


def format_issues(issues: Sequence[RouteIssue]) -> str:
    """Render issues as numbered blocks for terminal output."""
    if not issues:
        return "No issues"
    blocks = []
    for i, issue in enumerate(issues, start=1):
        files = ", ".join(issue.files)
        blocks.append(f"{i}. [{issue.kind}] {issue.message}\n   Files: {files}")
    return "\n\n".join(blocks)


def has_errors(issues: Sequence[RouteIssue]) -> bool:
    return any(isinstance(i, RouteValidationError) for i in issues)


def has_warnings(issues: Sequence[RouteIssue]) -> bool:
    return any(isinstance(i, RouteValidationWarning) for i in issues)
