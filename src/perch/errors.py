"""Perch exception hierarchy.

Shared by the route compiler, module loader, dispatcher, and middleware
so every module raises and catches the same types.

Build-time problems (bad directory names, conflicting files) are *values*
on the manifest, not exceptions.  ``PatternError`` only travels between
the path compiler and the manifest builder, which records it and moves on.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when app configuration is invalid."""


class RouteConfigError(ConfigurationError):
    """Raised when a route file exports an invalid ``config`` mapping.

    The message always names the offending file.
    """

    def __init__(self, file_path: str, detail: str) -> None:
        self.file_path = file_path
        self.detail = detail
        super().__init__(f"Invalid route config in {file_path}: {detail}")


class PatternError(PerchError):
    """A single route file cannot be turned into a URL pattern."""

    def __init__(self, message: str, files: tuple[str, ...] = ()) -> None:
        self.files = files
        super().__init__(message)


class ModuleLoadError(PerchError):
    """A route file could not be imported or compiled."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware or handlers.  The dispatcher turns ``NotFound``
    into the nearest not-found boundary and every other status into a
    plain response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """No route matched, or a handler signalled absence (404)."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """The route exists but does not handle this HTTP method (405)."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
