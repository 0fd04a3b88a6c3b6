"""Per-route configuration exported as ``config`` from a route file.

Recognized keys are validated eagerly into typed values; anything else
passes through untouched in ``RouteConfig.extra`` for middleware to
interpret::

    config = {
        "auth": "required",
        "rate_limit": "100/1m",
        "cache": {"max_age": 60, "stale_while_revalidate": 30},
        "feature_flag": "beta",      # -> extra
    }
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from perch.errors import RouteConfigError

type AuthRequirement = Literal["required", "optional", "none"]
type CacheMode = Literal["public", "private", "no-store"]

AUTH_VALUES = frozenset({"required", "optional", "none"})
CACHE_MODES = frozenset({"public", "private", "no-store"})

_WINDOW_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
_WINDOW_RE = re.compile(r"^(\d+)([smhd])$")
_RATE_LIMIT_RE = re.compile(r"^(\d+)/(\d+[smhd])$")


@dataclass(frozen=True, slots=True)
class RateLimit:
    """``requests`` allowed per ``window`` (``"1m"``, ``"30s"``, ...)."""

    requests: int
    window: str

    @property
    def window_seconds(self) -> int:
        match = _WINDOW_RE.match(self.window)
        if match is None:
            msg = f"Invalid rate limit window {self.window!r}"
            raise ValueError(msg)
        return int(match.group(1)) * _WINDOW_SECONDS[match.group(2)]


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """Either a shorthand ``mode`` or an explicit ``max_age``."""

    mode: CacheMode | None = None
    max_age: int | None = None
    stale_while_revalidate: int | None = None

    @property
    def cache_control(self) -> str:
        """The ``Cache-Control`` header value for this policy."""
        if self.mode is not None:
            return self.mode
        directives = ["public", f"max-age={self.max_age or 0}"]
        if self.stale_while_revalidate:
            directives.append(f"stale-while-revalidate={self.stale_while_revalidate}")
        return ", ".join(directives)


@dataclass(frozen=True, slots=True)
class RouteConfig:
    """Validated route configuration."""

    auth: AuthRequirement | None = None
    rate_limit: RateLimit | None = None
    cache: CachePolicy | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a recognized key or a pass-through one by name."""
        if key in ("auth", "rate_limit", "cache"):
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_rate_limit(value: Any, file_path: str) -> RateLimit:
    if isinstance(value, str):
        match = _RATE_LIMIT_RE.match(value)
        if match is None or int(match.group(1)) < 1:
            raise RouteConfigError(
                file_path,
                f"rate_limit must look like '100/1m' (requests/window), got {value!r}",
            )
        return RateLimit(requests=int(match.group(1)), window=match.group(2))

    if isinstance(value, Mapping):
        requests = value.get("requests")
        window = value.get("window")
        if not _is_non_negative_int(requests) or requests < 1:
            raise RouteConfigError(
                file_path, f"rate_limit.requests must be a positive integer, got {requests!r}"
            )
        if not isinstance(window, str) or not _WINDOW_RE.match(window):
            raise RouteConfigError(
                file_path, f"rate_limit.window must look like '1m', '30s', '1h' or '1d', got {window!r}"
            )
        return RateLimit(requests=requests, window=window)

    raise RouteConfigError(
        file_path, f"rate_limit must be a string or a mapping, got {type(value).__name__}"
    )


def _parse_cache(value: Any, file_path: str) -> CachePolicy:
    if isinstance(value, str):
        if value not in CACHE_MODES:
            raise RouteConfigError(
                file_path,
                f"cache must be one of {', '.join(sorted(CACHE_MODES))}, got {value!r}",
            )
        return CachePolicy(mode=value)  # type: ignore[arg-type]

    if isinstance(value, Mapping):
        max_age = value.get("max_age")
        if not _is_non_negative_int(max_age):
            raise RouteConfigError(
                file_path, f"cache.max_age must be a non-negative integer, got {max_age!r}"
            )
        swr = value.get("stale_while_revalidate")
        if swr is not None and not _is_non_negative_int(swr):
            raise RouteConfigError(
                file_path,
                f"cache.stale_while_revalidate must be a non-negative integer, got {swr!r}",
            )
        return CachePolicy(max_age=max_age, stale_while_revalidate=swr)

    raise RouteConfigError(
        file_path, f"cache must be a string or a mapping, got {type(value).__name__}"
    )


def validate_route_config(config: Any, file_path: str) -> RouteConfig | None:
    """Validate a module's ``config`` export.

    Returns ``None`` when the module exports no config.

    Raises:
        RouteConfigError: A recognized key has an invalid value, or the
            export is not a mapping.  The message names *file_path*.
    """
    if config is None:
        return None
    if not isinstance(config, Mapping):
        raise RouteConfigError(file_path, f"config must be a mapping, got {type(config).__name__}")

    auth = config.get("auth")
    if auth is not None and auth not in AUTH_VALUES:
        raise RouteConfigError(
            file_path, f"auth must be one of {', '.join(sorted(AUTH_VALUES))}, got {auth!r}"
        )

    rate_limit = config.get("rate_limit")
    cache = config.get("cache")
    extra = {k: v for k, v in config.items() if k not in ("auth", "rate_limit", "cache")}

    return RouteConfig(
        auth=auth,
        rate_limit=_parse_rate_limit(rate_limit, file_path) if rate_limit is not None else None,
        cache=_parse_cache(cache, file_path) if cache is not None else None,
        extra=MappingProxyType(extra),
    )
