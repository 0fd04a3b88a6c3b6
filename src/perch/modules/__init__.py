"""Route file compilation, caching, and per-route configuration."""

from perch.modules.cache import ModuleCache
from perch.modules.loader import CompiledModule, create_environment, load_module
from perch.modules.route_config import CachePolicy, RateLimit, RouteConfig, validate_route_config

__all__ = [
    "CachePolicy",
    "CompiledModule",
    "ModuleCache",
    "RateLimit",
    "RouteConfig",
    "create_environment",
    "load_module",
    "validate_route_config",
]
