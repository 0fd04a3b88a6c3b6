"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: The current ``Request`` for this task.
- ``route_config_var``: The validated ``config`` of the matched route file.

Both are set by the dispatcher and reset after each request.  Outside a
request, ``get_request()`` raises ``LookupError`` and
``get_route_config()`` returns ``None``.
"""

from contextvars import ContextVar

from perch.http.request import Request
from perch.modules.route_config import RouteConfig

request_var: ContextVar[Request] = ContextVar("perch_request")
"""The current request. Set by the dispatcher before middleware runs."""

route_config_var: ContextVar[RouteConfig | None] = ContextVar(
    "perch_route_config", default=None
)
"""Config of the matched route file, or None when it declares none."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def get_route_config() -> RouteConfig | None:
    """Return the matched route file's validated config, if any."""
    return route_config_var.get()
