"""Perch: file-based routing and request composition for ASGI.

A directory tree of conventionally named files becomes a validated route
table.  Layouts and middleware are inherited down the tree; error,
not-found and loading boundaries resolve to the nearest ancestor.

Basic usage::

    from perch import App, AppConfig

    app = App(AppConfig(root_dir="app"))
    app.run()

A route tree::

    app/
      layout.py          # wraps every page
      page.py            # /
      error.py           # nearest error boundary
      users/
        [id]/
          page.py        # /users/:id
      api/
        health/
          route.py       # /api/health (get/post functions)
"""

__version__ = "0.1.0"
__all__ = [
    "AnyResponse",
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "PerchError",
    "Redirect",
    "Request",
    "Response",
    "RouteConfig",
    "RouteManifest",
    "build_manifest",
    "get_request",
    "get_route_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from perch.http import response as _resp

        return getattr(_resp, name)

    if name in ("AnyResponse", "Middleware", "Next"):
        from perch.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("get_request", "get_route_config"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name == "RouteConfig":
        from perch.modules.route_config import RouteConfig

        return RouteConfig

    if name in ("RouteManifest", "build_manifest"):
        from perch import routes as _routes

        return getattr(_routes, name)

    if name in ("PerchError", "ConfigurationError", "HTTPError", "MethodNotAllowed", "NotFound"):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
