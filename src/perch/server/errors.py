"""Generic error pages and correlation ids.

Used when no boundary file applies, or when a boundary itself fails.
Raw exception text reaches the page only in debug mode.
"""

import html
import logging
import secrets

from kida import Environment

from perch.errors import HTTPError
from perch.http.response import Response

CORRELATION_HEADER = "X-Correlation-Id"

_FALLBACK_SOURCE = """<!DOCTYPE html>
<html>
<head><title>{{ status }} {{ title }}</title></head>
<body>
<h1>{{ status }} {{ title }}</h1>
{% if message %}<p>{{ message }}</p>{% endif %}
{% if error_id %}<p>Reference: <code>{{ error_id }}</code></p>{% endif %}
{% if detail %}<pre>{{ detail }}</pre>{% endif %}
</body>
</html>
"""

logger = logging.getLogger("perch.server")

_TITLES = {404: "Not Found", 405: "Method Not Allowed", 500: "Internal Server Error"}


def new_correlation_id() -> str:
    """Opaque id tying a 500 response to its server-side log line."""
    return secrets.token_hex(8)


def render_fallback(
    env: Environment,
    status: int,
    *,
    message: str = "",
    error_id: str | None = None,
    detail: str | None = None,
) -> str:
    """Render the built-in error page."""
    context = {
        "status": status,
        "title": _TITLES.get(status, "Error"),
        "message": message,
        "error_id": error_id,
        "detail": detail,
    }
    try:
        return env.from_string(_FALLBACK_SOURCE).render(context)
    except Exception:
        logger.exception("Built-in error page failed to render")
        return f"<h1>{status} {html.escape(context['title'])}</h1>"


def fallback_not_found(env: Environment) -> Response:
    body = render_fallback(env, 404, message="The page you requested does not exist.")
    return Response(body=body, status=404)


def fallback_internal_error(env: Environment, error_id: str, *, detail: str | None = None) -> Response:
    body = render_fallback(
        env,
        500,
        message="Something went wrong while handling this request.",
        error_id=error_id,
        detail=detail,
    )
    return Response(body=body, status=500).with_header(CORRELATION_HEADER, error_id)


def http_error_response(exc: HTTPError, *, debug: bool = False) -> Response:
    """Plain response for an HTTPError that has no boundary (not 404/500)."""
    detail = exc.detail or _TITLES.get(exc.status, f"Error {exc.status}")
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"
    response = Response(body=detail, status=exc.status, content_type="text/plain; charset=utf-8")
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response
