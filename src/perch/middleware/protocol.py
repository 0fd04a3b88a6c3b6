"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required.  Route files export one as ``middleware``, or a
list of them; the app adds global ones with ``App.add_middleware``.

``next`` is the rest of the chain and always resolves to a ``Response``:
handler return values (dicts, strings, ``Redirect``) are negotiated
before middleware sees them.  Returning without calling ``next`` ends the
request with that response; raising ``HTTPError`` is honoured the same
way as from a handler.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from perch.http.request import Request
from perch.http.response import Redirect, Response

# What a middleware may return; negotiated before the next link sees it
type AnyResponse = Response | Redirect

# The next handler in the middleware chain, already negotiated
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for perch middleware.

    Accepts both functions and callable objects::

        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
