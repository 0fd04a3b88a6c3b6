"""Immutable HTTP request.

Frozen metadata with async body access.  Path parameters are attached by
the dispatcher once a route matches, via ``with_path_params``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qs

from perch._internal.asgi import Receive, Scope
from perch.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query) is frozen at creation.
    The body is read asynchronously via ``body()``, ``text()``, ``json()``.
    """

    method: str
    path: str
    headers: Headers
    query: Mapping[str, list[str]]
    path_params: Mapping[str, str]
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: body cache (dict contents are mutable, the field is not)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    def query_value(self, key: str, default: str | None = None) -> str | None:
        """Return the first query-string value for *key*."""
        values = self.query.get(key)
        return values[0] if values else default

    def with_path_params(self, params: Mapping[str, str]) -> Request:
        """Return a copy carrying the matched route's parameters."""
        return replace(self, path_params=MappingProxyType(dict(params)))

    async def stream(self) -> AsyncIterator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def body(self) -> bytes:
        """Read the full request body (cached after the first call)."""
        if "_body" not in self._cache:
            self._cache["_body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["_body"]

    async def text(self) -> str:
        """Read the body as UTF-8 text."""
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(await self.body())

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        query_string = scope.get("query_string", b"").decode("latin-1")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=MappingProxyType(parse_qs(query_string, keep_blank_values=True)),
            path_params=MappingProxyType({}),
            client=tuple(client) if client else None,
            _receive=receive,
        )
