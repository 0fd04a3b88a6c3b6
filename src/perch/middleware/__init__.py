"""Middleware protocol for route-file and app-level middleware."""

from perch.middleware.protocol import AnyResponse, Middleware, Next

__all__ = ["AnyResponse", "Middleware", "Next"]
