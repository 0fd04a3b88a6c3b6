"""Request-path matching against a compiled route manifest."""

from perch.routing.route import RouteMatch
from perch.routing.router import Router, match_segments, split_path

__all__ = ["RouteMatch", "Router", "match_segments", "split_path"]
