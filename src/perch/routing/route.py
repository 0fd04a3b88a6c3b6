"""RouteMatch frozen dataclass."""

from collections.abc import Mapping
from dataclasses import dataclass

from perch.routes.types import RouteEntry


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    entry: RouteEntry
    path_params: Mapping[str, str]
