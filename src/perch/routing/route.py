"""Compiled route entries."""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

# Registering a route for ANY binds it to every HTTP method
ANY = "*"


@dataclass(frozen=True, slots=True)
class Route:
    """A handler bound to a path pattern and a set of methods.

    ``pattern`` and ``param_types`` are filled in by ``Router.add``; a
    route built by hand has neither until it is added.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    name: str | None = None
    pattern: re.Pattern[str] | None = field(default=None, compare=False)
    param_types: tuple[tuple[str, str], ...] = ()

    def allows(self, method: str) -> bool:
        return ANY in self.methods or method in self.methods


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """The route that answered a request, with its captured parameters."""

    route: Route
    path_params: dict[str, str]
