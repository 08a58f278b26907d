"""Ordered router with compiled path patterns.

Routes are tried in registration order and the first match wins, so
overlapping patterns resolve the way they were declared. Re-registering
a (method, path) pair replaces the earlier handler in its original slot.
"""

import logging
import re
from dataclasses import replace
from typing import NamedTuple

from perch.errors import ConfigurationError, NotFound
from perch.routing.params import CONVERTERS
from perch.routing.route import ANY, Route, RouteMatch

logger = logging.getLogger("perch.routing")

_ANGLE_PARAM = re.compile(r"<[^>]*>")


class PathSegment(NamedTuple):
    """One ``/``-separated piece of a route path.

    ``users`` is literal; ``{id}`` and ``{id:int}`` are parameters.
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


def parse_path(path: str) -> list[PathSegment]:
    """Split a route path into literal and parameter segments::

        parse_path("/users/{id:int}")
        # [PathSegment("users"), PathSegment("{id:int}", True, "id", "int")]
    """
    if _ANGLE_PARAM.search(path):
        msg = (
            f"Route path {path!r} uses <param> syntax. "
            "Perch path parameters are written as {param} or {param:int}."
        )
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    for part in filter(None, path.strip("/").split("/")):
        if not (part.startswith("{") and part.endswith("}")):
            segments.append(PathSegment(part))
            continue
        name, _, kind = part[1:-1].partition(":")
        kind = kind or "str"
        if kind not in CONVERTERS:
            msg = f"Unknown path converter {kind!r} in route {path!r}."
            raise ConfigurationError(msg)
        segments.append(PathSegment(part, True, name, kind))
    return segments


def compile_path(path: str) -> tuple[re.Pattern[str], tuple[tuple[str, str], ...]]:
    """Compile a route path into an anchored regex and its param types.

    A trailing slash on the request is tolerated; a ``{name:path}``
    segment consumes the rest of the path and must come last.
    """
    segments = parse_path(path)
    if not segments:
        return re.compile(r"^/$"), ()

    parts: list[str] = []
    param_types: list[tuple[str, str]] = []
    for index, seg in enumerate(segments):
        if not seg.is_param:
            parts.append(re.escape(seg.value))
            continue
        if seg.param_type == "path" and index != len(segments) - 1:
            msg = f"{{{seg.param_name}:path}} must be the last segment of {path!r}."
            raise ConfigurationError(msg)
        capture = CONVERTERS[seg.param_type].regex
        parts.append(f"(?P<{seg.param_name}>{capture})")
        param_types.append((seg.param_name or "", seg.param_type))

    regex = "^/" + "/".join(parts) + "/?$"
    return re.compile(regex), tuple(param_types)


class Router:
    """Ordered route table.

    Usage::

        router = Router()
        router.add(Route("/users", handler, frozenset({"GET"})))
        router.add(Route("/users/{id:int}", handler, frozenset({"GET"})))
        router.compile()
        match = router.match("GET", "/users/42")
    """

    __slots__ = ("_compiled", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._compiled = False

    def add(self, route: Route) -> Route:
        """Add a route to the router. Must be called before compile().

        Methods already bound to the same path are taken over by the new
        route; the new route keeps the slot of the first route it
        overlaps so declaration order is preserved.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        pattern, param_types = compile_path(route.path)
        route = replace(route, pattern=pattern, param_types=param_types)

        slot: int | None = None
        kept: list[Route] = []
        for existing in self._routes:
            overlap = _overlapping_methods(existing.methods, route.methods)
            if existing.path != route.path or not overlap:
                kept.append(existing)
                continue
            logger.debug(
                "Route %s %s redefined; replacing %r",
                ",".join(sorted(overlap)),
                route.path,
                existing.handler,
            )
            if slot is None:
                slot = len(kept)
            remaining = existing.methods - route.methods
            if remaining and ANY not in route.methods:
                kept.append(replace(existing, methods=remaining))

        if slot is None:
            kept.append(route)
        else:
            kept.insert(slot, route)
        self._routes = kept
        return route

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes in match order."""
        return list(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against the route table.

        Returns the first ``RouteMatch`` in registration order.
        Raises ``NotFound`` if no route answers *method* at *path*.
        """
        for route in self._routes:
            if not route.allows(method):
                continue
            assert route.pattern is not None
            found = route.pattern.match(path)
            if found is not None:
                return RouteMatch(route=route, path_params=found.groupdict())

        raise NotFound(f"No route matches {method} {path!r}")


def _overlapping_methods(left: frozenset[str], right: frozenset[str]) -> frozenset[str]:
    if ANY in left or ANY in right:
        return left | right
    return left & right
