"""Routing: ordered route table and prefix mount table.

Routes and mounts are registered during setup and compiled into
immutable lookup structures when the app freezes.
"""

from perch.routing.mount import Mount, MountTable, normalize_prefix
from perch.routing.route import ANY, Route, RouteMatch
from perch.routing.router import Router, parse_path

__all__ = [
    "ANY",
    "Mount",
    "MountTable",
    "Route",
    "RouteMatch",
    "Router",
    "normalize_prefix",
    "parse_path",
]
