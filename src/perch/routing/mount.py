"""Mount table: path prefixes mapped to sub-applications.

A mount captures every request whose path equals its prefix or lies
beneath it. When several prefixes match, the longest one wins, so
``/api/v2`` shadows ``/api`` regardless of declaration order.
"""

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("perch.routing")


def normalize_prefix(prefix: str) -> str:
    """Normalize a mount prefix: leading slash, no trailing slash.

    ``"/"`` normalizes to ``""`` (mount at the root, matches everything)::

        normalize_prefix("/tests/subapp/") -> "/tests/subapp"
        normalize_prefix("tests")          -> "/tests"
        normalize_prefix("/")              -> ""
    """
    stripped = "/" + prefix.strip("/")
    return stripped if stripped != "/" else ""


@dataclass(frozen=True, slots=True)
class Mount:
    """A sub-application bound to a normalized path prefix.

    ``app`` is either a perch ``App`` (anything with an async
    ``handle(request)``) or a plain ASGI callable.
    """

    prefix: str
    app: Any

    def matches(self, path: str) -> bool:
        """Whether *path* falls under this mount's prefix."""
        if not self.prefix:
            return True
        return path == self.prefix or path.startswith(self.prefix + "/")


class MountTable:
    """Prefix -> sub-application table.

    Mounting the same prefix twice replaces the earlier application.
    """

    __slots__ = ("_compiled", "_mounts", "_ordered")

    def __init__(self) -> None:
        self._mounts: dict[str, Mount] = {}
        self._ordered: tuple[Mount, ...] = ()
        self._compiled = False

    def add(self, prefix: str, app: Any) -> Mount:
        """Bind *app* at *prefix*. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add mounts after compilation."
            raise RuntimeError(msg)
        mount = Mount(prefix=normalize_prefix(prefix), app=app)
        previous = self._mounts.get(mount.prefix)
        if previous is not None:
            logger.debug("Mount %r redefined; replacing %r", mount.prefix or "/", previous.app)
        self._mounts[mount.prefix] = mount
        return mount

    def compile(self) -> None:
        """Freeze the table. No more mounts can be added."""
        self._ordered = tuple(self.mounts)
        self._compiled = True

    @property
    def mounts(self) -> list[Mount]:
        """All mounts, longest prefix first."""
        return sorted(self._mounts.values(), key=lambda m: len(m.prefix), reverse=True)

    def __len__(self) -> int:
        return len(self._mounts)

    def match(self, path: str) -> Mount | None:
        """Return the most specific mount covering *path*, or None."""
        for mount in self._ordered if self._compiled else self.mounts:
            if mount.matches(path):
                return mount
        return None
