"""The request object handlers and middleware receive.

Mounted sub-applications see a rewritten ``path`` (the mount prefix
moves into ``root_path``) while ``full_path`` always keeps the path the
client actually requested.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field, replace
from typing import Any

from perch._internal.asgi import Receive, Scope
from perch.http.headers import Headers
from perch.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """One HTTP request, frozen once built.

    The body is read lazily with ``await request.body()`` (or ``text()``
    and ``json()``) and kept for later calls.

    ``path`` is relative to ``root_path``; ``full_path`` is the original
    request path and is never rewritten by mounting.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    full_path: str = ""
    root_path: str = ""
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    # ASGI receive, consumed by stream()
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Shared by derived copies so the body is read at most once
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """Content-Length as an int, or None when missing or malformed."""
        value = self.headers.get("content-length")
        if value is None or not value.isdigit():
            return None
        return int(value)

    @property
    def url(self) -> str:
        """``full_path`` plus the raw query string, if any."""
        if not self.query.raw:
            return self.full_path
        return f"{self.full_path}?{self.query.raw.decode('latin-1')}"

    # -- Derived requests --

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Return a copy carrying the params captured by the router."""
        return replace(self, path_params=path_params, _cache=self._cache)

    def remount(self, prefix: str) -> Request:
        """Return the request as seen by an app mounted at *prefix*.

        *prefix* moves from ``path`` into ``root_path``; ``full_path``
        is untouched::

            req.path == "/tests/subapp/hello"
            sub = req.remount("/tests/subapp")
            sub.path == "/hello"
            sub.root_path == "/tests/subapp"
            sub.full_path == "/tests/subapp/hello"
        """
        remainder = self.path.removeprefix(prefix)
        return replace(
            self,
            path=remainder or "/",
            root_path=self.root_path + prefix,
            path_params={},
            _cache=self._cache,
        )

    # -- Body --

    async def body(self) -> bytes:
        """The whole body; later calls return the same bytes."""
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def stream(self) -> AsyncGenerator[bytes]:
        """Yield body chunks straight from ASGI receive."""
        if self._receive is None:
            return
        more = True
        while more:
            message = await self._receive()
            more = message.get("more_body", False)
            if chunk := message.get("body", b""):
                yield chunk

    async def json(self) -> Any:
        return json_module.loads(await self.body())

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    # -- Construction --

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive | None = None,
        path_params: dict[str, str] | None = None,
    ) -> Request:
        """Build a request from an ASGI HTTP scope.

        ``scope["path"]`` may or may not already start with ``root_path``
        (servers differ); both produce the same request.
        """
        root_path = scope.get("root_path", "")
        raw_path = scope["path"]
        if root_path and raw_path.startswith(root_path):
            full_path, path = raw_path, raw_path[len(root_path) :]
        else:
            full_path, path = root_path + raw_path, raw_path

        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=path or "/",
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            path_params=path_params or {},
            full_path=full_path,
            root_path=root_path,
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
