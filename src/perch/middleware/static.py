"""Static file serving from one or more public directories.

Serves files for matching URL prefixes. Directories are searched in
order and the first one containing the file serves it. Supports
root-level serving (``prefix="/"``) with automatic index file resolution.

Falls through to the wrapped app for non-matching paths.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, Self
from urllib.parse import quote

from perch.errors import Forbidden, NotFound
from perch.http.request import Request
from perch.http.response import AnyResponse
from perch.middleware.base import BaseMiddleware
from perch.routing.mount import normalize_prefix

logger = logging.getLogger("perch.static")


class StaticFiles(BaseMiddleware):
    """Middleware that serves static files from public directories.

    Files are served for GET/HEAD paths matching the configured prefix.
    Anything else, including files found in none of the directories,
    falls through to the wrapped app.

    Security: every candidate goes through ``sanitize_path`` with the
    public directory as its root, so ``..`` segments and symlinks cannot
    escape it.

    Usage::

        application = StaticFiles(app, ["public", "vendor/public"])

        # Under a prefix
        application = StaticFiles(app, ["assets"], prefix="/assets")
    """

    def __init__(
        self,
        app: Any,
        directories: Iterable[str | os.PathLike[str]],
        prefix: str = "/",
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
        default_status: int | None = None,
        default_headers: Mapping[str, str] | None = None,
        configure: Callable[[Self], None] | None = None,
    ) -> None:
        self.directories: tuple[Path, ...] = tuple(Path(d).resolve() for d in directories)
        self.prefix = normalize_prefix(prefix)
        self.index = index
        self.cache_control = cache_control
        super().__init__(
            app,
            default_status=default_status,
            default_headers=default_headers,
            configure=configure,
        )

    async def handle(self, request: Request) -> AnyResponse:
        """Serve a static file or fall through."""
        # Only serve GET and HEAD
        if request.method not in ("GET", "HEAD"):
            return await self.forward(request)

        path = request.path

        if self.prefix:
            if not path.startswith(self.prefix + "/") and path != self.prefix:
                return await self.forward(request)
            relative = path[len(self.prefix) :].lstrip("/")
        else:
            relative = path.lstrip("/")

        # request.path is already decoded and sanitize_path decodes again
        escaped = quote(relative, safe="/")
        for directory in self.directories:
            try:
                file_path = self.sanitize_path(escaped, directory)
            except Forbidden:
                return self.build_response("Forbidden", status=403)

            if file_path.is_dir():
                index_path = file_path / self.index
                if not index_path.is_file():
                    continue
                # Redirect to the trailing-slash URL so relative links resolve
                if relative and not path.endswith("/"):
                    return self.build_response(
                        "", {"Location": request.full_path + "/"}, status=301
                    )
                file_path = index_path

            try:
                response = self.build_file_response(
                    file_path, {"Cache-Control": self.cache_control}
                )
            except NotFound:
                continue
            logger.debug("Serving %s for %s", file_path, request.full_path)
            return response

        return await self.forward(request)
