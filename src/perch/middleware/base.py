"""Rack-style middleware base class.

A ``BaseMiddleware`` sits in front of a downstream application and
forwards requests to it. Subclasses override ``handle`` to intercept
the requests they care about and call ``forward`` for the rest.

The downstream app can be a perch ``App``, another middleware, or a
plain (sync or async) ``request -> response value`` callable. Every
middleware is itself an ASGI application, so a stack can be handed
straight to a server::

    class Teapot(BaseMiddleware):
        async def handle(self, request):
            if request.path == "/coffee":
                return self.build_response("I'm a teapot", status=418)
            return await self.forward(request)

    application = Teapot(app, default_headers={"X-Served-By": "perch"})
"""

from __future__ import annotations

import dataclasses
import logging
import mimetypes
import os
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, Self
from urllib.parse import unquote

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch.errors import Forbidden, HTTPError, NotFound
from perch.http.headers import merge_headers
from perch.http.request import Request
from perch.http.response import AnyResponse, FileResponse, Response, StreamingResponse
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.negotiation import negotiate
from perch.server.sender import send_any

logger = logging.getLogger("perch.middleware")

DEFAULT_STATUS = 200
DEFAULT_MIME_TYPE = "application/octet-stream"


class BaseMiddleware:
    """Wraps a downstream application and forwards requests to it.

    Args:
        app: The application this middleware sits in front of.
        default_status: Status used when a helper builds a response
            without one.
        default_headers: Headers merged into every helper-built response.
        configure: Called with the new middleware once it is constructed,
            for post-construction tweaks (extra headers, status, ...).

    ``default_status`` and ``default_headers`` stay mutable attributes
    until the first request.
    """

    def __init__(
        self,
        app: Any,
        *,
        default_status: int | None = None,
        default_headers: Mapping[str, str] | None = None,
        configure: Callable[[Self], None] | None = None,
    ) -> None:
        self.app = app
        self.default_status: int = DEFAULT_STATUS if default_status is None else default_status
        self.default_headers: dict[str, str] = dict(default_headers or {})

        if configure is not None:
            configure(self)

    # -- Request handling --

    async def handle(self, request: Request) -> AnyResponse:
        """Handle a request. The base implementation just forwards it."""
        return await self.forward(request)

    async def forward(self, request: Request) -> AnyResponse:
        """Pass *request* to the wrapped app and return its response."""
        downstream = getattr(self.app, "handle", None)
        if downstream is not None:
            return await downstream(request)
        return negotiate(await invoke(self.app, request))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope, receive)
        try:
            response = await self.handle(request)
        except HTTPError as exc:
            response = await handle_http_error(exc, request, {}, debug=False)
        except Exception as exc:
            response = await handle_internal_error(exc, request, {}, debug=False)

        await send_any(response, scope, receive, send)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Delegate lifespan to an ASGI downstream app, or acknowledge it."""
        if hasattr(self.app, "handle"):
            await self.app(scope, receive, send)
            return

        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Response helpers --

    def build_response(
        self,
        body: str | bytes | Iterable[str | bytes] | Any = "",
        headers: Mapping[str, str] | None = None,
        status: int | None = None,
    ) -> AnyResponse:
        """Create a response with this middleware's defaults applied.

        - *status* falls back to ``default_status``.
        - *headers* are merged over ``default_headers``; on a
          case-insensitive name collision the call's header wins.
        - A ``str``/``bytes`` body is sent as a single chunk; an open
          binary file is streamed; any other iterable is sent chunk by
          chunk.

        Example::

            self.build_response("Hello", {"Content-Type": "text/plain"}, 200)
        """
        status = self.default_status if status is None else status
        merged = merge_headers(self.default_headers, headers)

        content_type: str | None = None
        for name in list(merged):
            if name.lower() == "content-type":
                content_type = merged.pop(name)
        pairs = tuple(merged.items())

        if isinstance(body, (str, bytes)):
            return Response(
                body=body,
                status=status,
                content_type=content_type or "text/html; charset=utf-8",
                headers=pairs,
            )
        if hasattr(body, "read"):
            return FileResponse(
                file=body,
                status=status,
                content_type=content_type or DEFAULT_MIME_TYPE,
                headers=pairs,
            )
        return StreamingResponse(
            chunks=iter(body),
            status=status,
            content_type=content_type or DEFAULT_MIME_TYPE,
            headers=pairs,
        )

    def build_file_response(
        self,
        path: str | os.PathLike[str],
        headers: Mapping[str, str] | None = None,
        status: int | None = None,
    ) -> FileResponse:
        """Open the file at *path* and build a streaming response for it.

        ``Content-Type`` is always derived from the file extension.

        Raises ``NotFound`` when *path* does not name a readable regular
        file. The file is opened here and closed by the sender.
        """
        file_path = Path(path)
        try:
            handle = file_path.open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise NotFound(f"No such file: {file_path}") from exc

        response = self.build_response(
            handle,
            merge_headers(headers, {"Content-Type": self.mime_type_for(file_path)}),
            status,
        )
        assert isinstance(response, FileResponse)
        return dataclasses.replace(
            response,
            content_length=os.fstat(handle.fileno()).st_size,
            path=file_path,
        )

    # -- Path helpers --

    def mime_type_for(self, path: str | os.PathLike[str]) -> str:
        """Return the MIME type for *path* based on its extension."""
        content_type, _ = mimetypes.guess_type(os.fspath(path))
        return content_type or DEFAULT_MIME_TYPE

    def unescape(self, data: str) -> str:
        """Decode percent-escapes in *data*."""
        return unquote(data)

    def sanitize_path(
        self,
        path: str,
        root: str | os.PathLike[str] | None = None,
    ) -> Path:
        """Unescape *path* and resolve it to an absolute, normalized path.

        Without *root*, relative paths resolve against the working
        directory. With *root*, the path is resolved beneath it and
        ``Forbidden`` is raised if the result lands outside *root*::

            mw.sanitize_path("/css/site%20main.css", "public")
            # PosixPath('/srv/app/public/css/site main.css')

            mw.sanitize_path("../../etc/passwd", "public")
            # raises Forbidden
        """
        unescaped = self.unescape(path)
        if "\x00" in unescaped:
            raise Forbidden(f"Null byte in path {path!r}")

        if root is None:
            return Path(os.path.abspath(unescaped))

        root_path = Path(root).resolve()
        candidate = (root_path / unescaped.lstrip("/")).resolve()
        if not candidate.is_relative_to(root_path):
            logger.warning("Rejected path outside %s: %r", root_path, path)
            raise Forbidden(f"Path {path!r} escapes {root_path}")
        return candidate
