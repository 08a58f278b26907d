"""HTTP response types with chainable .with_*() transformation API.

Each transformation returns a new object; the original is never
touched. ``Response`` carries a complete body, ``StreamingResponse`` an
iterator of chunks, ``FileResponse`` an open file, and
``MountedResponse`` hands the exchange to another ASGI application.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, BinaryIO, Self, TypeAlias

DEFAULT_CHUNK_SIZE = 64 * 1024


class _Chainable:
    """``.with_*()`` helpers shared by every dataclass response."""

    __slots__ = ()

    status: int
    content_type: str
    headers: tuple[tuple[str, str], ...]

    def with_status(self, status: int) -> Self:
        """Return a copy with a different status code."""
        return replace(self, status=status)  # type: ignore[type-var]

    def with_header(self, name: str, value: str) -> Self:
        """Return a copy with one more header."""
        return replace(self, headers=(*self.headers, (name, value)))  # type: ignore[type-var]

    def with_headers(self, headers: Mapping[str, str]) -> Self:
        """Return a copy with the given headers appended."""
        return replace(self, headers=(*self.headers, *headers.items()))  # type: ignore[type-var]

    def with_content_type(self, content_type: str) -> Self:
        """Return a copy with a different content type."""
        return replace(self, content_type=content_type)  # type: ignore[type-var]

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive)."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None


@dataclass(frozen=True, slots=True)
class Response(_Chainable):
    """A complete HTTP response.

    Handlers rarely build one directly: returning a ``str``, ``bytes``,
    ``dict`` or ``(value, status)`` tuple is negotiated into a
    ``Response``. Build one when the default content type is wrong::

        return Response("id,name\\n", content_type="text/csv").with_status(201)
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect to *url*; negotiated into a ``Location`` response."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class StreamingResponse(_Chainable):
    """A response sent chunk by chunk with chunked transfer encoding.

    *chunks* may be a sync or async iterator of ``str``/``bytes``.
    """

    chunks: Iterator[str | bytes] | AsyncIterator[str | bytes]
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class FileResponse(_Chainable):
    """A response streamed from an already-open binary file.

    The sender reads ``chunk_size`` bytes at a time off the event loop
    and closes ``file`` when done, whether or not sending succeeded.
    ``content_length`` is sent when known so clients get a sized body.
    """

    file: BinaryIO
    status: int = 200
    content_type: str = "application/octet-stream"
    headers: tuple[tuple[str, str], ...] = ()
    content_length: int | None = None
    path: Path | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def read_all(self) -> bytes:
        """Read the remaining file contents and close it (tests, small files)."""
        try:
            return self.file.read()
        finally:
            self.file.close()


@dataclass(frozen=True, slots=True)
class MountedResponse:
    """Sentinel: hand the raw ASGI exchange to a mounted ASGI application.

    Produced when a request falls under a mount whose target is a plain
    ASGI callable rather than a perch ``App``. The sender calls *app*
    with the original scope, extending ``root_path`` by the mount prefix
    and keeping ``path`` as the full request path.

    The ``.with_*()`` methods are no-ops so pipeline middleware can treat
    it like any other response; the mounted app sends its own status
    and headers.
    """

    app: Any  # ASGI callable
    root_path: str
    path: str

    def with_status(self, status: int) -> Self:  # noqa: ARG002
        return self

    def with_header(self, name: str, value: str) -> Self:  # noqa: ARG002
        return self

    def with_headers(self, headers: Mapping[str, str]) -> Self:  # noqa: ARG002
        return self

    def with_content_type(self, content_type: str) -> Self:  # noqa: ARG002
        return self


# Any response type the pipeline can produce
AnyResponse: TypeAlias = Response | StreamingResponse | FileResponse | MountedResponse
