"""ASGI response sending: perch response types to ASGI messages.

Handles single-body responses, chunked streaming responses, file
responses, and hand-off to mounted ASGI applications.
"""

import logging
from collections.abc import AsyncIterator, Iterator

import anyio.to_thread

from perch._internal.asgi import Receive, Scope, Send
from perch.http.response import (
    AnyResponse,
    FileResponse,
    MountedResponse,
    Response,
    StreamingResponse,
)

logger = logging.getLogger("perch.server")

# Set on the wire by the sender, never copied from response headers
_SENDER_OWNED = frozenset({"content-type", "content-length"})


def _body_allowed(status: int) -> bool:
    # 1xx, 204 and 304 responses carry no message body
    return not (100 <= status < 200 or status in (204, 304))


def _start(
    status: int,
    content_type: str,
    headers: tuple[tuple[str, str], ...],
    *extra: tuple[bytes, bytes],
) -> dict[str, object]:
    raw = [(b"content-type", content_type.encode("latin-1"))]
    raw.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in headers
        if name.lower() not in _SENDER_OWNED
    )
    raw.extend(extra)
    return {"type": "http.response.start", "status": status, "headers": raw}


def _body(chunk: bytes, *, more: bool) -> dict[str, object]:
    return {"type": "http.response.body", "body": chunk, "more_body": more}


async def _aiter(
    chunks: Iterator[str | bytes] | AsyncIterator[str | bytes],
) -> AsyncIterator[bytes]:
    if isinstance(chunks, AsyncIterator):
        async for chunk in chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk
    else:
        for chunk in chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


async def send_response(response: Response, send: Send) -> None:
    """Send a complete response with a ``Content-Length``."""
    body = response.body_bytes if _body_allowed(response.status) else b""
    length = (b"content-length", str(len(body)).encode("latin-1"))
    await send(_start(response.status, response.content_type, response.headers, length))
    await send(_body(body, more=False))


async def send_streaming_response(response: StreamingResponse, send: Send) -> None:
    """Send headers at once, then each non-empty chunk as it is produced.

    An error raised by the chunk source is logged and ends the body;
    the status line has already gone out by then.
    """
    chunked = (b"transfer-encoding", b"chunked")
    await send(_start(response.status, response.content_type, response.headers, chunked))

    try:
        async for chunk in _aiter(response.chunks):
            if chunk:
                await send(_body(chunk, more=True))
    except Exception:
        logger.exception("Error while streaming response body")

    await send(_body(b"", more=False))


async def send_file_response(response: FileResponse, send: Send) -> None:
    """Stream an open file in ``chunk_size`` pieces, then close it.

    Reads happen on a worker thread so a slow disk never blocks the
    event loop.
    """
    try:
        extra = []
        if response.content_length is not None:
            extra.append((b"content-length", str(response.content_length).encode("latin-1")))
        await send(_start(response.status, response.content_type, response.headers, *extra))

        if _body_allowed(response.status):
            while chunk := await anyio.to_thread.run_sync(response.file.read, response.chunk_size):
                await send(_body(chunk, more=True))

        await send(_body(b"", more=False))
    finally:
        response.file.close()


async def send_any(response: AnyResponse, scope: Scope, receive: Receive, send: Send) -> None:
    """Send *response* with the sender matching its type."""
    if isinstance(response, MountedResponse):
        mounted_scope = {**scope, "root_path": response.root_path, "path": response.path}
        await response.app(mounted_scope, receive, send)
    elif isinstance(response, FileResponse):
        await send_file_response(response, send)
    elif isinstance(response, StreamingResponse):
        await send_streaming_response(response, send)
    else:
        await send_response(response, send)
