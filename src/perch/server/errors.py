"""Error responses for perch requests.

``HTTPError`` (including ``halt``) and unexpected exceptions raised
while handling a request end up here and leave as ordinary responses,
through the app's ``@app.error`` handlers when one is registered.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from perch._internal.invoke import invoke
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import AnyResponse, Response
from perch.server.negotiation import negotiate

logger = logging.getLogger("perch.server")


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> AnyResponse:
    """Call an error handler with as many of (request, exc) as it takes."""
    arity = len(inspect.signature(handler).parameters)
    result = await invoke(handler, *(request, exc)[:arity])
    return negotiate(result)


def find_error_handler(
    error_handlers: dict[int | type, Callable[..., Any]],
    exc: Exception,
    status: int,
) -> Callable[..., Any] | None:
    """Most specific handler for *exc*: by class (walking the MRO), then by status."""
    for cls in type(exc).__mro__:
        if cls is BaseException:
            break
        if cls in error_handlers:
            return error_handlers[cls]
    return error_handlers.get(status)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> AnyResponse:
    """Turn an ``HTTPError`` into a response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.full_path, exc.detail)

    # halt() bodies are sent verbatim
    if exc.body is not None:
        return Response(body=exc.body, status=exc.status, headers=exc.headers)

    handler = find_error_handler(error_handlers, exc, exc.status)
    if handler is None:
        text = exc.detail or f"Error {exc.status}"
        if debug and exc.detail:
            text = f"{exc.status}: {exc.detail}"
        return Response(body=text, status=exc.status, headers=exc.headers)

    response = await call_error_handler(handler, request, exc)
    # A plain 200 from the handler inherits the error's status
    if isinstance(response, Response) and response.status == 200:
        response = response.with_status(exc.status)
    return response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> AnyResponse:
    """Turn an unexpected exception into a 500, logging the traceback."""
    logger.exception("500 %s %s", request.method, request.full_path)

    handler = find_error_handler(error_handlers, exc, 500)
    if handler is not None:
        return await call_error_handler(handler, request, exc)

    body = "Internal Server Error"
    if debug:
        body += f"\n\n{type(exc).__name__}: {exc}"
    return Response(body=body, status=500)
