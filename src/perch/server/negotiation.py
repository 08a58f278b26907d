"""Turn whatever a handler returns into a response object."""

import json as json_module
from typing import Any

from perch.http.response import (
    AnyResponse,
    FileResponse,
    MountedResponse,
    Redirect,
    Response,
    StreamingResponse,
)


def negotiate(value: Any) -> AnyResponse:
    """Convert a handler's return value to a response.

    Dispatch order:

    1. ``Response`` / ``StreamingResponse`` / ``FileResponse`` /
       ``MountedResponse``  -> pass through
    2. ``Redirect``          -> 302 with Location header
    3. ``None``              -> 200, empty body
    4. ``str``               -> 200, text/html
    5. ``bytes``             -> 200, application/octet-stream
    6. ``dict`` / ``list``   -> 200, application/json
    7. ``(value, int)``      -> negotiate value, override status
    8. ``(value, int, dict)`` -> negotiate value, override status + headers
    """
    match value:
        case Response() | StreamingResponse() | FileResponse() | MountedResponse():
            return value
        case Redirect():
            return (
                Response(body="")
                .with_status(value.status)
                .with_header("Location", value.url)
                .with_headers(dict(value.headers))
            )
        case None:
            return Response(body="")
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(
                body=json_module.dumps(value, default=str),
                content_type="application/json; charset=utf-8",
            )
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return str, bytes, dict, list, None, Response, or Redirect."
            )
            raise TypeError(msg)
