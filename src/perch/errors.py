"""Perch exception hierarchy.

Shared across Router, App, handler, and middleware so every module
raises and catches the same types.
"""

from dataclasses import dataclass
from typing import NoReturn


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when app configuration is invalid.

    Typically raised during ``App._freeze()`` at startup.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The ASGI handler
    catches these and dispatches to the matching ``@app.error()`` handler.

    When *body* is set it is sent verbatim instead of the default
    error text (see ``halt``).
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()
    body: str | bytes | None = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route, mount, or file matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403: the request resolved to something it may not touch.

    Raised by ``BaseMiddleware.sanitize_path`` when a path escapes
    its root directory.
    """

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class Halt(HTTPError):  # noqa: N818
    """Raised by ``halt``: the response body travels with the exception."""

    def __init__(
        self,
        status: int,
        body: str | bytes = "",
        headers: tuple[tuple[str, str], ...] = (),
    ) -> None:
        super().__init__(status=status, headers=headers, body=body)


def halt(
    status: int,
    body: str | bytes = "",
    headers: dict[str, str] | None = None,
) -> NoReturn:
    """Stop the current handler and respond immediately.

    The body is sent as-is, bypassing registered error handlers'
    default text::

        @app.default
        def fallback():
            halt(404, "nothing to see here")
    """
    raise Halt(
        status=status,
        headers=tuple((headers or {}).items()),
        body=body,
    )
