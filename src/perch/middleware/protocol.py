"""The shape of pipeline middleware.

Pipeline middleware wraps ``App.handle``: it receives the request and a
``next`` callable, and returns whatever response it wants to send. It
does not need a base class, only the right call signature. Register it
with ``App.add_middleware``. To wrap an entire ASGI app instead, see
``perch.middleware.BaseMiddleware``.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from perch.http.request import Request
from perch.http.response import AnyResponse

# Continues the request down the chain
Next: TypeAlias = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """``async (request, next) -> response``, as a function or an object.

    ::

        async def server_header(request: Request, next: Next) -> AnyResponse:
            response = await next(request)
            return response.with_header("Server", "perch")

        class RequireToken:
            def __init__(self, token: str) -> None:
                self.token = token

            async def __call__(self, request: Request, next: Next) -> AnyResponse:
                if request.headers.get("x-token") != self.token:
                    return Response("", status=401)
                return await next(request)
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...


__all__ = ["AnyResponse", "Middleware", "Next"]
