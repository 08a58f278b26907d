"""Middleware: pipeline protocol and Rack-style wrappers.

Pipeline middleware is any callable matching:
    async def mw(request: Request, next: Next) -> AnyResponse

Wrapper middleware:
    BaseMiddleware -- forwards to a wrapped app; response, MIME and path helpers
    StaticFiles -- Serve static files from one or more public directories
"""

from perch.middleware.base import BaseMiddleware
from perch.middleware.protocol import AnyResponse, Middleware, Next
from perch.middleware.static import StaticFiles

__all__ = [
    "AnyResponse",
    "BaseMiddleware",
    "Middleware",
    "Next",
    "StaticFiles",
]
