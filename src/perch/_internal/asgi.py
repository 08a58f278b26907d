"""Raw ASGI type aliases.

Only the server layer and ``BaseMiddleware.__call__`` touch these.
Users interact with Request and Response.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# Raw ASGI types
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]

# Any ASGI 3.0 application
ASGIApp: TypeAlias = Callable[[Scope, Receive, Send], Awaitable[None]]
