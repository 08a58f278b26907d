"""Call user code that may be ``def`` or ``async def``."""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler*; await the result when it is awaitable.

    Route handlers, default handlers, error handlers and lifecycle hooks
    all go through here, so either flavour works everywhere.
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result
