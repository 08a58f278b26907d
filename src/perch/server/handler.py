"""From ASGI scope to handler call and back.

``handle_request`` wraps the scope in a ``Request``, passes it to an
app's ``handle`` and sends whatever comes back. The ``invoke_*``
helpers fill a handler's parameters from the request and its path
parameters, then negotiate the return value into a response.
"""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch.http.request import Request
from perch.http.response import AnyResponse
from perch.middleware.protocol import Next
from perch.routing.params import convert_param
from perch.routing.route import RouteMatch
from perch.server.negotiation import negotiate
from perch.server.sender import send_any


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    handle: Callable[[Request], Awaitable[AnyResponse]],
) -> None:
    """Process a single HTTP request through *handle* and send the result."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = await handle(request)
    await send_any(response, scope, receive, send)


def _link(middleware: Callable[..., Any], downstream: Next) -> Next:
    async def call(request: Request) -> AnyResponse:
        return await middleware(request, downstream)

    return call


def build_pipeline(
    dispatch: Next,
    middleware: tuple[Callable[..., Any], ...],
) -> Next:
    """Wrap *dispatch* in protocol middleware, first registered outermost."""
    handler = dispatch
    for mw in reversed(middleware):
        handler = _link(mw, handler)
    return handler


async def invoke_route(match: RouteMatch, request: Request) -> AnyResponse:
    """Run the matched handler and negotiate what it returns."""
    route = match.route
    request = request.with_path_params(match.path_params)
    kwargs = build_handler_kwargs(
        route.handler, request, match.path_params, dict(route.param_types)
    )
    return negotiate(await invoke(route.handler, **kwargs))


async def invoke_default(handler: Callable[..., Any], request: Request) -> AnyResponse:
    """Call the default (fallback) handler with the unmatched request."""
    kwargs = build_handler_kwargs(handler, request, {}, {})
    result = await invoke(handler, **kwargs)
    return negotiate(result)


def build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    path_params: dict[str, str],
    param_types: dict[str, str],
) -> dict[str, Any]:
    """Keyword arguments for *handler*, chosen by its signature.

    A parameter named ``request`` or annotated ``Request`` gets the
    request. A parameter named after a path parameter gets its value,
    passed through the annotation when there is one and through the
    route converter (``{id:int}``) otherwise. Other parameters are left
    to their defaults.
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name in path_params:
            value = path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = convert_param(value, param_types.get(name, "str"))

    return kwargs
