"""The ``App``: register at import time, compile once, then serve.

Nothing registered is looked at until the first ``handle()``,
ASGI call or ``run()``. That call builds the router, the mount table
and the middleware pipeline and locks the app against further changes.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.types import DefaultHandler, ErrorHandler, Handler
from perch.config import MOUNT_PRECEDENCE_CHOICES, AppConfig
from perch.errors import ConfigurationError, HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import AnyResponse, MountedResponse, Response
from perch.middleware.protocol import Middleware, Next
from perch.routing.mount import MountTable
from perch.routing.route import ANY, Route
from perch.routing.router import Router
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.handler import (
    build_pipeline,
    handle_request,
    invoke_default,
    invoke_route,
)

logger = logging.getLogger("perch.routing")


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    handler: Handler
    methods: list[str] | None
    name: str | None


class App:
    """The perch application.

    Routes are tried in declaration order, mounted sub-apps by longest
    prefix, and the default handler catches whatever is left. With no
    default handler an unmatched request gets an empty-bodied 404::

        app = App(AppConfig(public_dirs=("public",)))

        @app.get("/tests/get")
        def get():
            return "block tested"

        @app.default
        def fallback():
            halt(404, "nothing to see here")

        app.mount("/tests/subapp", SubApp())

    Registration is not thread-safe and is meant for import time. The
    first request (or ``run()``) compiles the tables exactly once under a
    lock, so concurrent first requests see a single frozen app.
    """

    __slots__ = (
        "_default_handler",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pending_mounts",
        "_pending_routes",
        # Compiled state (populated by _freeze)
        "_mounts",
        "_pipeline",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[_PendingRoute] = []
        self._pending_mounts: list[tuple[str, Any]] = []
        self._default_handler: DefaultHandler | None = None
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state: set during _freeze()
        self._router: Router | None = None
        self._mounts: MountTable | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._pipeline: Next | None = None

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``; ``["*"]``
                answers every method.
            name: Optional route name.

        Registering the same method and path again replaces the earlier
        handler.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._pending_routes.append(_PendingRoute(path, func, methods, name))
            return func

        return decorator

    def get(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, methods=["GET"], name=name)

    def post(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(path, methods=["POST"], name=name)

    def put(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        """Register a PUT route."""
        return self.route(path, methods=["PUT"], name=name)

    def patch(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        """Register a PATCH route."""
        return self.route(path, methods=["PATCH"], name=name)

    def delete(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        """Register a DELETE route."""
        return self.route(path, methods=["DELETE"], name=name)

    def any(self, path: str, *, name: str | None = None) -> Callable[[Handler], Handler]:
        """Register a route that answers every HTTP method."""
        return self.route(path, methods=[ANY], name=name)

    # -- Default handler --

    def default(self, func: DefaultHandler) -> DefaultHandler:
        """Register the fallback handler via decorator.

        Runs when no mount or route matches. Only one default handler is
        active per app: registering another replaces it, also after the
        app has started serving.

        Usage::

            @app.default
            def fallback(request):
                return f"nothing at {request.path}", 404
        """
        if self._default_handler is not None:
            logger.debug("Default handler redefined; replacing %r", self._default_handler)
        self._default_handler = func
        return func

    # -- Sub-applications --

    def mount(self, prefix: str, app: Any) -> None:
        """Mount a sub-application at *prefix*.

        Every request whose path is *prefix* or lies below it is handed
        to *app* with the prefix stripped from ``request.path``; the
        original path stays available as ``request.full_path``.

        *app* may be another perch ``App`` (or middleware wrapping one)
        or any ASGI callable. Mounting the same prefix again replaces
        the earlier app.
        """
        self._check_not_frozen()
        self._pending_mounts.append((prefix, app))

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Handle an HTTP status or exception class with *func*.

        Class handlers also catch subclasses and win over status
        handlers. *func* may take ``()``, ``(request)`` or
        ``(request, exc)``::

            @app.error(404)
            def missing(request):
                return f"nothing at {request.path}"
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Wrap request dispatch in ``middleware(request, next)``.

        The first middleware added is the outermost one. Public
        directories, mounts and routes all sit inside the chain.
        """
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Run *func* (sync or async) when the server starts up."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Run *func* (sync or async) when the server shuts down."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Compile the app and serve it with pounce.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        self._ensure_frozen()

        from perch.server.run import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            debug=self.config.debug,
            workers=self.config.workers,
            reload_dirs=self.config.reload_dirs,
            log_level=self.config.log_level,
        )

    # -- Request handling --

    async def handle(self, request: Request) -> AnyResponse:
        """Dispatch a request through middleware, static files, mounts, and routes.

        This is the request-level entry point used by ``__call__``, by
        parent apps this one is mounted into, and by ``BaseMiddleware``
        wrappers. Errors raised by handlers are mapped to responses with
        this app's error handlers, so it never raises for HTTP failures.
        """
        self._ensure_frozen()
        assert self._pipeline is not None

        handlers, debug = self._error_handlers, self.config.debug
        try:
            return await self._pipeline(request)
        except HTTPError as exc:
            return await handle_http_error(exc, request, handlers, debug)
        except Exception as exc:
            return await handle_internal_error(exc, request, handlers, debug)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        await handle_request(scope, receive, send, handle=self.handle)

    async def _dispatch(self, request: Request) -> AnyResponse:
        """Innermost handler: mounts and routes, then the default."""
        if self.config.mount_precedence == "mounts":
            steps = (self._dispatch_mount, self._dispatch_route)
        else:
            steps = (self._dispatch_route, self._dispatch_mount)

        for step in steps:
            response = await step(request)
            if response is not None:
                return response

        return await self._dispatch_default(request)

    async def _dispatch_route(self, request: Request) -> AnyResponse | None:
        assert self._router is not None
        try:
            match = self._router.match(request.method, request.path)
        except NotFound:
            return None
        return await invoke_route(match, request)

    async def _dispatch_mount(self, request: Request) -> AnyResponse | None:
        assert self._mounts is not None
        mount = self._mounts.match(request.path)
        if mount is None:
            return None

        sub_request = request.remount(mount.prefix)
        handle = getattr(mount.app, "handle", None)
        if handle is not None:
            return await handle(sub_request)
        return MountedResponse(
            app=mount.app,
            root_path=sub_request.root_path,
            path=request.full_path,
        )

    async def _dispatch_default(self, request: Request) -> AnyResponse:
        if self._default_handler is None:
            return Response(body="", status=self.config.empty_status)
        return await invoke_default(self._default_handler, request)

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Answer the server's lifespan messages.

        The app is compiled before startup hooks run, so a bad
        configuration fails startup instead of the first request.
        """
        self._ensure_frozen()

        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                try:
                    await _run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif message["type"] == "lifespan.shutdown":
                await _run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            # Another thread may have compiled while we waited.
            if not self._frozen:
                self._freeze()

    def _freeze(self) -> None:
        """Build the router, mount table and pipeline. Caller holds the lock."""
        precedence = self.config.mount_precedence
        if precedence not in MOUNT_PRECEDENCE_CHOICES:
            msg = f"mount_precedence={precedence!r}; expected one of {MOUNT_PRECEDENCE_CHOICES}"
            raise ConfigurationError(msg)

        router = Router()
        for pending in self._pending_routes:
            verbs = pending.methods or ["GET"]
            router.add(
                Route(
                    path=pending.path,
                    handler=pending.handler,
                    methods=frozenset(verb.upper() for verb in verbs),
                    name=pending.name,
                )
            )
        router.compile()

        mounts = MountTable()
        for prefix, target in self._pending_mounts:
            mounts.add(prefix, target)
            logger.debug("Mounted %r at %r", target, prefix)
        mounts.compile()

        # Public directories answer before mounts and routes, inside middleware.
        inner: Next = self._dispatch
        if self.config.public_dirs:
            from perch.middleware.static import StaticFiles

            inner = StaticFiles(
                self._dispatch,
                self.config.public_dirs,
                cache_control=self.config.public_cache_control,
            ).handle

        self._router = router
        self._mounts = mounts
        self._middleware = tuple(self._middleware_list)
        self._pipeline = build_pipeline(inner, self._middleware)
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify a perch App once it is serving. "
                "Add routes, mounts, hooks and middleware at import time."
            )
            raise RuntimeError(msg)


async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
    """Call each lifecycle hook in order, awaiting the async ones."""
    for hook in hooks:
        result = hook()
        if inspect.isawaitable(result):
            await result
