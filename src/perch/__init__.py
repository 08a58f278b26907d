"""Perch: a small ASGI convenience layer.

Path-based handler routing, sub-application mounting, static files from
several public directories, a default responder for unmatched routes,
and a Rack-style middleware base class.

Basic usage::

    from perch import App, AppConfig

    app = App(AppConfig(public_dirs=("public",)))

    @app.get("/")
    def index():
        return "Hello, World!"

    @app.default
    def fallback(request):
        return f"nothing at {request.path}", 404

    app.mount("/admin", admin_app)

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "ANY",
    "AnyResponse",
    "App",
    "AppConfig",
    "BaseMiddleware",
    "ConfigurationError",
    "FileResponse",
    "Forbidden",
    "HTTPError",
    "Halt",
    "Middleware",
    "Next",
    "NotFound",
    "PerchError",
    "Redirect",
    "Request",
    "Response",
    "StaticFiles",
    "StreamingResponse",
    "halt",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name in ("AnyResponse", "FileResponse", "Redirect", "Response", "StreamingResponse"):
        from perch.http import response as _resp

        return getattr(_resp, name)

    if name in ("BaseMiddleware", "Middleware", "Next", "StaticFiles"):
        from perch import middleware as _mw

        return getattr(_mw, name)

    if name == "ANY":
        from perch.routing.route import ANY

        return ANY

    if name in (
        "ConfigurationError",
        "Forbidden",
        "HTTPError",
        "Halt",
        "NotFound",
        "PerchError",
        "halt",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
