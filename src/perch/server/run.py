"""Server entry points.

Starts a pounce ASGI server with a live perch App (or any middleware
stack wrapping one). Debug mode runs a single worker with reload;
otherwise pounce picks the worker count.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("perch.server")


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    debug: bool = False,
    workers: int = 0,
    reload_dirs: tuple[str, ...] = (),
    log_level: str = "info",
) -> None:
    """Start a pounce server with the given ASGI application.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but perch has a live ``App`` object. We use ``pounce.Server``
    directly with the ASGI callable.

    Args:
        app: ASGI callable (perch App or BaseMiddleware stack).
        host: Bind host address.
        port: Bind port number.
        debug: Single worker with auto-reload on file changes.
        workers: Worker count when not in debug (0 = auto-detect).
        reload_dirs: Extra directories to watch alongside cwd.
        log_level: Server log level (debug, info, warning, error).
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    if debug:
        config = ServerConfig(
            host=host,
            port=port,
            workers=1,
            reload=True,
            reload_dirs=reload_dirs,
            log_level=log_level,
        )
    else:
        config = ServerConfig(
            host=host,
            port=port,
            workers=workers,
            log_level=log_level,
        )

    logger.info("Serving on http://%s:%d (debug=%s)", host, port, debug)
    server = Server(config, app)
    server.run()
