"""Settings for a perch ``App``."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

MOUNT_PRECEDENCE_CHOICES = ("mounts", "routes")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Everything an ``App`` reads at freeze and serve time.

    Pass only the fields you change::

        config = AppConfig(public_dirs=("public", "vendor/public"), port=3000)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    workers: int = 0  # 0 = auto-detect from CPU count
    reload_dirs: tuple[str, ...] = ()  # Extra directories to watch in debug mode
    log_level: str = "info"

    # Public directories, searched in order; the first hit serves the file
    public_dirs: tuple[str | Path, ...] = ()
    public_cache_control: str = "public, max-age=3600"

    # Routing
    # "mounts": mounted sub-apps are tried before block routes
    # "routes": block routes are tried before mounted sub-apps
    mount_precedence: Literal["mounts", "routes"] = "mounts"

    # Status of the empty response sent when nothing matches and no
    # default handler is registered
    empty_status: int = 404
