"""Centralized configuration paths and constants for the wmctl daemon.

Single source of truth for the file paths and identifiers used across the daemon.
"""

import os
from pathlib import Path
from typing import Final


# Identity reported to IPC clients; kept from the shell extension this service replaces
SERVICE_NAME: Final[str] = "org.gnome.Shell.Extensions.WMCtrl1"
SERVICE_VERSION: Final[str] = "1.0.0"

# Class keys of the clipboard manager (X11 and native Wayland) that must never
# receive focus through cycling
DEFAULT_DENYLISTED_CLASSES: Final[tuple] = (
    "copyq.copyq",
    "com.github.hluk.copyq.com.github.hluk.copyq",
)

UNKNOWN_CLASS_PART: Final[str] = "unknown"
PINNED_WORKSPACE: Final[int] = -1


class ConfigPaths:
    """Centralized configuration paths.

    All paths are computed once at import time based on user's home directory.

    Example:
        from .constants import ConfigPaths

        config = load_service_config(ConfigPaths.CONFIG_FILE)
    """

    # Base directories
    HOME: Final[Path] = Path.home()
    CONFIG_DIR: Final[Path] = HOME / ".config" / "wmctl"
    CACHE_DIR: Final[Path] = HOME / ".cache" / "wmctl"

    CONFIG_FILE: Final[Path] = CONFIG_DIR / "config.json"

    # IPC socket
    IPC_SOCKET_PATH: Final[Path] = CACHE_DIR / "ipc.sock"

    @classmethod
    def socket_path(cls) -> Path:
        """Socket path, honouring the WMCTL_SOCKET override."""
        override = os.environ.get("WMCTL_SOCKET")
        return Path(override) if override else cls.IPC_SOCKET_PATH

    @classmethod
    def ensure_dirs(cls) -> None:
        """Create the config and cache directories if they don't exist."""
        for d in (cls.CONFIG_DIR, cls.CACHE_DIR):
            d.mkdir(parents=True, exist_ok=True)
