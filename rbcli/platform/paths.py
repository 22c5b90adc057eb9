"""Where rbcli looks for per-user files.

Only the config file lives outside the working tree; its directory follows
XDG on Linux/macOS and ``%APPDATA%`` on Windows.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

__all__ = [
    "default_config_file",
    "home",
    "user_config_dir",
]

APP_NAME = "rbcli"
CONFIG_FILE_NAME = "config.toml"


def _is_windows() -> bool:
    return sys.platform == "win32"


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name)
    return Path(value) if value else None


@lru_cache(maxsize=1)
def home() -> Path:
    return _env_path("USERPROFILE" if _is_windows() else "HOME") or Path.home()


@lru_cache(maxsize=1)
def user_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/rbcli`` (default ``~/.config/rbcli``) or ``%APPDATA%/rbcli``."""
    if _is_windows():
        base = _env_path("APPDATA") or home() / "AppData" / "Roaming"
    else:
        base = _env_path("XDG_CONFIG_HOME") or home() / ".config"
    return base / APP_NAME


def default_config_file() -> Path:
    return user_config_dir() / CONFIG_FILE_NAME


def clear_caches() -> None:
    """Forget cached directories after HOME or XDG_CONFIG_HOME changed."""
    home.cache_clear()
    user_config_dir.cache_clear()
