"""Default AddOns directory selection.

The client keeps add-ons under the user's documents folder. On Windows that is
the real ``My Documents``; elsewhere the game runs through Steam/Proton and
the folder lives inside the compatibility prefix of app 306130.
"""
from __future__ import annotations

import os
import sys
from typing import Optional

from .config import get_addons_path

ESO_STEAM_APP_ID = "306130"

_GAME_SUBDIR = ("My Documents", "Elder Scrolls Online", "live", "AddOns")


def default_addons_path(os_name: str, home_dir: str, override: Optional[str] = None) -> str:
    """Pick the AddOns directory.

    Args:
        os_name: Platform identifier as in ``sys.platform`` ("win32", "linux", ...)
        home_dir: The user's home directory
        override: Configured path; wins whenever it is non-empty

    Returns:
        The directory path (not checked for existence)
    """
    if override:
        return override
    if os_name.startswith("win"):
        return os.path.join(home_dir, *_GAME_SUBDIR)
    return os.path.join(
        home_dir, ".steam", "steamapps", "compatdata", ESO_STEAM_APP_ID,
        "pfx", "drive_c", "users", "steamuser", *_GAME_SUBDIR,
    )


def resolve_addons_path(cli_path: Optional[str] = None) -> str:
    """Combine the CLI option, the config file and the platform default."""
    if cli_path:
        return cli_path
    return default_addons_path(sys.platform, os.path.expanduser("~"), get_addons_path())
