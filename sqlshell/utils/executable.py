"""Locating the ``sqlite3`` program to drive.

Resolution order: the ``SQLSHELL_SQLITE3`` environment variable, then a
binary previously installed into the per-user cache directory, then
``sqlite3`` from ``PATH``. Fetching and installing a binary is left to the
caller.
"""

import os
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, Optional

from sqlshell.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = ("DEFAULT_PROGRAM", "EXECUTABLE_ENV_VAR", "cached_executable_path", "is_executable_file", "resolve_executable")

logger = get_logger("utils.executable")

DEFAULT_PROGRAM: Final = "sqlite3"
EXECUTABLE_ENV_VAR: Final = "SQLSHELL_SQLITE3"
CACHE_DIR_NAME: Final = "sqlshell"


def cached_executable_path(
    platform: Optional[str] = None, environ: "Optional[Mapping[str, str]]" = None
) -> Optional[Path]:
    """Return where a cached ``sqlite3`` binary would live on this platform.

    Args:
        platform: A ``sys.platform`` value. Defaults to the running platform.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        The candidate path, or None when the platform's cache root is unknown.
    """
    platform = platform or sys.platform
    environ = os.environ if environ is None else environ
    if platform.startswith("win"):
        local_app_data = environ.get("LOCALAPPDATA")
        if not local_app_data:
            return None
        return Path(local_app_data) / CACHE_DIR_NAME / "sqlite3.exe"
    home = environ.get("HOME")
    if platform == "darwin":
        if not home:
            return None
        return Path(home) / "Library" / "Caches" / CACHE_DIR_NAME / DEFAULT_PROGRAM
    cache_home = environ.get("XDG_CACHE_HOME") or (f"{home}/.cache" if home else None)
    if not cache_home:
        return None
    return Path(cache_home) / CACHE_DIR_NAME / DEFAULT_PROGRAM


def is_executable_file(path: "Path | str") -> bool:
    path = Path(path)
    return path.is_file() and os.access(path, os.X_OK)


def resolve_executable(
    executable: Optional[str] = None,
    *,
    platform: Optional[str] = None,
    environ: "Optional[Mapping[str, str]]" = None,
) -> str:
    """Pick the program to run for a new shell.

    An explicit ``executable`` is returned unchanged, existing or not; a
    missing program is reported when the process is spawned.

    Returns:
        Path or name of the program.
    """
    if executable:
        return executable
    environ = os.environ if environ is None else environ
    if override := environ.get(EXECUTABLE_ENV_VAR):
        logger.debug("Using sqlite3 from %s: %s", EXECUTABLE_ENV_VAR, override)
        return override
    cached = cached_executable_path(platform, environ)
    if cached is not None and is_executable_file(cached):
        logger.debug("Using cached sqlite3 binary: %s", cached)
        return str(cached)
    return shutil.which(DEFAULT_PROGRAM, path=environ.get("PATH")) or DEFAULT_PROGRAM
