"""
Shared artifact cache directory resolution.

Provides an OS-appropriate cache path for prebuilt artifacts consumed by
build targets, so that multiple projects can share a single copy.
"""

import os
import platform
from pathlib import Path

CACHE_DIR_ENV = "STAMPBUILD_CACHE_DIR"


def get_cache_dir() -> Path:
    """Return the OS-appropriate shared artifact cache directory.

    - Override: $STAMPBUILD_CACHE_DIR, used as-is on every OS (the
      per-OS locations below, including XDG_CACHE_HOME, are then ignored)
    - macOS:    ~/Library/Caches/stampbuild/artifacts/
    - Linux:    $XDG_CACHE_HOME/stampbuild/artifacts/ (defaults to ~/.cache/)
    - Windows:  %LOCALAPPDATA%/stampbuild/artifacts/
    """
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override)

    system = platform.system()
    if system == "Darwin":
        base = Path.home() / "Library" / "Caches"
    elif system == "Windows":
        local = os.environ.get("LOCALAPPDATA")
        base = Path(local) if local else Path.home() / "AppData" / "Local"
    else:
        xdg = os.environ.get("XDG_CACHE_HOME")
        base = Path(xdg) if xdg else Path.home() / ".cache"

    return base / "stampbuild" / "artifacts"
