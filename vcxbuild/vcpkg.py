"""Locate vcpkg library and include directories on Windows hosts."""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _is_windows() -> bool:
    return sys.platform.startswith("win")


def _existing_dirs(candidates: list[str]) -> list[str]:
    return [candidate for candidate in candidates if Path(candidate).is_dir()]


def base_path() -> str | None:
    """Return the vcpkg root recorded in LOCALAPPDATA/vcpkg/vcpkg.path.txt, if any."""
    if not _is_windows():
        return None
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data is None:
        return None
    try:
        content = Path(f"{local_app_data}/vcpkg/vcpkg.path.txt").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    path = content.strip()
    if path and Path(path).is_dir():
        return path
    return None


def lib_paths(is_debug: bool) -> list[str]:
    """Return the existing vcpkg x64 library directories for the configuration."""
    base = base_path()
    if base is None:
        return []
    debug = "/debug" if is_debug else ""
    return _existing_dirs(
        [
            f"{base}/installed/x64-windows-static{debug}/lib",
            f"{base}/installed/x64-windows{debug}/lib",
        ]
    )


def include_paths() -> list[str]:
    """Return the existing vcpkg x64 include directories."""
    base = base_path()
    if base is None:
        return []
    return _existing_dirs(
        [
            f"{base}/installed/x64-windows-static/include",
            f"{base}/installed/x64-windows/include",
        ]
    )