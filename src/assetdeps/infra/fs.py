from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides cross-platform path manipulation and the per-user data directory
used for persistent configuration, logs and scan snapshots. Acts as an
abstraction over the 'os' module so that asset paths are reported with
forward slashes regardless of the host platform.
"""

import os
from typing import Optional

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "AssetDeps"
UNIX_APP_DIR_NAME = ".assetdeps"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/AssetDeps
    - Linux/Mac: ~/.assetdeps

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        home = os.path.expanduser("~")
        path = os.path.join(home, UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a directory path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    p = os.path.expandvars(os.path.expanduser(p))
    return os.path.abspath(p)


def to_project_path(file_path: str, project_root: str) -> str:
    """
    Express a filesystem path relative to the project root with '/' separators.

    Args:
        file_path: Absolute or root-relative path of a file.
        project_root: Absolute path of the project root.

    Returns:
        str: Project-relative path such as 'Assets/Prefabs/Door.prefab'.
    """
    rel = os.path.relpath(os.path.abspath(file_path), project_root)
    return rel.replace(os.sep, "/")
