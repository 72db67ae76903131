from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of the last used scan settings in a JSON file
inside the user data directory, with default fallback when the file is
missing or corrupted.
"""

import json
import logging
import os
from typing import Any, Dict

from assetdeps.domain.constants import (
    CURRENT_CONFIG_VERSION,
    DEFAULT_BUILTIN_IDENTIFIERS,
    DEFAULT_BUILTIN_PATHS,
    DEFAULT_COMMIT_LIMIT,
    DEFAULT_CONTENT_DIR,
    DEFAULT_STRUCTURED_EXTENSIONS,
)
from assetdeps.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

CONFIG_FILE = os.path.join(get_user_data_dir(), "config.json")


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default scan configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Inputs
        "project_root": os.getcwd(),
        "content_dir": DEFAULT_CONTENT_DIR,
        "packages": [],

        # Built-in resources
        "builtin_paths": list(DEFAULT_BUILTIN_PATHS),
        "builtin_identifiers": dict(DEFAULT_BUILTIN_IDENTIFIERS),

        # Extraction
        "structured_extensions": list(DEFAULT_STRUCTURED_EXTENSIONS),

        # History lookup
        "repository_root": "",
        "commit_limit": DEFAULT_COMMIT_LIMIT,

        # Persistence
        "snapshot_path": "",
    }


def get_default_app_state() -> Dict[str, Any]:
    """Full default structure of config.json."""
    return {
        "version": CURRENT_CONFIG_VERSION,
        "last_session": get_default_config(),
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_app_state() -> Dict[str, Any]:
    """
    Load application state from disk.

    Returns:
        Dict[str, Any]: The loaded state merged over defaults, or the
                        defaults on failure.
    """
    state = get_default_app_state()

    if not os.path.exists(CONFIG_FILE):
        logger.debug("Config file not found. Returning defaults.")
        return state

    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return state

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Resetting to defaults.")
        return state

    if isinstance(data.get("last_session"), dict):
        state["last_session"].update(data["last_session"])

    state["version"] = CURRENT_CONFIG_VERSION
    return state


def save_app_state(state: Dict[str, Any]) -> None:
    """
    Persist application state to disk.

    Args:
        state: The state dictionary to save.
    """
    try:
        os.makedirs(os.path.dirname(CONFIG_FILE), exist_ok=True)
        state["version"] = CURRENT_CONFIG_VERSION
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(state, f, ensure_ascii=False, indent=4)
        logger.debug(f"Configuration saved to {CONFIG_FILE}")
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")


# -----------------------------------------------------------------------------
# Facade API
# -----------------------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """Retrieve the last session's configuration over the defaults."""
    defaults = get_default_config()
    defaults.update(load_app_state().get("last_session", {}))
    return defaults


def save_config(config: Dict[str, Any]) -> None:
    """Save the provided config as the 'last_session'."""
    state = load_app_state()
    state["last_session"] = config
    save_app_state(state)
