from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Centralizes the identifier grammar, sidecar conventions, structured-text
extensions and the well-known built-in resources shared by the scanner,
the tree builder and the configuration layer.
"""

import re
from typing import Dict, List

CURRENT_CONFIG_VERSION = "1.0.0"
DEFAULT_CONTENT_DIR = "Assets"
DEFAULT_COMMIT_LIMIT = 500

# -----------------------------------------------------------------------------
# IDENTIFIER GRAMMAR
# -----------------------------------------------------------------------------

# Module definition files spell the key as "GUID:", every other sidecar
# dialect uses "guid: ".
IDENTIFIER_PATTERN = re.compile(r"(?:GUID:|guid: )([0-9a-f]{32})")

SIDECAR_SUFFIX = ".meta"
MODULE_DEFINITION_EXT = ".asmdef"

DEFAULT_STRUCTURED_EXTENSIONS: List[str] = [
    ".asset",
    ".unity",
    ".prefab",
    ".mat",
    ".controller",
    ".anim",
    ".asmdef",
]

# -----------------------------------------------------------------------------
# PACKAGE LABELS
# -----------------------------------------------------------------------------

UNKNOWN_PACKAGE_NAME = "<unknown>"
BUILTIN_PACKAGE_NAME = "<builtin>"

# -----------------------------------------------------------------------------
# BUILT-IN RESOURCES
# -----------------------------------------------------------------------------

DEFAULT_BUILTIN_PATHS: List[str] = [
    "Resources/unity_builtin_extra",
    "Library/unity default resources",
    "Library/unity editor resources",
]

DEFAULT_BUILTIN_IDENTIFIERS: Dict[str, str] = {
    "0000000000000000f000000000000000": "Resources/unity_builtin_extra",
    "0000000000000000e000000000000000": "Library/unity default resources",
    "0000000000000000d000000000000000": "Library/unity editor resources",
}

# -----------------------------------------------------------------------------
# VIEW LABELS
# -----------------------------------------------------------------------------

MISSING_REFERENCES_NODE_NAME = "[Missing references]"
