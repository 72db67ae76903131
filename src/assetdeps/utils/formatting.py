from __future__ import annotations

"""
Human-Readable Formatting Helpers.
"""

from typing import List

_SIZE_SUFFIXES: List[str] = ["B", "KB", "MB", "GB", "TB", "PB", "EB"]


def bytes_to_string(byte_count: int) -> str:
    """
    Format a byte count with a binary (1024) unit and one decimal at most.

    Examples:
        0 -> '0B', 1536 -> '1.5KB', -2048 -> '-2KB'
    """
    magnitude: float = abs(byte_count)
    place = 0
    while magnitude >= 1024 and place < len(_SIZE_SUFFIXES) - 1:
        magnitude /= 1024
        place += 1

    value = round(magnitude, 1)
    if value == int(value):
        value = int(value)
    sign = "-" if byte_count < 0 else ""
    return f"{sign}{value}{_SIZE_SUFFIXES[place]}"
