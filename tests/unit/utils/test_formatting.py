from __future__ import annotations

"""
Unit tests for human-readable byte formatting.
"""

import pytest

from assetdeps.utils.formatting import bytes_to_string


@pytest.mark.parametrize(
    "byte_count, expected",
    [
        (0, "0B"),
        (1, "1B"),
        (1023, "1023B"),
        (1024, "1KB"),
        (1536, "1.5KB"),
        (5 * 1024 ** 2, "5MB"),
        (int(2.5 * 1024 ** 3), "2.5GB"),
        (1024 ** 6, "1EB"),
        (-2048, "-2KB"),
    ],
)
def test_bytes_to_string(byte_count: int, expected: str) -> None:
    assert bytes_to_string(byte_count) == expected


def test_values_beyond_largest_unit_stay_in_that_unit() -> None:
    assert bytes_to_string(2048 * 1024 ** 6) == "2048EB"
