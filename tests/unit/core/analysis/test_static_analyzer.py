from __future__ import annotations

"""
Unit tests for the Static Analyzer.

Verifies that every diagnostic set is complete and independent of the
order in which files were visited.
"""

from assetdeps.core.analysis.static_analyzer import analyze_scan
from assetdeps.domain.asset_models import FileScan

from conftest import guid

A, B, C = guid(1), guid(2), guid(3)


def test_diagnostics_are_complete(make_record) -> None:
    """A references B and C; C has no file; B is claimed twice; one file has no sidecar."""
    records = [
        make_record(A, "Assets/a.prefab", forward=[B, C]),
        make_record(B, "Assets/b1.mat", back=[A]),
        make_record(C, "", back=[A]),
    ]
    files = [
        FileScan("Assets/a.prefab", A, (B, C)),
        FileScan("Assets/b1.mat", B),
        FileScan("Assets/b2.mat", B),
        FileScan("Assets/loose.txt", None),
    ]

    result = analyze_scan(records, files)

    assert result.missing_identifiers == (C,)
    assert result.duplicated_identifiers == (B,)
    assert result.paths_without_own_identifier == ("Assets/loose.txt",)


def test_diagnostics_do_not_depend_on_file_order(make_record) -> None:
    records = [make_record(A, "Assets/x.asset"), make_record(B, "")]
    files = [
        FileScan("Assets/z.asset", None),
        FileScan("Assets/x.asset", A),
        FileScan("Assets/y.asset", A),
        FileScan("Assets/w.asset", None),
    ]

    forward = analyze_scan(records, files)
    backward = analyze_scan(list(reversed(records)), list(reversed(files)))

    assert forward == backward
    assert forward.paths_without_own_identifier == ("Assets/w.asset", "Assets/z.asset")


def test_same_path_scanned_twice_is_not_a_duplicate(make_record) -> None:
    files = [FileScan("Assets/a.prefab", A), FileScan("Assets/a.prefab", A)]

    result = analyze_scan([make_record(A, "Assets/a.prefab")], files)

    assert result.duplicated_identifiers == ()


def test_empty_scan_has_empty_diagnostics() -> None:
    result = analyze_scan([], [])

    assert result.missing_identifiers == ()
    assert result.duplicated_identifiers == ()
    assert result.paths_without_own_identifier == ()
