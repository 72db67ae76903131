from __future__ import annotations

"""
Unit tests for the Identifier Scanning Service.

Verifies:
1. Identifier extraction from sidecars and structured-text bodies.
2. Record aggregation: forward/back references, paths, sizes, packages.
3. First-claimant-wins handling of duplicated identifiers.
4. Built-in resolution, module names and cancellation.
"""

import json
import threading
from pathlib import Path

from assetdeps.core.services.scanner import (
    ModuleNameResolver,
    extract_identifiers,
    parse_asset_file,
    scan_directories,
    yield_asset_files,
)
from assetdeps.domain.asset_models import PackageDirectory, PackageSource
from assetdeps.domain.constants import BUILTIN_PACKAGE_NAME, DEFAULT_STRUCTURED_EXTENSIONS

from conftest import guid

A, B, C, D = guid(0xA), guid(0xB), guid(0xC), guid(0xD)

CONTENT = [PackageDirectory(path="Assets")]


def _records_by_id(result):
    return {r.identifier: r for r in result.records}

# -----------------------------------------------------------------------------
# EXTRACTION
# -----------------------------------------------------------------------------

def test_extract_identifiers_matches_both_syntaxes() -> None:
    content = f'guid: {A}\n"references": ["GUID:{B}"]\nguid: NOTHEX\n'
    assert extract_identifiers(content) == [A, B]


def test_extract_identifiers_ignores_short_or_uppercase_values() -> None:
    assert extract_identifiers("guid: 1234") == []
    assert extract_identifiers(f"guid: {A.upper().replace('0', 'F')}") == []


def test_parse_asset_file_reads_sidecar_and_structured_body(asset_project) -> None:
    asset = asset_project("Assets/Door.prefab", own=A, refs=[B, C, B])

    own, refs = parse_asset_file(str(asset), DEFAULT_STRUCTURED_EXTENSIONS)

    assert own == A
    assert refs == [B, C]


def test_parse_asset_file_skips_body_of_binary_extensions(asset_project) -> None:
    asset = asset_project("Assets/Icon.png", own=A, refs=[B])

    own, refs = parse_asset_file(str(asset), DEFAULT_STRUCTURED_EXTENSIONS)

    assert own == A
    assert refs == []


def test_parse_asset_file_without_sidecar_still_reads_body(asset_project) -> None:
    asset = asset_project("Assets/Orphan.mat", refs=[B])

    own, refs = parse_asset_file(str(asset), DEFAULT_STRUCTURED_EXTENSIONS)

    assert own is None
    assert refs == [B]


def test_parse_asset_file_never_lists_own_identifier_as_reference(asset_project) -> None:
    asset = asset_project("Assets/Self.asset", own=A, refs=[A, B])

    _, refs = parse_asset_file(str(asset), DEFAULT_STRUCTURED_EXTENSIONS)

    assert refs == [B]


def test_yield_asset_files_skips_sidecars_and_hidden_dirs(tmp_path: Path, asset_project) -> None:
    asset_project("Assets/a.prefab", own=A)
    asset_project("Assets/.git/objects/x.prefab", own=B)
    asset_project("Assets/Sub/b.mat", own=C)

    files = [Path(p).relative_to(tmp_path).as_posix() for p in yield_asset_files(str(tmp_path / "Assets"))]

    assert files == ["Assets/a.prefab", "Assets/Sub/b.mat"]

# -----------------------------------------------------------------------------
# AGGREGATION
# -----------------------------------------------------------------------------

def test_scan_links_forward_and_back_references(tmp_path: Path, asset_project) -> None:
    asset_project("Assets/Door.prefab", own=A, refs=[B])
    asset_project("Assets/Wood.mat", own=B, refs=[C])
    asset_project("Assets/Wood.png", own=C)

    result = scan_directories(str(tmp_path), CONTENT)
    records = _records_by_id(result)

    assert result.ok
    assert records[A].forward_references == (B,)
    assert records[B].back_references == (A,)
    assert records[B].forward_references == (C,)
    assert records[C].back_references == (B,)
    assert records[A].file_path == "Assets/Door.prefab"
    assert records[A].byte_size == (tmp_path / "Assets/Door.prefab").stat().st_size


def test_scan_reports_missing_and_unidentified(tmp_path: Path, asset_project) -> None:
    asset_project("Assets/Door.prefab", own=A, refs=[D])
    asset_project("Assets/NoMeta.prefab", refs=[B])

    result = scan_directories(str(tmp_path), CONTENT)
    records = _records_by_id(result)

    assert result.analysis.missing_identifiers == (B, D)
    assert result.analysis.paths_without_own_identifier == ("Assets/NoMeta.prefab",)
    assert records[D].file_path == ""
    assert records[D].back_references == (A,)
    # A file without identifier cannot be a dependant in the graph
    assert records[B].back_references == ()


def test_scan_duplicate_identifier_keeps_first_path_and_merges_references(
        tmp_path: Path, asset_project
) -> None:
    asset_project("Assets/A_first.prefab", own=A, refs=[B])
    asset_project("Assets/B_second.prefab", own=A, refs=[C])
    asset_project("Assets/Target1.mat", own=B)
    asset_project("Assets/Target2.mat", own=C)

    result = scan_directories(str(tmp_path), CONTENT)
    records = _records_by_id(result)

    assert result.analysis.duplicated_identifiers == (A,)
    assert records[A].file_path == "Assets/A_first.prefab"
    assert records[A].forward_references == (B, C)


def test_scan_assigns_package_provenance(tmp_path: Path, asset_project) -> None:
    asset_project("Assets/Door.prefab", own=A, refs=[B])
    asset_project("Packages/com.acme.tools/Tool.asset", own=B)
    directories = CONTENT + [
        PackageDirectory("Packages/com.acme.tools", "com.acme.tools", PackageSource.REGISTRY),
    ]

    records = _records_by_id(scan_directories(str(tmp_path), directories))

    assert records[B].file_path == "Packages/com.acme.tools/Tool.asset"
    assert records[B].package_name == "com.acme.tools"
    assert records[B].package_source is PackageSource.REGISTRY


def test_scan_resolves_unclaimed_builtin_identifiers(tmp_path: Path, asset_project) -> None:
    builtin_id = "0000000000000000f000000000000000"
    asset_project("Assets/Wall.mat", own=A, refs=[builtin_id])

    result = scan_directories(
        str(tmp_path),
        CONTENT,
        builtin_identifiers={builtin_id: "Resources/unity_builtin_extra"},
    )
    records = _records_by_id(result)

    assert records[builtin_id].file_path == "Resources/unity_builtin_extra"
    assert records[builtin_id].package_name == BUILTIN_PACKAGE_NAME
    assert records[builtin_id].package_source is PackageSource.BUILT_IN
    assert result.analysis.missing_identifiers == ()


def test_scan_resolves_referenced_folder_identifier(tmp_path: Path, asset_project) -> None:
    (tmp_path / "Assets/Prefabs").mkdir(parents=True)
    (tmp_path / "Assets/Prefabs.meta").write_text(f"fileFormatVersion: 2\nguid: {A}\n", encoding="utf-8")
    asset_project("Assets/settings.asset", own=B, refs=[A])

    result = scan_directories(str(tmp_path), CONTENT)
    records = _records_by_id(result)

    assert result.analysis.missing_identifiers == ()
    assert result.analysis.duplicated_identifiers == ()
    assert records[A].file_path == "Assets/Prefabs"
    assert records[A].byte_size == 0
    assert records[A].package_name == records[B].package_name
    assert records[A].back_references == (B,)


def test_scan_file_claim_beats_folder_with_same_identifier(tmp_path: Path, asset_project) -> None:
    (tmp_path / "Assets/Prefabs").mkdir(parents=True)
    (tmp_path / "Assets/Prefabs.meta").write_text(f"guid: {A}\n", encoding="utf-8")
    asset_project("Assets/Real.prefab", own=A)
    asset_project("Assets/settings.asset", own=B, refs=[A])

    result = scan_directories(str(tmp_path), CONTENT)

    assert _records_by_id(result)[A].file_path == "Assets/Real.prefab"
    assert result.analysis.duplicated_identifiers == ()


def test_scan_unreferenced_folders_create_no_records(tmp_path: Path, asset_project) -> None:
    (tmp_path / "Assets/Empty").mkdir(parents=True)
    (tmp_path / "Assets/Empty.meta").write_text(f"guid: {C}\n", encoding="utf-8")
    asset_project("Assets/Door.prefab", own=A)

    result = scan_directories(str(tmp_path), CONTENT)

    assert [r.identifier for r in result.records] == [A]


def test_scan_resolves_module_name_from_nearest_definition(tmp_path: Path, asset_project) -> None:
    asset_project("Assets/Game/Scripts/Player.cs", own=A)
    (tmp_path / "Assets/Game/Game.asmdef").write_text(json.dumps({"name": "Acme.Game"}), encoding="utf-8")

    records = _records_by_id(scan_directories(str(tmp_path), CONTENT))

    assert records[A].module_name == "Acme.Game"


def test_module_name_resolver_stops_at_scanned_directory(tmp_path: Path) -> None:
    (tmp_path / "Outer.asmdef").write_text(json.dumps({"name": "Outer"}), encoding="utf-8")
    inner = tmp_path / "Assets" / "Sub"
    inner.mkdir(parents=True)

    resolver = ModuleNameResolver()

    assert resolver.resolve(str(inner / "file.cs"), str(tmp_path / "Assets")) is None


def test_scan_skips_missing_package_directory(tmp_path: Path, asset_project) -> None:
    asset_project("Assets/Door.prefab", own=A)
    directories = CONTENT + [PackageDirectory("Packages/gone")]

    result = scan_directories(str(tmp_path), directories)

    assert result.ok
    assert [r.identifier for r in result.records] == [A]

# -----------------------------------------------------------------------------
# FAILURE AND CANCELLATION
# -----------------------------------------------------------------------------

def test_scan_invalid_root_returns_failed_result(tmp_path: Path) -> None:
    result = scan_directories(str(tmp_path / "nope"), CONTENT)

    assert not result.ok
    assert not result.cancelled
    assert "Invalid project root" in result.error


def test_scan_cancelled_returns_no_records(tmp_path: Path, asset_project) -> None:
    asset_project("Assets/Door.prefab", own=A)
    event = threading.Event()
    event.set()

    result = scan_directories(str(tmp_path), CONTENT, cancellation_event=event)

    assert not result.ok
    assert result.cancelled
    assert result.records == []
    assert result.analysis is None
