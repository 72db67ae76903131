from __future__ import annotations

"""
Unit tests for the Dependency Tree Facade.

Verifies:
1. Mapping of the configuration to scanned directories.
2. All-or-nothing refresh semantics (cancel and failure keep old state).
3. Lazy hierarchy construction and rebuild after refresh.
4. Path lookup, including the synthetic missing references folder.
5. Snapshot round trip through the facade and provenance bookkeeping.
"""

import threading
from pathlib import Path
from unittest.mock import patch

from assetdeps.core.services.dependency_tree import DependencyTree, build_package_directories
from assetdeps.domain.asset_models import PackageSource
from assetdeps.domain.constants import MISSING_REFERENCES_NODE_NAME, UNKNOWN_PACKAGE_NAME
from assetdeps.domain.node_models import FolderNode, NodeKind

from conftest import guid

DOOR, WOOD, GONE = guid(1), guid(2), guid(3)


def _project(asset_project) -> None:
    asset_project("Assets/Prefabs/Door.prefab", own=DOOR, refs=[WOOD, GONE])
    asset_project("Assets/Materials/Wood.mat", own=WOOD)


def test_build_package_directories_puts_content_first(base_config) -> None:
    base_config["packages"] = [{"name": "tool", "path": "Packages/tool", "source": "local"}]

    dirs = build_package_directories(base_config)

    assert [d.path for d in dirs] == ["Assets", "Packages/tool"]
    assert dirs[0].package_name == UNKNOWN_PACKAGE_NAME
    assert dirs[1].package_name == "tool"
    assert dirs[1].package_source is PackageSource.LOCAL


def test_hierarchy_is_absent_before_first_scan(base_config) -> None:
    tree = DependencyTree(base_config)

    assert tree.get_root_node() is None
    assert tree.get_node_from_path("Assets") is None
    assert tree.missing_nodes() == []
    assert not tree.save_snapshot()


def test_refresh_builds_hierarchy(base_config, asset_project) -> None:
    _project(asset_project)
    tree = DependencyTree(base_config)

    assert tree.refresh()
    door = tree.get_node_from_path("Assets/Prefabs/Door.prefab")
    wood = tree.get_node_from_path("Assets/Materials/Wood.mat")

    assert door.identifier == DOOR
    assert tree.get_hierarchy().reaches(door, wood)
    assert tree.analysis.missing_identifiers == (GONE,)
    assert len(tree.files) == 2


def test_cancelled_refresh_keeps_previous_state(base_config, asset_project) -> None:
    _project(asset_project)
    tree = DependencyTree(base_config)
    assert tree.refresh()
    records_before = tree.records
    root_before = tree.get_root_node()

    asset_project("Assets/New.asset", own=guid(99))
    event = threading.Event()
    event.set()

    assert not tree.refresh(cancellation_event=event)
    assert tree.last_result.cancelled
    assert tree.records is records_before
    assert tree.get_root_node() is root_before


def test_failed_refresh_keeps_previous_state(base_config, asset_project, tmp_path: Path) -> None:
    _project(asset_project)
    tree = DependencyTree(base_config)
    assert tree.refresh()
    root_before = tree.get_root_node()

    tree.config = dict(base_config, project_root=str(tmp_path / "gone"))

    assert not tree.refresh()
    assert tree.get_root_node() is root_before


def test_successful_refresh_rebuilds_hierarchy(base_config, asset_project) -> None:
    _project(asset_project)
    tree = DependencyTree(base_config)
    tree.refresh()
    old_root = tree.get_root_node()
    tree.get_hierarchy().reaches(old_root.children[0], old_root)

    assert tree.refresh()
    assert tree.get_root_node() is not old_root
    assert tree.get_hierarchy().cache_size == 0


def test_missing_references_folder(base_config, asset_project) -> None:
    _project(asset_project)
    tree = DependencyTree(base_config)
    tree.refresh()

    folder = tree.get_node_from_path(MISSING_REFERENCES_NODE_NAME)
    missing = tree.get_node_from_path(f"{MISSING_REFERENCES_NODE_NAME}/{GONE}")

    assert isinstance(folder, FolderNode)
    assert missing.identifier == GONE
    assert missing.kind is NodeKind.MISSING
    assert missing.path == f"{MISSING_REFERENCES_NODE_NAME}/{GONE}"
    assert folder not in tree.get_root_node().children
    assert tree.get_node_from_path(f"{MISSING_REFERENCES_NODE_NAME}/{DOOR}") is None


def test_snapshot_round_trip_through_facade(base_config, asset_project) -> None:
    _project(asset_project)
    tree = DependencyTree(base_config)
    tree.refresh()
    assert tree.save_snapshot()

    restored = DependencyTree(base_config)
    assert restored.load_snapshot()

    assert restored.records == tree.records
    assert restored.analysis == tree.analysis
    assert restored.get_node_from_path("Assets/Materials/Wood.mat").identifier == WOOD


def test_provenance_lookup_is_stored_by_identifier(base_config, asset_project) -> None:
    _project(asset_project)
    tree = DependencyTree(base_config)
    tree.refresh()

    with patch(
        "assetdeps.core.services.dependency_tree.lookup_missing_references",
        return_value={GONE: ["old/Door.prefab.meta"]},
    ) as lookup:
        results = tree.lookup_missing_provenance(commit_limit=7)

    args, kwargs = lookup.call_args
    assert args[0] == (GONE,)
    assert args[2] == 7
    assert results == {GONE: ["old/Door.prefab.meta"]}
    assert tree.get_provenance(GONE) == ["old/Door.prefab.meta"]
    assert tree.get_provenance(WOOD) == []


def test_provenance_lookup_skipped_without_missing_identifiers(base_config, asset_project) -> None:
    asset_project("Assets/Wood.mat", own=WOOD)
    tree = DependencyTree(base_config)
    tree.refresh()

    with patch("assetdeps.core.services.dependency_tree.lookup_missing_references") as lookup:
        assert tree.lookup_missing_provenance() == {}

    lookup.assert_not_called()
