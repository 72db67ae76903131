from __future__ import annotations

"""
Unit tests for the selection tree filters.

Verifies:
1. Unused and missing-reference predicates on leaves and folders.
2. Path substring filtering.
3. External package visibility.
"""

import pytest

from assetdeps.core.analysis.filters import SelectionFilter, is_external
from assetdeps.core.analysis.tree_builder import build_hierarchy
from assetdeps.domain.asset_models import PackageSource, StaticAnalysisResult

from conftest import guid

USED, USER, ORPHAN, GONE, PKG = guid(1), guid(2), guid(3), guid(4), guid(5)


@pytest.fixture
def hierarchy(make_record):
    records = [
        make_record(USER, "Assets/Scenes/Main.unity", forward=[USED, GONE]),
        make_record(USED, "Assets/Art/Used.mat"),
        make_record(ORPHAN, "Assets/Art/Orphan.mat"),
        make_record(GONE, ""),
        make_record(PKG, "Packages/tool/Tool.asset", source=PackageSource.REGISTRY),
    ]
    analysis = StaticAnalysisResult(missing_identifiers=(GONE,))
    return build_hierarchy(records, analysis, [])


def test_unused_leaves_and_folders(hierarchy) -> None:
    f = SelectionFilter([GONE])
    n = hierarchy.nodes_by_identifier

    assert f.is_unused(n[ORPHAN])
    assert not f.is_unused(n[USED])
    assert f.is_unused(hierarchy.find("Assets/Art"))
    assert f.is_unused(hierarchy.find("Assets/Scenes"))  # Main.unity has no dependants


def test_only_unused_hides_used_assets(hierarchy) -> None:
    f = SelectionFilter([GONE], only_unused=True)
    n = hierarchy.nodes_by_identifier

    assert f(n[USED])
    assert not f(n[ORPHAN])


def test_missing_reference_counts(hierarchy) -> None:
    f = SelectionFilter([GONE], only_missing_references=True)
    n = hierarchy.nodes_by_identifier

    assert f.missing_reference_count(n[USER]) == 1
    assert f.missing_reference_count(hierarchy.find("Assets")) == 1
    assert f.is_missing(n[GONE])
    assert not f(n[USER])
    assert not f(n[GONE])
    assert f(n[ORPHAN])


def test_path_filter_is_substring_match(hierarchy) -> None:
    f = SelectionFilter([], path_filter="Art/")
    n = hierarchy.nodes_by_identifier

    assert not f(n[USED])
    assert f(n[USER])


def test_external_packages_hidden_unless_requested(hierarchy) -> None:
    tool = hierarchy.nodes_by_identifier[PKG]

    assert is_external(tool)
    assert SelectionFilter([])(tool)
    assert not SelectionFilter([], show_external_packages=True)(tool)
    assert not SelectionFilter([])(hierarchy.nodes_by_identifier[USED])


def test_clear_drops_memoized_answers(hierarchy) -> None:
    f = SelectionFilter([GONE])
    orphan = hierarchy.nodes_by_identifier[ORPHAN]
    assert f.is_unused(orphan)

    orphan.dependants.append(hierarchy.nodes_by_identifier[USER])
    assert f.is_unused(orphan)

    f.clear()
    assert not f.is_unused(orphan)
