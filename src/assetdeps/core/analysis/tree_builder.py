from __future__ import annotations

"""
Dependency Hierarchy Builder.

Turns the flat, identifier-keyed records of a scan into a rooted folder
hierarchy. Leaves are created first, nested under folders derived from
their path segments; dependency and dependant lists are wired in a second
pass once every leaf exists.
"""

import logging
import re
from typing import Dict, Iterable, Optional, Sequence, Set, Tuple

from assetdeps.core.analysis.hierarchy import DependencyHierarchy
from assetdeps.domain.asset_models import AssetRecord, StaticAnalysisResult
from assetdeps.domain.node_models import FolderNode, LeafNode, NodeKind

logger = logging.getLogger(__name__)

_PATH_SEPARATORS = re.compile(r"[\\/]")

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def build_hierarchy(
        records: Optional[Sequence[AssetRecord]],
        analysis: StaticAnalysisResult,
        builtin_paths: Iterable[str],
) -> Optional[DependencyHierarchy]:
    """
    Build the node hierarchy for a set of records.

    Records without a path are still turned into leaves, named after their
    identifier, but they are not attached under the root. They can be
    reached through `nodes_by_identifier`.

    Args:
        records: Flat records of a completed scan.
        analysis: Diagnostics of the same scan, used for classification.
        builtin_paths: Pseudo-paths of built-in resources.

    Returns:
        Optional[DependencyHierarchy]: The hierarchy, or None without records.
    """
    if records is None:
        return None

    missing = set(analysis.missing_identifiers)
    builtins = set(builtin_paths)
    root = FolderNode()
    nodes_by_identifier: Dict[str, LeafNode] = {}

    # 1. Leaves and the folders leading to them
    for record in records:
        kind = classify_record(record, missing, builtins)
        parent: Optional[FolderNode] = None
        name = record.identifier

        segments = [s for s in _PATH_SEPARATORS.split(record.file_path) if s]
        if segments:
            parent = _ensure_folders(root, segments[:-1], record)
            name = segments[-1]

        leaf = LeafNode(
            name=name,
            identifier=record.identifier,
            size=record.byte_size,
            kind=kind,
            parent=parent,
            module_name=record.module_name,
            package_name=record.package_name,
            package_source=record.package_source,
        )
        nodes_by_identifier[record.identifier] = leaf
        if parent is not None:
            parent.children.append(leaf)

    # 2. Dependency edges; dangling identifiers are already reported as missing
    linked: Set[Tuple[str, str]] = set()
    for record in records:
        leaf = nodes_by_identifier[record.identifier]
        for identifier in record.forward_references:
            dependency = nodes_by_identifier.get(identifier)
            if dependency is not None:
                _link(leaf, dependency, linked)
        for identifier in record.back_references:
            dependant = nodes_by_identifier.get(identifier)
            if dependant is not None:
                _link(dependant, leaf, linked)

    logger.debug(f"Hierarchy built with {len(nodes_by_identifier)} leaves.")
    return DependencyHierarchy(root, nodes_by_identifier)


def classify_record(record: AssetRecord, missing: Set[str], builtins: Set[str]) -> NodeKind:
    """Derive the kind tag of a record from the diagnostics and built-in paths."""
    is_missing = record.identifier in missing
    is_builtin = bool(record.file_path) and record.file_path in builtins

    if is_missing and is_builtin:
        logger.warning(f"Unknown asset kind: {record.identifier}")
        return NodeKind.INCONSISTENT
    if is_missing:
        return NodeKind.MISSING
    if is_builtin:
        return NodeKind.BUILT_IN
    return NodeKind.DEFAULT

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _ensure_folders(root: FolderNode, segments: Sequence[str], record: AssetRecord) -> FolderNode:
    """
    Walk down `segments`, creating folders that do not exist yet.

    A leaf may share its name with a folder (a folder's own identifier),
    so only folder children are reused.
    """
    parent = root
    for segment in segments:
        child = parent.find_folder(segment)
        if child is None:
            child = FolderNode(
                segment,
                parent,
                package_name=record.package_name,
                package_source=record.package_source,
            )
            parent.children.append(child)
        parent = child
    return parent


def _link(dependant: LeafNode, dependency: LeafNode, linked: Set[Tuple[str, str]]) -> None:
    """Record one edge on both ends, once."""
    edge = (dependant.identifier, dependency.identifier)
    if edge in linked:
        return
    linked.add(edge)
    dependant.dependencies.append(dependency)
    dependency.dependants.append(dependant)
