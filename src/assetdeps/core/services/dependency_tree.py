from __future__ import annotations

"""
Dependency Tree Facade.

Single entry point used by the interfaces. Owns the validated configuration,
the flat records and analysis of the last successful scan, the lazily built
node hierarchy and the provenance results of the last history lookup.

Node references handed out by this object are only valid until the next
successful `refresh` or `load_snapshot`.
"""

import logging
import os
import threading
from typing import Any, Dict, List, Optional

from assetdeps.core.analysis.hierarchy import DependencyHierarchy
from assetdeps.core.analysis.tree_builder import build_hierarchy
from assetdeps.core.services import snapshot
from assetdeps.core.services.provenance import lookup_missing_references
from assetdeps.core.services.scanner import scan_directories
from assetdeps.domain.asset_models import (
    AssetRecord,
    FileScan,
    PackageDirectory,
    PackageSource,
    ScanResult,
    StaticAnalysisResult,
)
from assetdeps.domain.constants import MISSING_REFERENCES_NODE_NAME, UNKNOWN_PACKAGE_NAME
from assetdeps.domain.node_models import FolderNode, LeafNode, Node

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# CONFIG MAPPING
# -----------------------------------------------------------------------------

def build_package_directories(config: Dict[str, Any]) -> List[PackageDirectory]:
    """
    Map a validated configuration to the ordered list of directories to scan.

    The root content directory always comes first, followed by the
    configured packages in their declared order.
    """
    directories = [PackageDirectory(path=config["content_dir"])]
    for package in config.get("packages", []):
        directories.append(PackageDirectory(
            path=package["path"],
            package_name=package.get("name") or UNKNOWN_PACKAGE_NAME,
            package_source=PackageSource.parse(package.get("source")),
        ))
    return directories


# -----------------------------------------------------------------------------
# FACADE
# -----------------------------------------------------------------------------

class DependencyTree:
    """
    Owner of the dependency graph state of one project.

    Attributes:
        config: Validated configuration dictionary.
        records: Records of the last adopted scan, None before the first one.
        files: Per-file scan results of the last adopted scan.
        analysis: Diagnostics of the last adopted scan.
        provenance: Missing identifier to candidate historical paths.
        last_result: Outcome of the most recent scan attempt, adopted or not.
    """

    def __init__(self, config: Dict[str, Any]) -> None:
        self.config = config
        self.records: Optional[List[AssetRecord]] = None
        self.files: List[FileScan] = []
        self.analysis = StaticAnalysisResult()
        self.provenance: Dict[str, List[str]] = {}
        self.last_result: Optional[ScanResult] = None
        self._hierarchy: Optional[DependencyHierarchy] = None
        self._missing_folder: Optional[FolderNode] = None

    # -------------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------------

    def refresh(self, cancellation_event: Optional[threading.Event] = None) -> bool:
        """
        Rescan the project and adopt the result if, and only if, it completed.

        A cancelled or failed scan leaves the previous state untouched.

        Returns:
            bool: True if a new scan was adopted.
        """
        result = scan_directories(
            self.config["project_root"],
            build_package_directories(self.config),
            structured_extensions=self.config.get("structured_extensions"),
            builtin_paths=self.config.get("builtin_paths"),
            builtin_identifiers=self.config.get("builtin_identifiers"),
            cancellation_event=cancellation_event,
        )
        self.last_result = result

        if not result.ok or result.analysis is None:
            if result.cancelled:
                logger.warning("Refresh cancelled. Keeping the previous dependency graph.")
            else:
                logger.error(f"Refresh failed: {result.error}")
            return False

        self.files = list(result.files)
        self._adopt(result.records, result.analysis)
        return True

    def load_snapshot(self, path: Optional[str] = None) -> bool:
        """Adopt the records and analysis of a saved snapshot."""
        loaded = snapshot.load_snapshot(path or self.snapshot_path)
        if loaded is None:
            return False
        records, analysis = loaded
        self.files = []
        self._adopt(records, analysis)
        return True

    def save_snapshot(self, path: Optional[str] = None) -> bool:
        """Persist the current records and analysis. Nothing to save before a scan."""
        if self.records is None:
            logger.warning("No scan to save yet.")
            return False
        return snapshot.save_snapshot(path or self.snapshot_path, self.records, self.analysis)

    @property
    def snapshot_path(self) -> str:
        return self.config.get("snapshot_path") or snapshot.get_default_snapshot_path()

    # -------------------------------------------------------------------------
    # Hierarchy access
    # -------------------------------------------------------------------------

    def get_hierarchy(self) -> Optional[DependencyHierarchy]:
        """Build the hierarchy on first use after a scan; None before any scan."""
        if self._hierarchy is None and self.records is not None:
            self._hierarchy = build_hierarchy(
                self.records, self.analysis, self.config.get("builtin_paths", [])
            )
        return self._hierarchy

    def get_root_node(self) -> Optional[FolderNode]:
        hierarchy = self.get_hierarchy()
        return hierarchy.root if hierarchy is not None else None

    def missing_nodes(self) -> List[LeafNode]:
        """Leaves of every missing identifier, in identifier order."""
        hierarchy = self.get_hierarchy()
        if hierarchy is None:
            return []
        return [
            hierarchy.nodes_by_identifier[identifier]
            for identifier in self.analysis.missing_identifiers
            if identifier in hierarchy.nodes_by_identifier
        ]

    def get_missing_folder(self) -> Optional[FolderNode]:
        """
        Synthetic folder grouping the missing leaves.

        The folder is not attached under the root. Missing leaves are
        re-parented to it, so their path starts with the folder name.
        """
        if self._missing_folder is None and self.get_hierarchy() is not None:
            folder = FolderNode(MISSING_REFERENCES_NODE_NAME)
            for leaf in self.missing_nodes():
                leaf.parent = folder
                folder.children.append(leaf)
            self._missing_folder = folder
        return self._missing_folder

    def get_node_from_path(self, node_path: str) -> Optional[Node]:
        """
        Resolve a '/'-separated path to a node.

        Paths starting with the missing references folder name resolve
        inside that synthetic folder.
        """
        hierarchy = self.get_hierarchy()
        if hierarchy is None or not node_path:
            return None

        head, _, rest = node_path.partition("/")
        if head == MISSING_REFERENCES_NODE_NAME:
            folder = self.get_missing_folder()
            if not rest:
                return folder
            return hierarchy.find(rest, start=folder)

        return hierarchy.find(node_path)

    # -------------------------------------------------------------------------
    # History lookup
    # -------------------------------------------------------------------------

    def lookup_missing_provenance(
            self,
            repository_root: Optional[str] = None,
            commit_limit: Optional[int] = None,
            cancellation_event: Optional[threading.Event] = None,
    ) -> Optional[Dict[str, List[str]]]:
        """
        Search version-control history for every missing identifier.

        Defaults come from the configuration; the repository root falls back
        to the project root. Results replace any previous lookup.

        Returns:
            Optional[Dict[str, List[str]]]: Identifier to candidate paths, or
            None if no repository was found.
        """
        root = repository_root or self.config.get("repository_root") or self.config["project_root"]
        limit = self.config.get("commit_limit", 0) if commit_limit is None else commit_limit

        if not self.analysis.missing_identifiers:
            logger.info("No missing identifiers. Skipping history lookup.")
            self.provenance = {}
            return {}

        results = lookup_missing_references(
            self.analysis.missing_identifiers,
            os.path.abspath(root),
            limit,
            cancellation_event=cancellation_event,
        )
        self.provenance = results or {}
        return results

    def get_provenance(self, identifier: str) -> List[str]:
        """Candidate historical paths of one missing identifier."""
        return list(self.provenance.get(identifier, []))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _adopt(self, records: List[AssetRecord], analysis: StaticAnalysisResult) -> None:
        self.records = list(records)
        self.analysis = analysis
        self.provenance = {}
        self._hierarchy = None
        self._missing_folder = None
        logger.debug(f"Adopted {len(self.records)} records. Hierarchy will be rebuilt on demand.")
