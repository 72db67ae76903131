from __future__ import annotations

"""
Selection Tree Filters.

Predicates used to narrow the selection tree down to the nodes worth
auditing: unused assets, assets with broken references, a path substring
and packages that live outside the project. Per-node answers are memoized
for the lifetime of one hierarchy.
"""

from typing import Dict, Iterable, Optional

from assetdeps.domain.asset_models import PackageSource
from assetdeps.domain.node_models import BaseNode, FolderNode, LeafNode

# Only mutable package sources count as part of the project
_INTERNAL_SOURCES = frozenset({PackageSource.EMBEDDED, PackageSource.LOCAL, PackageSource.UNKNOWN})


class SelectionFilter:
    """
    Combined hide-filter for the selection tree.

    Attributes:
        only_unused: Hide nodes that are used and contain nothing unused.
        only_missing_references: Hide nodes that neither are missing nor
                                 reference a missing identifier.
        path_filter: Hide nodes whose path does not contain this text.
        show_external_packages: Keep nodes from immutable packages.
    """

    def __init__(
            self,
            missing_identifiers: Iterable[str],
            *,
            only_unused: bool = False,
            only_missing_references: bool = False,
            path_filter: str = "",
            show_external_packages: bool = False,
    ) -> None:
        self._missing = frozenset(missing_identifiers)
        self.only_unused = only_unused
        self.only_missing_references = only_missing_references
        self.path_filter = path_filter
        self.show_external_packages = show_external_packages

        self._unused_cache: Dict[BaseNode, bool] = {}
        self._missing_ref_count_cache: Dict[BaseNode, int] = {}
        self._missing_cache: Dict[BaseNode, bool] = {}

    def __call__(self, node: BaseNode, focus: Optional[BaseNode] = None) -> bool:
        """Return True if `node` should be hidden."""
        if self.only_unused and not self.is_unused(node):
            return True

        if self.only_missing_references:
            if self.missing_reference_count(node) < 1 and not self.is_missing(node):
                return True

        if self.path_filter and self.path_filter not in node.path:
            return True

        if not self.show_external_packages and is_external(node):
            return True

        return False

    def clear(self) -> None:
        """Forget memoized answers, required after the hierarchy is rebuilt."""
        self._unused_cache.clear()
        self._missing_ref_count_cache.clear()
        self._missing_cache.clear()

    def is_unused(self, node: BaseNode) -> bool:
        """A leaf nobody references, or a folder containing one."""
        if node not in self._unused_cache:
            if isinstance(node, LeafNode):
                value = len(node.dependants) < 1
            elif isinstance(node, FolderNode):
                value = any(self.is_unused(child) for child in node.children)
            else:
                raise TypeError(f"Unsupported node type: {type(node).__name__}")
            self._unused_cache[node] = value
        return self._unused_cache[node]

    def missing_reference_count(self, node: BaseNode) -> int:
        """Number of references to missing identifiers below `node`."""
        if node not in self._missing_ref_count_cache:
            if isinstance(node, LeafNode):
                value = sum(1 for dep in node.dependencies if dep.identifier in self._missing)
            elif isinstance(node, FolderNode):
                value = sum(self.missing_reference_count(child) for child in node.children)
            else:
                raise TypeError(f"Unsupported node type: {type(node).__name__}")
            self._missing_ref_count_cache[node] = value
        return self._missing_ref_count_cache[node]

    def is_missing(self, node: BaseNode) -> bool:
        """A missing leaf, or a folder containing one."""
        if node not in self._missing_cache:
            if isinstance(node, LeafNode):
                value = node.identifier in self._missing
            elif isinstance(node, FolderNode):
                value = any(self.is_missing(child) for child in node.children)
            else:
                raise TypeError(f"Unsupported node type: {type(node).__name__}")
            self._missing_cache[node] = value
        return self._missing_cache[node]


def is_external(node: BaseNode) -> bool:
    """True for nodes belonging to registry, built-in or other immutable packages."""
    return node.package_source not in _INTERNAL_SOURCES
