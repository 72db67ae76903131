from __future__ import annotations

"""
Dependency Hierarchy and Reachability Engine.

Owns the rooted node tree produced by one tree-builder run together with
the memoized reachability table. The table is valid only as long as the
dependency edges stay untouched, which holds for the lifetime of a
hierarchy; a rebuild produces a new hierarchy with an empty table.

The table is not thread-safe. Queries against one hierarchy are expected
to come from a single owner thread.
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from assetdeps.domain.node_models import BaseNode, FolderNode, LeafNode, Node

logger = logging.getLogger(__name__)

_Key = Tuple[BaseNode, BaseNode]


class DependencyHierarchy:
    """
    Rooted node tree plus its reachability side table.

    Attributes:
        root: Unnamed folder whose descendants are every leaf with a path.
        nodes_by_identifier: Every leaf, including those without a path.
    """

    def __init__(self, root: FolderNode, nodes_by_identifier: Dict[str, LeafNode]) -> None:
        self.root = root
        self.nodes_by_identifier = nodes_by_identifier
        self._reach_cache: Dict[_Key, bool] = {}
        # Pairs being computed, by depth of their frame
        self._active: Dict[_Key, int] = {}
        # Lowest active depth each running frame has read a provisional answer from
        self._lowlinks: List[int] = []
        # False answers waiting for the frame they relied on to finish
        self._deferred: List[_Key] = []
        self._deferred_low: Dict[_Key, int] = {}

    # -------------------------------------------------------------------------
    # Polymorphic queries
    # -------------------------------------------------------------------------

    def reaches(self, node: Optional[BaseNode], other: Optional[BaseNode]) -> bool:
        """
        Check whether `node` transitively depends on `other`.

        A node never reaches itself. Results are memoized per
        (node, other) pair. A pair that is still being computed reads as
        provisionally False so that dependency cycles terminate; answers
        derived from such a read are only memoized once the pair they
        relied on has finished, and then share its outcome.
        """
        if node is None or other is None or node is other:
            return False

        key = (node, other)
        cached = self._reach_cache.get(key)
        if cached is not None:
            return cached

        depth = self._active.get(key)
        if depth is None:
            depth = self._deferred_low.get(key)
        if depth is not None:
            self._lowlinks[-1] = min(self._lowlinks[-1], depth)
            return False

        return self._visit(key)

    @staticmethod
    def size(node: BaseNode) -> int:
        """Byte size of a leaf, or the aggregate size of a folder."""
        if isinstance(node, LeafNode):
            return node.size
        if isinstance(node, FolderNode):
            return sum(DependencyHierarchy.size(child) for child in node.children)
        raise TypeError(f"Unsupported node type: {type(node).__name__}")

    @staticmethod
    def children(node: BaseNode) -> List[Node]:
        """Children of a folder; leaves have none."""
        if isinstance(node, FolderNode):
            return node.children
        if isinstance(node, LeafNode):
            return []
        raise TypeError(f"Unsupported node type: {type(node).__name__}")

    def invalidate(self) -> None:
        """Discard every memoized reachability answer."""
        self._reach_cache.clear()
        self._deferred.clear()
        self._deferred_low.clear()

    @property
    def cache_size(self) -> int:
        return len(self._reach_cache)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def find(self, node_path: str, start: Optional[FolderNode] = None) -> Optional[Node]:
        """
        Resolve a '/'-separated path by matching child names segment by segment.

        Args:
            node_path: Path such as 'Assets/Prefabs/Door.prefab'.
            start: Folder to resolve from, defaults to the root.

        Returns:
            Optional[Node]: The node, or None if any segment does not match.
        """
        segments = [s for s in node_path.split("/") if s]
        current: Optional[BaseNode] = start or self.root
        for index, segment in enumerate(segments):
            if not isinstance(current, FolderNode):
                return None
            if index < len(segments) - 1:
                current = current.find_folder(segment)
            else:
                current = current.find_child(segment)
            if current is None:
                return None
        return current  # type: ignore[return-value]

    def walk(self, node: Optional[BaseNode] = None) -> Iterator[Node]:
        """Yield `node` (default: root) and all of its descendants, depth first."""
        stack: List[BaseNode] = [node or self.root]
        while stack:
            current = stack.pop()
            yield current  # type: ignore[misc]
            stack.extend(reversed(self.children(current)))

    def leaves(self, node: Optional[BaseNode] = None) -> List[LeafNode]:
        """Every leaf below (and including) `node`."""
        return [n for n in self.walk(node) if isinstance(n, LeafNode)]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _visit(self, key: _Key) -> bool:
        depth = len(self._lowlinks)
        mark = len(self._deferred)
        self._active[key] = depth
        self._lowlinks.append(depth)
        try:
            result = self._compute_reaches(*key)
        except BaseException:
            for deferred_key in self._deferred[mark:]:
                del self._deferred_low[deferred_key]
            del self._deferred[mark:]
            raise
        finally:
            del self._active[key]
            low = self._lowlinks.pop()

        pending = self._deferred[mark:]
        # A True answer is always backed by a real path, and it short-circuits
        # every caller up to the outermost query.
        if result or low == depth:
            for deferred_key in pending:
                self._reach_cache[deferred_key] = result
                del self._deferred_low[deferred_key]
            del self._deferred[mark:]
            self._reach_cache[key] = result
            return result

        # Settled together with the running frame at depth `low`
        for deferred_key in pending:
            if self._deferred_low[deferred_key] >= depth:
                self._deferred_low[deferred_key] = low
        self._deferred.append(key)
        self._deferred_low[key] = low
        self._lowlinks[-1] = min(self._lowlinks[-1], low)
        return result

    def _compute_reaches(self, node: BaseNode, other: BaseNode) -> bool:
        if isinstance(node, LeafNode):
            dependencies = []
            for dependency in node.dependencies:
                if dependency is node:
                    logger.warning(f"Why does {node.path} depend on itself?")
                    continue
                if dependency is other or dependency.is_descendant_of(other):
                    return True
                dependencies.append(dependency)
            for dependency in dependencies:
                if self.reaches(dependency, other):
                    return True
            return False

        if isinstance(node, FolderNode):
            for child in node.children:
                if self.reaches(child, other):
                    return True
            return False

        raise TypeError(f"Unsupported node type: {type(node).__name__}")
