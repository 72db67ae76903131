from __future__ import annotations

"""
Dependency Hierarchy Node Models.

Provides the two node variants of the dependency hierarchy: folder nodes
that own an ordered list of children, and leaf nodes that wrap a single
asset record and hold non-owning references to other leaves.

Nodes compare and hash by identity. Relations between nodes are assumed
not to change once the tree builder has finished wiring them.
"""

from enum import Enum
from typing import List, Optional, Union

from assetdeps.domain.asset_models import PackageSource
from assetdeps.domain.constants import UNKNOWN_PACKAGE_NAME

# -----------------------------------------------------------------------------
# CLASSIFICATION
# -----------------------------------------------------------------------------

class NodeKind(str, Enum):
    """Classification tag carried by every leaf node."""
    DEFAULT = "default"
    BUILT_IN = "built-in"
    MISSING = "missing"
    INCONSISTENT = "inconsistent"

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

class BaseNode:
    """
    Shared state of folder and leaf nodes.

    The path is cached per node and stamped with a layout version shared by
    all nodes. Assigning any node's `name` or `parent` bumps the version, so
    descendants of a renamed or moved folder rebuild their path on the next
    read while an unchanged tree answers from the cache.
    """

    _layout_version: int = 0

    def __init__(
            self,
            name: str = "",
            parent: Optional[FolderNode] = None,
            package_name: str = UNKNOWN_PACKAGE_NAME,
            package_source: PackageSource = PackageSource.UNKNOWN,
    ) -> None:
        self._name = name
        self._parent = parent
        self._path: Optional[str] = None
        self._path_version = -1
        self.package_name = package_name
        self.package_source = package_source

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value
        BaseNode._layout_version += 1

    @property
    def parent(self) -> Optional[FolderNode]:
        return self._parent

    @parent.setter
    def parent(self, value: Optional[FolderNode]) -> None:
        self._parent = value
        BaseNode._layout_version += 1

    @property
    def path(self) -> str:
        """Slash-joined names from the topmost named ancestor down to this node."""
        if self._path is None or self._path_version != BaseNode._layout_version:
            parent_path = self._parent.path if self._parent is not None else ""
            self._path = f"{parent_path}/{self._name}" if parent_path else self._name
            self._path_version = BaseNode._layout_version
        return self._path

    @property
    def children(self) -> List[Node]:
        return []

    @property
    def size(self) -> int:
        return 0

    def is_descendant_of(self, other: BaseNode) -> bool:
        """Check whether `other` appears anywhere in this node's parent chain."""
        current = self._parent
        while current is not None:
            if current is other:
                return True
            current = current.parent
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"

    def __str__(self) -> str:
        return self._name


class FolderNode(BaseNode):
    """Aggregating container; size is the sum of its children."""

    def __init__(self, name: str = "", parent: Optional[FolderNode] = None, **kwargs) -> None:
        super().__init__(name, parent, **kwargs)
        self._children: List[Node] = []

    @property
    def children(self) -> List[Node]:
        return self._children

    @property
    def size(self) -> int:
        return sum(child.size for child in self._children)

    def find_child(self, name: str) -> Optional[Node]:
        """Return the first child with exactly this name."""
        for child in self._children:
            if child.name == name:
                return child
        return None

    def find_folder(self, name: str) -> Optional[FolderNode]:
        """Return the first folder child with exactly this name."""
        for child in self._children:
            if isinstance(child, FolderNode) and child.name == name:
                return child
        return None


class LeafNode(BaseNode):
    """
    Indivisible asset node.

    Attributes:
        identifier: Identifier of the wrapped asset record.
        kind: Classification derived from the static analysis.
        dependencies: Leaves this asset references.
        dependants: Leaves referencing this asset.
        module_name: Module definition enclosing the asset, if any.
    """

    def __init__(
            self,
            name: str,
            identifier: str,
            size: int = 0,
            kind: NodeKind = NodeKind.DEFAULT,
            parent: Optional[FolderNode] = None,
            module_name: Optional[str] = None,
            **kwargs,
    ) -> None:
        super().__init__(name, parent, **kwargs)
        self.identifier = identifier
        self.kind = kind
        self.module_name = module_name
        self._size = size
        self.dependencies: List[LeafNode] = []
        self.dependants: List[LeafNode] = []

    @property
    def size(self) -> int:
        return self._size


Node = Union[FolderNode, LeafNode]
