from __future__ import annotations

"""
Relation Classification.

Categorizes nodes relative to a focus node using the reachability engine,
and builds the relation filters used by dependency, dependant and cyclic
views.
"""

from enum import Enum
from typing import Callable, Optional, Tuple

from assetdeps.core.analysis.hierarchy import DependencyHierarchy
from assetdeps.domain.node_models import BaseNode

# (node, focus) -> True when the node must be hidden
NodeFilter = Callable[[BaseNode, Optional[BaseNode]], bool]


class Relation(str, Enum):
    """Position of a candidate node relative to the focus node."""
    UNRELATED = "unrelated"
    FOCUS = "focus"
    DEPENDENCY = "dependency"
    DEPENDANT = "dependant"
    CYCLIC = "cyclic"


def relation_status(
        hierarchy: DependencyHierarchy,
        focus: Optional[BaseNode],
        node: BaseNode,
) -> Optional[Tuple[bool, bool]]:
    """
    Raw reachability pair between the focus and a node.

    Returns:
        Optional[Tuple[bool, bool]]: (node is a dependency of focus,
        node is a dependant of focus), or None without a focus.
    """
    if focus is None:
        return None
    return hierarchy.reaches(focus, node), hierarchy.reaches(node, focus)


def classify(
        hierarchy: DependencyHierarchy,
        focus: Optional[BaseNode],
        candidate: BaseNode,
) -> Relation:
    """
    Categorize `candidate` relative to `focus`.

    The focus itself is reported as FOCUS before any reachability test, so
    comparing a node with itself never looks like a cycle.
    """
    if focus is None:
        return Relation.UNRELATED
    if focus is candidate:
        return Relation.FOCUS

    is_dependency, is_dependant = relation_status(hierarchy, focus, candidate)
    if is_dependency and is_dependant:
        return Relation.CYCLIC
    if is_dependency:
        return Relation.DEPENDENCY
    if is_dependant:
        return Relation.DEPENDANT
    return Relation.UNRELATED


def relation_filter(
        hierarchy: DependencyHierarchy,
        only_dependencies: bool,
        only_dependants: bool,
) -> NodeFilter:
    """
    Build a predicate that returns True for nodes a view should hide.

    Both flags together keep only cyclic pairs, which is narrower than
    keeping dependencies or dependants. Without a focus nothing is hidden.

    Args:
        hierarchy: Hierarchy answering the reachability queries.
        only_dependencies: Keep only dependencies of the focus.
        only_dependants: Keep only dependants of the focus.

    Returns:
        NodeFilter: Predicate over (node, focus).
    """
    cyclic_only = only_dependencies and only_dependants

    def should_hide(node: BaseNode, focus: Optional[BaseNode]) -> bool:
        status = relation_status(hierarchy, focus, node)
        if status is None:
            return False
        is_dependency, is_dependant = status
        if cyclic_only:
            return not (is_dependency and is_dependant)
        if only_dependencies:
            return not is_dependency
        if only_dependants:
            return not is_dependant
        return False

    return should_hide


def keep_predicate(node_filter: NodeFilter) -> NodeFilter:
    """Invert a hide-filter into a keep-predicate."""
    return lambda node, focus: not node_filter(node, focus)


def combine_filters(*filters: Optional[NodeFilter]) -> NodeFilter:
    """Hide a node if any of the given filters hides it."""
    active = [f for f in filters if f is not None]
    return lambda node, focus: any(f(node, focus) for f in active)
