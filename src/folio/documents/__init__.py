"""Document metadata and the derived page hierarchy."""

from .hierarchy import (
    HierarchyBuilder,
    TreeSortMode,
    build_tree,
    collect_descendant_ids,
    find_node,
    flatten,
    get_ancestors,
    iter_nodes,
)
from .models import FOLDER_TAG, DocumentMeta, TreeNode

__all__ = [
    "FOLDER_TAG",
    "DocumentMeta",
    "TreeNode",
    "HierarchyBuilder",
    "TreeSortMode",
    "build_tree",
    "collect_descendant_ids",
    "find_node",
    "flatten",
    "get_ancestors",
    "iter_nodes",
]
