from showast.tree.builder import build_forest
from showast.tree.locator import find_containing, locate
from showast.tree.traversal import flatten, iter_preorder, nodes_by_depth, staged_expand
from showast.tree.types import (
    ELLIPSIS,
    NODE_TEXT_LIMIT,
    PROPERTY_VALUE_LIMIT,
    Forest,
    NodeIndex,
    NodeProperty,
    ParseError,
    SerializedNode,
    TreeNode,
    truncate_text,
)

__all__ = [
    # Builder
    "build_forest",
    # Queries
    "find_containing",
    "locate",
    # Traversal
    "flatten",
    "iter_preorder",
    "nodes_by_depth",
    "staged_expand",
    # Types
    "ELLIPSIS",
    "NODE_TEXT_LIMIT",
    "PROPERTY_VALUE_LIMIT",
    "Forest",
    "NodeIndex",
    "NodeProperty",
    "ParseError",
    "SerializedNode",
    "TreeNode",
    "truncate_text",
]
