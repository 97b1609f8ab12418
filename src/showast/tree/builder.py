import logging
from collections.abc import Iterable

from showast.tree.types import Forest, NodeIndex, SerializedNode, TreeNode

logger = logging.getLogger(__name__)


def build_forest(nodes: Iterable[SerializedNode]) -> Forest:
    """Rebuild the parse tree from the flat node list of one analysis.

    Pass 1 allocates a TreeNode per input node and indexes it by identity
    hash. Pass 2 links every node to its parent in encounter order; parentless
    nodes become roots in input order. Nodes whose parent does not resolve are
    orphans: they are left out of the tree and of the returned index, together
    with anything hanging below them. Never raises for inconsistent input.
    """
    index: NodeIndex = {}
    for serialized in nodes:
        if serialized.hash_code in index:
            logger.debug("Duplicate node hash %s; keeping the last one", serialized.hash_code)
        index[serialized.hash_code] = TreeNode.from_serialized(serialized)

    roots: list[TreeNode] = []
    orphans: list[int] = []
    for hash_code, node in index.items():
        parent_hash = node.parent_hash_code
        if parent_hash is None:
            roots.append(node)
            continue
        parent = index.get(parent_hash) if parent_hash != hash_code else None
        if parent is None:
            orphans.append(hash_code)
            continue
        parent.children.append(node)

    if orphans:
        logger.debug("Dropped %d orphan node(s) with unresolved parents", len(orphans))

    reachable = _index_reachable(roots)
    if len(reachable) != len(index):
        logger.debug("Pruned %d unreachable node(s) from index", len(index) - len(reachable))

    return Forest(roots=roots, index=reachable, orphans=orphans)


def _index_reachable(roots: list[TreeNode]) -> NodeIndex:
    """Index every node reachable from ``roots`` and assign depths."""
    reachable: NodeIndex = {}
    stack: list[tuple[TreeNode, int]] = [(root, 0) for root in reversed(roots)]
    while stack:
        node, depth = stack.pop()
        if node.hash_code in reachable:
            continue
        node.depth = depth
        reachable[node.hash_code] = node
        for child in reversed(node.children):
            stack.append((child, depth + 1))
    return reachable


__all__ = ["build_forest"]
