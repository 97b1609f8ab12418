import logging
import time
from collections import deque
from collections.abc import Callable, Iterator, Sequence

from showast.tree.types import TreeNode

logger = logging.getLogger(__name__)


def iter_preorder(roots: Sequence[TreeNode]) -> Iterator[TreeNode]:
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def flatten(roots: Sequence[TreeNode]) -> list[TreeNode]:
    """Pre-order list of every node in the forest."""
    return list(iter_preorder(roots))


def nodes_by_depth(roots: Sequence[TreeNode]) -> list[list[TreeNode]]:
    """Group nodes into breadth-first depth buckets; each node appears exactly once."""
    levels: list[list[TreeNode]] = []
    queue: deque[tuple[TreeNode, int]] = deque((root, 0) for root in roots)
    while queue:
        node, depth = queue.popleft()
        if depth == len(levels):
            levels.append([])
        levels[depth].append(node)
        queue.extend((child, depth + 1) for child in node.children)
    return levels


def staged_expand(
    roots: Sequence[TreeNode],
    reveal: Callable[[TreeNode], object],
    *,
    delay_seconds: float = 0.0,
) -> int:
    """Reveal every expandable node one depth level at a time.

    Returns the number of nodes successfully revealed. A failing ``reveal``
    is logged and skipped.
    """
    revealed = 0
    for level in nodes_by_depth(roots):
        for node in level:
            if not node.has_children:
                continue
            try:
                reveal(node)
            except Exception as e:
                logger.debug("Expand failed for %s at %s: %s", node.kind, node.location_str(), e)
                continue
            revealed += 1
            if delay_seconds > 0:
                time.sleep(delay_seconds)
    return revealed


__all__ = ["flatten", "iter_preorder", "nodes_by_depth", "staged_expand"]
