from collections.abc import Iterable

from showast.tree.types import NodeIndex, TreeNode


def find_containing(nodes: Iterable[TreeNode], line: int, column: int) -> list[TreeNode]:
    """All nodes whose extent includes the 1-based (line, column)."""
    return [node for node in nodes if node.contains(line, column)]


def locate(index: NodeIndex, line: int, column: int) -> TreeNode | None:
    """Return the innermost node enclosing the 1-based (line, column).

    Scans the whole index. The smallest ``text_length`` wins; ties go to the
    deeper node, then to the first one in index order.
    """
    best: TreeNode | None = None
    for node in index.values():
        if not node.contains(line, column):
            continue
        if best is None:
            best = node
            continue
        if node.text_length < best.text_length:
            best = node
        elif node.text_length == best.text_length and node.depth > best.depth:
            best = node
    return best


__all__ = ["find_containing", "locate"]
