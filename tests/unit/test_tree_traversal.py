from showast.tree import (
    SerializedNode,
    TreeNode,
    build_forest,
    flatten,
    iter_preorder,
    nodes_by_depth,
    staged_expand,
)


class TestTraversal:
    def test_preorder_matches_script_order(self, assignment_nodes: list[SerializedNode]) -> None:
        forest = build_forest(assignment_nodes)

        assert [node.hash_code for node in iter_preorder(forest.roots)] == [
            100,
            101,
            102,
            103,
            104,
            105,
        ]

    def test_flatten_empty_forest(self) -> None:
        assert flatten([]) == []

    def test_nodes_by_depth_buckets(self, assignment_nodes: list[SerializedNode]) -> None:
        forest = build_forest(assignment_nodes)

        levels = nodes_by_depth(forest.roots)
        assert [[node.hash_code for node in level] for level in levels] == [
            [100],
            [101],
            [102],
            [103, 104],
            [105],
        ]


class TestStagedExpand:
    def test_reveals_only_expandable_nodes_level_by_level(
        self, assignment_nodes: list[SerializedNode]
    ) -> None:
        forest = build_forest(assignment_nodes)
        revealed: list[int] = []

        count = staged_expand(forest.roots, lambda node: revealed.append(node.hash_code))

        assert revealed == [100, 101, 102, 104]
        assert count == 4

    def test_failing_reveal_is_skipped(self, assignment_nodes: list[SerializedNode]) -> None:
        forest = build_forest(assignment_nodes)
        revealed: list[int] = []

        def reveal(node: TreeNode) -> None:
            if node.hash_code == 101:
                raise RuntimeError("view is gone")
            revealed.append(node.hash_code)

        count = staged_expand(forest.roots, reveal)

        assert revealed == [100, 102, 104]
        assert count == 3
