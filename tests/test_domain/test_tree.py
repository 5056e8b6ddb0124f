"""
카테고리 트리 유틸리티 테스트
"""

from marketmap.domain.tree import (
    build_tree,
    children_index,
    count_leaves,
    find_leaf_descendant,
    get_children,
    get_path,
    index_by_id,
)
from tests.fixtures.fake_sources import cyclic_flat, node, sample_flat


class TestTreeUtils:
    """평면 목록 기반 트리 함수"""

    def test_get_children_roots(self):
        roots = get_children(sample_flat(), 0)

        assert [n.id for n in roots] == [1, 2, 3]

    def test_get_children_keeps_listing_order(self):
        children = get_children(sample_flat(), 1)

        assert [n.id for n in children] == [11, 12, 13, 14, 15]

    def test_get_children_of_leaf_is_empty(self):
        assert get_children(sample_flat(), 11) == []

    def test_children_index(self):
        by_parent = children_index(sample_flat())

        assert [n.id for n in by_parent[21]] == [211, 212]
        assert 3 not in by_parent

    def test_get_path(self):
        path = get_path(sample_flat(), 211)

        assert path.ids == [2, 21, 211]
        assert path.breadcrumb == "Home > Kitchen > Pots"
        assert path.is_terminal

    def test_get_path_unknown_id(self):
        assert not get_path(sample_flat(), 999)

    def test_get_path_stops_on_cycle(self):
        path = get_path(cyclic_flat(), 41)

        assert path.ids == [42, 41]

    def test_find_leaf_descendant_prefers_nearest(self):
        flat = [
            node(1, "Root"),
            node(10, "Deep", 1),
            node(11, "Shallow leaf", 1, True),
            node(100, "Deep leaf", 10, True),
        ]

        assert find_leaf_descendant(flat, 1).id == 11

    def test_find_leaf_descendant_none(self):
        assert find_leaf_descendant(sample_flat(), 3) is None

    def test_build_tree(self):
        tree = build_tree(sample_flat())
        by_id = {item["id"]: item for item in tree}

        assert set(by_id) == {1, 2, 3}
        home = by_id[2]
        assert [c["id"] for c in home["children"]] == [21, 22]
        assert [c["id"] for c in home["children"][0]["children"]] == [211, 212]

    def test_build_tree_orphans_become_roots(self):
        tree = build_tree([node(5, "Orphan", 77, True)])

        assert [item["id"] for item in tree] == [5]

    def test_index_and_count(self):
        flat = sample_flat()

        assert index_by_id(flat)[14].name == "Laptops"
        assert count_leaves(flat) == 8
