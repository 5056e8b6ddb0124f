"""
카테고리 트리 유틸리티
평면(flat) 카테고리 목록에서 자식 조회, 경로 계산, 트리 구성
"""

from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Sequence

from marketmap.models.category import CategoryNode, CategoryPath


def index_by_id(flat: Iterable[CategoryNode]) -> Dict[int, CategoryNode]:
    """ID -> 노드"""
    return {node.id: node for node in flat}


def children_index(flat: Iterable[CategoryNode]) -> Dict[int, List[CategoryNode]]:
    """부모 ID -> 자식 노드 목록 (원본 목록 순서 유지)"""
    by_parent: Dict[int, List[CategoryNode]] = {}
    for node in flat:
        by_parent.setdefault(node.parent_id, []).append(node)
    return by_parent


def get_children(flat: Sequence[CategoryNode], parent_id: int) -> List[CategoryNode]:
    """평면 목록에서 parent_id 의 직계 자식만 필터링"""
    return [node for node in flat if node.parent_id == parent_id]


def get_path(flat: Sequence[CategoryNode], category_id: int) -> CategoryPath:
    """
    루트부터 category_id 까지의 경로

    부모 링크가 순환하거나 목록에 없는 부모를 만나면 그 지점에서 멈춘다.
    category_id 가 없으면 빈 경로를 반환한다.
    """
    by_id = index_by_id(flat)
    nodes: List[CategoryNode] = []
    seen = set()
    current = by_id.get(category_id)

    while current is not None and current.id not in seen:
        seen.add(current.id)
        nodes.append(current)
        if current.parent_id == 0:
            break
        current = by_id.get(current.parent_id)

    nodes.reverse()
    return CategoryPath.of(nodes)


def find_leaf_descendant(
    flat: Sequence[CategoryNode], category_id: int, max_visits: int = 10000
) -> Optional[CategoryNode]:
    """BFS 로 가장 가까운 leaf 자손 탐색 (없으면 None)"""
    by_parent = children_index(flat)
    queue = deque(by_parent.get(category_id, []))
    seen = {category_id}
    visits = 0

    while queue and visits < max_visits:
        node = queue.popleft()
        if node.id in seen:
            continue
        seen.add(node.id)
        visits += 1
        if node.is_leaf:
            return node
        queue.extend(by_parent.get(node.id, []))

    return None


def build_tree(flat: Sequence[CategoryNode]) -> List[Dict[str, Any]]:
    """
    평면 목록을 중첩 트리로 변환

    목록에 없는 부모를 가리키는 노드는 루트로 취급한다.
    """
    nodes: Dict[int, Dict[str, Any]] = {
        node.id: {**node.model_dump(), "children": []} for node in flat
    }
    roots: List[Dict[str, Any]] = []

    for node in flat:
        item = nodes[node.id]
        if node.parent_id == 0 or node.parent_id not in nodes or node.parent_id == node.id:
            roots.append(item)
        else:
            nodes[node.parent_id]["children"].append(item)

    return roots


def count_leaves(flat: Iterable[CategoryNode]) -> int:
    return sum(1 for node in flat if node.is_leaf)
