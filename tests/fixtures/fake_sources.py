"""
테스트용 인메모리 카테고리/속성 소스
호출 기록, 장애 주입, 응답 지연(gate) 지원
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Set

from marketmap.domain.tree import get_path
from marketmap.errors import CategoryNotFoundError, NotCachedError, NotLeafError, TransportError
from marketmap.models.account import AccountContext
from marketmap.models.category import Attribute, AttributeValue, CategoryNode, CategoryPath
from marketmap.sources.base import BaseAttributeSource, BaseCategorySource


def node(id: int, name: str, parent_id: int = 0, is_leaf: bool = False) -> CategoryNode:
    return CategoryNode(id=id, name=name, parent_id=parent_id, is_leaf=is_leaf)


def sample_flat() -> List[CategoryNode]:
    """
    1 Electronics -> 11..15 (모두 leaf)
    2 Home -> 21 Kitchen -> 211, 212 / 22 Garden -> 221
    3 Broken (leaf 아님, 자식 없음)
    """
    return [
        node(1, "Electronics"),
        node(2, "Home"),
        node(3, "Broken"),
        node(11, "Phones", 1, True),
        node(12, "Tablets", 1, True),
        node(13, "Cables", 1, True),
        node(14, "Laptops", 1, True),
        node(15, "Cameras", 1, True),
        node(21, "Kitchen", 2),
        node(22, "Garden", 2),
        node(211, "Pots", 21, True),
        node(212, "Pans", 21, True),
        node(221, "Tools", 22, True),
    ]


def cyclic_flat() -> List[CategoryNode]:
    """41 <-> 42 가 서로를 부모로 가리키는 손상된 데이터"""
    return [node(41, "Loop A", 42), node(42, "Loop B", 41)]


def chain_flat(length: int, start: int = 100) -> List[CategoryNode]:
    """start 부터 length 단계 아래에 leaf 가 하나 있는 일직선 트리"""
    nodes = [node(start, "Level 0")]
    for depth in range(1, length + 1):
        nodes.append(node(start + depth, f"Level {depth}", start + depth - 1, depth == length))
    return nodes


def sample_attributes() -> Dict[int, List[Attribute]]:
    return {
        11: [
            Attribute(
                id=100,
                name="Renk",
                required=True,
                values=[AttributeValue(id=1, name="Red"), AttributeValue(id=2, name="Blue")],
            ),
            Attribute(id=101, name="Garanti", values=[AttributeValue(id=5, name="2 Yıl")]),
        ],
        14: [
            Attribute(
                id=300,
                name="İşlemci",
                required=True,
                values=[AttributeValue(id=10, name="i5"), AttributeValue(id=11, name="i7")],
            )
        ],
        211: [Attribute(id=400, name="Malzeme", allow_custom=True)],
        221: [
            Attribute(id=500, name="Tip", required=True, values=[AttributeValue(id=50, name="El")])
        ],
    }


class FakeCategorySource(BaseCategorySource):
    """평면 목록 기반 카테고리 소스"""

    marketplace = "fake"

    def __init__(
        self,
        flat: Iterable[CategoryNode],
        cached_parents: Optional[Set[int]] = None,
        fail_cache: bool = False,
        fail_flat: bool = False,
    ):
        """
        Args:
            flat: 전체 카테고리
            cached_parents: cache_only 조회에 응답할 부모 ID (None 이면 전부)
            fail_cache: cache_only 조회를 항상 NotCachedError 로 실패
            fail_flat: 평면 목록 조회를 TransportError 로 실패
        """
        self.flat = list(flat)
        self.cached_parents = cached_parents
        self.fail_cache = fail_cache
        self.fail_flat = fail_flat
        self.gates: Dict[int, asyncio.Event] = {}
        self.calls: List[tuple] = []
        self.last_cache_used = False

    async def get_children(
        self, parent_id: int, account: AccountContext, cache_only: bool = False
    ) -> List[CategoryNode]:
        self.calls.append(("children", parent_id, cache_only))
        gate = self.gates.get(parent_id)
        if gate is not None:
            await gate.wait()
        if cache_only and (
            self.fail_cache
            or (self.cached_parents is not None and parent_id not in self.cached_parents)
        ):
            raise NotCachedError()
        return [n for n in self.flat if n.parent_id == parent_id]

    async def get_flat_categories(
        self, account: AccountContext, force: bool = False, cache_only: bool = False
    ) -> List[CategoryNode]:
        self.calls.append(("flat", force, cache_only))
        if self.fail_flat:
            raise TransportError("flat unavailable", endpoint="flat", reason="status 503")
        return list(self.flat)

    async def get_category_path(self, category_id: int, account: AccountContext) -> CategoryPath:
        self.calls.append(("path", category_id))
        path = get_path(self.flat, category_id)
        if not path:
            raise CategoryNotFoundError(category_id)
        return path

    async def warmup(self, account: AccountContext) -> int:
        self.calls.append(("warmup",))
        return len(self.flat)

    def invalidate(self, account: AccountContext) -> None:
        self.calls.append(("invalidate",))

    def upstream_children_calls(self) -> List[int]:
        return [call[1] for call in self.calls if call[0] == "children"]


class FakeAttributeSource(BaseAttributeSource):
    """카테고리 ID -> 속성 목록 소스"""

    marketplace = "fake"

    def __init__(
        self,
        schemas: Dict[int, List[Attribute]],
        non_leaf: Optional[Set[int]] = None,
        failing: Optional[Set[int]] = None,
    ):
        self.schemas = schemas
        self.non_leaf = non_leaf if non_leaf is not None else {1, 2, 3, 21, 22}
        self.failing = failing or set()
        self.lookups: List[int] = []
        self.gate: Optional[asyncio.Event] = None

    async def get_category_attributes(
        self, category_id: int, account: AccountContext
    ) -> List[Attribute]:
        self.lookups.append(category_id)
        if self.gate is not None:
            await self.gate.wait()
        if category_id in self.failing:
            raise TransportError("attributes unavailable", endpoint="attributes", reason="status 556")
        if category_id in self.non_leaf:
            raise NotLeafError(category_id)
        return list(self.schemas.get(category_id, []))
