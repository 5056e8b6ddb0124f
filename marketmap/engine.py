"""
카테고리 해석 엔진
자식 조회, leaf 확보, 예시 스캔, 속성 조회, 저장 검증을 하나의 진입점으로 제공
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from marketmap.config import ResolverConfig
from marketmap.domain.tree import find_leaf_descendant, get_path
from marketmap.domain.validator import MappingValidator, ValidationResult
from marketmap.errors import (
    CategoryEngineError,
    CategoryNotFoundError,
    LeafNotFoundError,
    NoExampleFoundError,
    NotLeafError,
)
from marketmap.models.account import AccountContext
from marketmap.models.category import (
    Attribute,
    AttributeAssignment,
    CategoryNode,
    CategoryPath,
    LeafResult,
    MappingPayload,
    ScanResult,
)
from marketmap.monitoring import get_logger, performance_tracker
from marketmap.resolver import CategoryCacheResolver, ExampleScanner, LeafFinder, with_timeout
from marketmap.sources.base import BaseAttributeSource, BaseCategorySource
from marketmap.storage.base import BaseMappingStore

if TYPE_CHECKING:
    from marketmap.session import MappingSession

logger = get_logger(__name__)


class CategoryEngine:
    """마켓플레이스 카테고리 해석 엔진"""

    def __init__(
        self,
        category_source: BaseCategorySource,
        attribute_source: BaseAttributeSource,
        account: AccountContext,
        config: Optional[ResolverConfig] = None,
        store: Optional[BaseMappingStore] = None,
        validator: Optional[MappingValidator] = None,
    ):
        """
        Args:
            category_source: 카테고리 트리 소스
            attribute_source: 속성 스키마 소스
            account: 조회에 사용할 마켓플레이스 계정
            config: 타임아웃/탐색 한도 설정
            store: 매핑 저장소 (저장 기능 사용 시)
            validator: 매핑 검증기
        """
        self.category_source = category_source
        self.attribute_source = attribute_source
        self.account = account
        self.config = config or ResolverConfig()
        self.store = store
        self.validator = validator or MappingValidator()

        self.resolver = CategoryCacheResolver(category_source, account, self.config)
        self.leaf_finder = LeafFinder(self.resolver, self.config)
        self.scanner = ExampleScanner(self.resolver, attribute_source, self.config)

    # 트리 탐색

    async def resolve_children(self, parent_id: int) -> List[CategoryNode]:
        """parent_id 의 직계 자식 (0 = 루트)"""
        return await self.resolver.children_of(parent_id)

    async def resolve_children_of(self, node: CategoryNode) -> List[CategoryNode]:
        """노드 기준 자식 조회 (leaf 는 upstream 호출 없이 빈 목록)"""
        return await self.resolver.children_of_node(node)

    async def get_path(self, category_id: int) -> CategoryPath:
        return await self.resolver.path_of(category_id)

    async def ensure_leaf(self, start_id: int) -> LeafResult:
        async with performance_tracker.track_async("ensure_leaf"):
            return await self.leaf_finder.ensure_leaf(start_id)

    async def ensure_leaf_nearest(self, start_id: int) -> LeafResult:
        """
        전체 평면 목록에서 start_id 의 가장 가까운 leaf 자손 선택 (BFS)

        Raises:
            CategoryNotFoundError: 알 수 없는 start_id
            LeafNotFoundError: leaf 자손이 없는 경우
        """
        flat = await self.resolver.flat_categories()
        path = get_path(flat, start_id)
        if not path:
            raise CategoryNotFoundError(start_id)
        if path.is_terminal:
            return LeafResult(leaf_id=start_id, path=path, was_leaf=True)

        leaf = find_leaf_descendant(flat, start_id, max_visits=self.config.max_visits)
        if leaf is None:
            raise LeafNotFoundError(start_id, reason="budget")
        return LeafResult(leaf_id=leaf.id, path=get_path(flat, leaf.id), was_leaf=False)

    async def find_examples(self, root_id: int, limit: Optional[int] = None) -> ScanResult:
        async with performance_tracker.track_async("find_examples"):
            return await self.scanner.find_examples(root_id, limit)

    async def require_example(self, root_id: int, limit: Optional[int] = None) -> ScanResult:
        """
        find_examples 와 같지만 예시가 없으면 오류

        Raises:
            NoExampleFoundError: 한도 내에서 예시를 찾지 못한 경우
        """
        result = await self.find_examples(root_id, limit)
        if not result.found:
            raise NoExampleFoundError(root_id, result.visited)
        return result

    # 속성

    async def load_attributes(
        self, leaf_id: int, node: Optional[CategoryNode] = None
    ) -> List[Attribute]:
        """
        leaf 카테고리의 속성 스키마

        Args:
            leaf_id: leaf 카테고리 ID
            node: 호출자가 이미 알고 있는 노드 (leaf 여부 사전 확인)

        Raises:
            NotLeafError: leaf 가 아닌 것으로 알려진 카테고리
            TransportError: 통신 실패
        """
        if node is not None and node.id == leaf_id and not node.is_leaf:
            raise NotLeafError(leaf_id)

        return await with_timeout(
            self.attribute_source.get_category_attributes(leaf_id, self.account),
            self.config.attributes_timeout,
            "attributes",
        )

    async def smart_attributes(self, category_id: int) -> Tuple[LeafResult, List[Attribute]]:
        """leaf 를 확보한 뒤 그 leaf 의 속성 스키마 조회"""
        leaf = await self.ensure_leaf(category_id)
        attributes = await self.load_attributes(leaf.leaf_id, leaf.leaf)
        return leaf, attributes

    # 검증 / 저장

    def is_save_eligible(
        self, leaf_id: int, attributes: List[Attribute], assignments: AttributeAssignment
    ) -> bool:
        return self.validator.is_save_eligible(leaf_id, attributes, assignments)

    def build_payload(
        self, leaf_id: int, attributes: List[Attribute], assignments: AttributeAssignment
    ) -> MappingPayload:
        return self.validator.build_payload(leaf_id, attributes, assignments)

    def validate(
        self, leaf_id: int, attributes: List[Attribute], assignments: AttributeAssignment
    ) -> ValidationResult:
        return self.validator.validate(leaf_id, attributes, assignments)

    def save_mapping(
        self, payload: MappingPayload, product_id: str, replace: bool = True
    ) -> Dict[str, Any]:
        """
        검증된 페이로드 저장

        Raises:
            CategoryEngineError: 저장소가 설정되지 않은 경우
        """
        if self.store is None:
            raise CategoryEngineError("매핑 저장소가 설정되지 않았습니다")
        return self.store.save_mapping(self.account.store_id, product_id, payload, replace=replace)

    def session(self) -> "MappingSession":
        """새 매핑 세션"""
        from marketmap.session import MappingSession

        return MappingSession(self)
