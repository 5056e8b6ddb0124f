"""
카테고리 매핑 세션
단계별 카테고리 선택, leaf 확보, 속성 입력, 저장 가능 판정을 관리하는 상태 머신

선택이 바뀔 때마다 세대(generation) 번호가 증가하며, 이전 세대에서 시작된
비동기 작업의 결과는 세션 상태에 반영되지 않는다.
"""

from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from marketmap.domain.validator import ValidationResult
from marketmap.engine import CategoryEngine
from marketmap.errors import CategoryEngineError, NotLeafError, StaleResultError
from marketmap.models.category import (
    Attribute,
    AttributeAssignment,
    CategoryNode,
    CategoryPath,
    ExampleMatch,
    LeafResult,
    MappingPayload,
    ScanResult,
)
from marketmap.monitoring import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SessionState(Enum):
    """세션 상태"""

    NO_CATEGORY = "no_category"
    CATEGORY_SELECTED = "category_selected"
    LEAF_PENDING = "leaf_pending"
    LEAF_RESOLVED = "leaf_resolved"
    ATTRIBUTES_LOADING = "attributes_loading"
    ATTRIBUTES_LOADED = "attributes_loaded"


class MappingSession:
    """한 상품의 카테고리 매핑 진행 상태"""

    def __init__(self, engine: CategoryEngine):
        self.engine = engine
        self.generation = 0
        self.state = SessionState.NO_CATEGORY

        # levels[i] 는 i 단계에서 선택된 노드, options[i] 는 i 단계의 선택지
        self.levels: List[CategoryNode] = []
        self.options: List[List[CategoryNode]] = []

        self.leaf: Optional[LeafResult] = None
        self.attributes: List[Attribute] = []
        self.assignments: AttributeAssignment = {}
        self.examples: List[ExampleMatch] = []

        # 현재 세대에서 확보한 leaf (시작 노드 ID -> 결과)
        self._resolved: Dict[int, LeafResult] = {}

    # 내부 상태 관리

    def _bump(self) -> int:
        self.generation += 1
        self._resolved.clear()
        return self.generation

    def _ensure_current(self, captured: int) -> None:
        if captured != self.generation:
            raise StaleResultError(captured, self.generation)

    async def _guarded(self, captured: int, awaitable: Awaitable[T]) -> T:
        """비동기 결과가 여전히 현재 세대의 것인지 확인 (실패도 동일)"""
        try:
            result = await awaitable
        except CategoryEngineError:
            self._ensure_current(captured)
            raise
        self._ensure_current(captured)
        return result

    def _discard(self, e: StaleResultError, operation: str) -> None:
        logger.bind(generation=e.captured).debug(f"{operation} 결과 무시 (현재 세대 {e.current})")

    def _clear_leaf(self) -> None:
        self.leaf = None
        self.attributes = []
        self.assignments = {}
        self.examples = []

    def _set_leaf(self, leaf: LeafResult) -> None:
        self.leaf = leaf
        self.levels = list(leaf.path.nodes)
        self.options = self.options[: len(self.levels)]
        self.state = SessionState.LEAF_RESOLVED

    @property
    def current(self) -> Optional[CategoryNode]:
        """가장 깊은 단계에서 선택된 노드"""
        return self.levels[-1] if self.levels else None

    @property
    def path(self) -> CategoryPath:
        return CategoryPath.of(self.levels)

    @property
    def resolved_leaf(self) -> Optional[LeafResult]:
        return self.leaf

    # 선택

    async def load_roots(self) -> List[CategoryNode]:
        """
        루트 카테고리 선택지 조회

        루트 목록은 선택과 무관하므로 세대를 확인하지 않고 항상 options[0] 에 둔다.
        """
        roots = await self.engine.resolve_children(0)
        if self.options:
            self.options[0] = roots
        else:
            self.options = [roots]
        return roots

    async def select(self, level: int, node: CategoryNode) -> Optional[List[CategoryNode]]:
        """
        level 단계에서 node 선택

        더 깊은 단계의 선택, leaf, 속성, 입력값은 자식 조회 전에 모두 버려진다.

        Returns:
            node 의 자식 목록 (leaf 이면 빈 목록), 더 새로운 선택에 밀린 경우 None
        """
        if level < 0 or level > len(self.levels):
            raise ValueError(f"잘못된 선택 단계: {level} (현재 {len(self.levels)}단계)")

        self.levels = self.levels[:level] + [node]
        self.options = self.options[: level + 1]
        # options[i] 는 항상 i 단계의 선택지 (루트 미조회 시 빈 자리)
        self.options += [[] for _ in range(level + 1 - len(self.options))]
        self._clear_leaf()
        captured = self._bump()
        self.state = SessionState.CATEGORY_SELECTED

        if node.is_leaf:
            self._set_leaf(LeafResult(leaf_id=node.id, path=self.path, was_leaf=True))
            return []

        self.state = SessionState.LEAF_PENDING
        try:
            children = await self._guarded(captured, self.engine.resolve_children_of(node))
        except StaleResultError as e:
            self._discard(e, f"카테고리 {node.id} 자식 조회")
            return None

        self.options.append(children)
        return children

    async def auto_find_leaf(self) -> Optional[LeafResult]:
        """
        현재 선택에서 leaf 자동 탐색

        같은 세대 안에서 같은 시작 노드는 다시 탐색하지 않는다.

        Raises:
            CategoryEngineError: 선택된 카테고리가 없는 경우
            LeafNotFoundError: 한도 내에서 leaf 를 찾지 못한 경우
        """
        start = self.current
        if start is None:
            raise CategoryEngineError("먼저 카테고리를 선택해 주세요")
        if self.leaf is not None:
            return self.leaf

        cached = self._resolved.get(start.id)
        if cached is not None:
            self._set_leaf(cached)
            return cached

        captured = self.generation
        try:
            result = await self._guarded(captured, self.engine.ensure_leaf(start.id))
        except StaleResultError as e:
            self._discard(e, f"카테고리 {start.id} leaf 탐색")
            return None

        self._resolved[start.id] = result
        self._set_leaf(result)
        logger.bind(generation=captured, category_id=result.leaf_id).info(
            f"leaf 자동 선택: {result.path.breadcrumb}"
        )
        return result

    async def find_examples(self, limit: Optional[int] = None) -> Optional[ScanResult]:
        """현재 선택 아래에서 속성이 있는 leaf 예시 탐색"""
        start = self.current
        if start is None:
            raise CategoryEngineError("먼저 카테고리를 선택해 주세요")

        captured = self.generation
        try:
            result = await self._guarded(captured, self.engine.find_examples(start.id, limit))
        except StaleResultError as e:
            self._discard(e, f"카테고리 {start.id} 예시 스캔")
            return None

        self.examples = list(result.examples)
        return result

    def apply_path(self, path: CategoryPath) -> SessionState:
        """예시 등으로 얻은 경로를 한 번에 선택"""
        if not path:
            raise ValueError("빈 경로는 적용할 수 없습니다")
        path.validate_chain()

        self.levels = list(path.nodes)
        self.options = self.options[:1]
        self._clear_leaf()
        self._bump()
        self.state = SessionState.CATEGORY_SELECTED

        if path.is_terminal:
            leaf = LeafResult(leaf_id=path.target.id, path=path, was_leaf=True)
            self._resolved[path.target.id] = leaf
            self._set_leaf(leaf)
        else:
            self.state = SessionState.LEAF_PENDING
        return self.state

    def reset(self) -> None:
        self.levels = []
        self.options = self.options[:1]
        self._clear_leaf()
        self._bump()
        self.state = SessionState.NO_CATEGORY

    # 속성

    async def load_attributes(self) -> Optional[List[Attribute]]:
        """
        확보된 leaf 의 속성 스키마 조회

        실패하면 LEAF_RESOLVED 상태로 돌아가고 오류를 그대로 전달한다.

        Raises:
            NotLeafError: leaf 가 아직 확보되지 않은 경우
            TransportError: 통신 실패
        """
        if self.state == SessionState.ATTRIBUTES_LOADED:
            return self.attributes
        if self.leaf is None:
            current = self.current
            if current is None:
                raise CategoryEngineError("먼저 카테고리를 선택해 주세요")
            raise NotLeafError(current.id)

        leaf = self.leaf
        captured = self.generation
        self.state = SessionState.ATTRIBUTES_LOADING
        try:
            attributes = await self._guarded(
                captured, self.engine.load_attributes(leaf.leaf_id, leaf.leaf)
            )
        except StaleResultError as e:
            self._discard(e, f"카테고리 {leaf.leaf_id} 속성 조회")
            return None
        except CategoryEngineError:
            self.state = SessionState.LEAF_RESOLVED
            raise

        self.attributes = attributes
        self.assignments = {attr.id: None for attr in attributes}
        self.state = SessionState.ATTRIBUTES_LOADED
        return attributes

    def _attribute(self, attribute_id: int) -> Attribute:
        if self.state != SessionState.ATTRIBUTES_LOADED:
            raise CategoryEngineError("속성이 아직 로드되지 않았습니다")
        for attr in self.attributes:
            if attr.id == attribute_id:
                return attr
        raise ValueError(f"카테고리 {self.leaf.leaf_id} 에 없는 속성입니다: {attribute_id}")

    def assign(self, attribute_id: int, value_id: Optional[int]) -> None:
        """속성값 선택 (None 은 선택 해제)"""
        attr = self._attribute(attribute_id)
        if value_id is not None and not attr.allows_value(value_id):
            logger.bind(generation=self.generation, category_id=self.leaf.leaf_id).warning(
                f"'{attr.name}' 속성에 목록에 없는 값 선택: {value_id}"
            )
        self.assignments[attribute_id] = value_id

    def unassign(self, attribute_id: int) -> None:
        self.assign(attribute_id, None)

    @property
    def can_save(self) -> bool:
        """저장 가능 여부 (속성 로드 완료 + 필수 속성 모두 선택)"""
        if self.state != SessionState.ATTRIBUTES_LOADED or self.leaf is None:
            return False
        return self.engine.is_save_eligible(self.leaf.leaf_id, self.attributes, self.assignments)

    def validation(self) -> ValidationResult:
        if self.state != SessionState.ATTRIBUTES_LOADED or self.leaf is None:
            raise CategoryEngineError("속성이 아직 로드되지 않았습니다")
        return self.engine.validate(self.leaf.leaf_id, self.attributes, self.assignments)

    def build_payload(self) -> MappingPayload:
        """
        Raises:
            MappingValidationError: 필수 속성 누락
        """
        if self.state != SessionState.ATTRIBUTES_LOADED or self.leaf is None:
            raise CategoryEngineError("속성이 아직 로드되지 않았습니다")
        return self.engine.build_payload(self.leaf.leaf_id, self.attributes, self.assignments)

    def save(self, product_id: str, replace: bool = True) -> Dict[str, Any]:
        payload = self.build_payload()
        return self.engine.save_mapping(payload, product_id, replace=replace)

    def snapshot(self) -> Dict[str, Any]:
        """현재 상태 요약"""
        return {
            "state": self.state.value,
            "generation": self.generation,
            "path": self.path.summary(),
            "leaf_id": self.leaf.leaf_id if self.leaf else None,
            "attributes": len(self.attributes),
            "assigned": sum(1 for v in self.assignments.values() if v is not None),
            "can_save": self.can_save,
        }
