"""
카테고리 데이터 모델 정의
마켓플레이스 카테고리 트리, 속성 스키마, 매핑 결과를 위한 표준 형식
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from marketmap.errors import TaxonomyInconsistencyError

# 속성 ID -> 선택된 속성값 ID (None 은 미선택)
AttributeAssignment = Dict[int, Optional[int]]


class CategoryNode(BaseModel):
    """마켓플레이스 카테고리 노드 (조회 후 불변)"""

    id: int = Field(..., description="카테고리 ID")
    name: str = Field(default="", description="카테고리명")
    parent_id: int = Field(default=0, description="상위 카테고리 ID (0 = 루트)")
    is_leaf: bool = Field(default=False, description="최하위(leaf) 카테고리 여부")

    model_config = ConfigDict(frozen=True)

    @property
    def is_root(self) -> bool:
        return self.parent_id == 0

    def label(self) -> str:
        """선택 목록 표시용 이름"""
        return f"{self.name} (leaf)" if self.is_leaf else self.name


class CategoryPath(BaseModel):
    """루트부터 대상 노드까지의 경로 (대상 포함)"""

    nodes: Tuple[CategoryNode, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, nodes: Sequence[CategoryNode]) -> "CategoryPath":
        return cls(nodes=tuple(nodes))

    def __iter__(self) -> Iterator[CategoryNode]:  # type: ignore[override]
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> CategoryNode:
        return self.nodes[index]

    def __bool__(self) -> bool:
        return bool(self.nodes)

    @property
    def ids(self) -> List[int]:
        return [node.id for node in self.nodes]

    @property
    def names(self) -> List[str]:
        return [node.name for node in self.nodes]

    @property
    def target(self) -> Optional[CategoryNode]:
        return self.nodes[-1] if self.nodes else None

    @property
    def breadcrumb(self) -> str:
        return " > ".join(self.names)

    @property
    def is_terminal(self) -> bool:
        """마지막 노드가 leaf 인지 여부"""
        return bool(self.nodes) and self.nodes[-1].is_leaf

    def extend(self, node: CategoryNode) -> "CategoryPath":
        return CategoryPath(nodes=self.nodes + (node,))

    def prefix(self, length: int) -> "CategoryPath":
        return CategoryPath(nodes=self.nodes[:length])

    def validate_chain(self) -> "CategoryPath":
        """
        연속 노드의 부모-자식 관계 검증

        Raises:
            TaxonomyInconsistencyError: path[i].id != path[i+1].parent_id 인 경우
        """
        for parent, child in zip(self.nodes, self.nodes[1:]):
            if child.parent_id != parent.id:
                raise TaxonomyInconsistencyError(
                    category_id=self.nodes[0].id,
                    node_id=child.id,
                    message=(
                        f"경로가 끊어졌습니다: {parent.id} -> {child.id} "
                        f"(parent_id={child.parent_id})"
                    ),
                )
        return self

    def summary(self) -> List[Dict[str, object]]:
        """API 응답용 간략 경로"""
        return [{"id": node.id, "name": node.name} for node in self.nodes]


class AttributeValue(BaseModel):
    """선택 가능한 속성값"""

    id: int
    name: str = ""

    model_config = ConfigDict(frozen=True)


class Attribute(BaseModel):
    """leaf 카테고리의 속성 스키마 항목"""

    id: int
    name: str = ""
    required: bool = False
    allow_custom: bool = False
    is_variant: bool = False
    values: List[AttributeValue] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def allows_value(self, value_id: int) -> bool:
        """허용된 값인지 확인 (custom 허용 시 항상 True)"""
        if self.allow_custom:
            return True
        return any(value.id == value_id for value in self.values)

    def value_name(self, value_id: Optional[int]) -> Optional[str]:
        for value in self.values:
            if value.id == value_id:
                return value.name
        return None


class MappingAttributeEntry(BaseModel):
    """매핑 페이로드의 속성 항목"""

    attribute_id: int = Field(..., alias="attributeId")
    attribute_value_id: Optional[int] = Field(None, alias="attributeValueId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class MappingPayload(BaseModel):
    """영속화 대상 카테고리 매핑 결과"""

    category_id: int = Field(..., alias="categoryId")
    attributes: List[MappingAttributeEntry] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def to_api(self) -> Dict[str, object]:
        """외부 저장소로 전달되는 camelCase 형식"""
        return self.model_dump(by_alias=True)

    def assigned(self) -> Dict[int, Optional[int]]:
        return {entry.attribute_id: entry.attribute_value_id for entry in self.attributes}


class LeafResult(BaseModel):
    """ensure_leaf 결과"""

    leaf_id: int
    path: CategoryPath
    was_leaf: bool = False

    @property
    def leaf(self) -> CategoryNode:
        return self.path.nodes[-1]


class ExampleMatch(BaseModel):
    """속성 스키마가 비어있지 않은 leaf 예시"""

    path: CategoryPath
    attribute_count: int

    @property
    def category_id(self) -> int:
        return self.path.nodes[-1].id

    @property
    def name(self) -> str:
        return self.path.nodes[-1].name


class ScanResult(BaseModel):
    """ExampleScanner 실행 결과"""

    root_id: int
    examples: List[ExampleMatch] = Field(default_factory=list)
    visited: int = 0
    exhausted: bool = False

    @property
    def found(self) -> bool:
        return bool(self.examples)
