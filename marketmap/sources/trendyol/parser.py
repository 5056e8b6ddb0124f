"""
Trendyol 응답 파서
카테고리/속성 응답의 여러 스키마 변형을 표준 모델로 변환
"""

from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from marketmap.models.category import Attribute, AttributeValue, CategoryNode


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


class TrendyolParser:
    """Trendyol 카테고리/속성 응답 파서"""

    def parse_categories(self, response: Any) -> List[CategoryNode]:
        """카테고리 목록 응답 파싱

        Args:
            response: ``[...]``, ``{"categories": [...]}``, ``{"result": [...]}``
                또는 ``{"subCategories": [...]}`` 형식의 응답

        Returns:
            평면화된 카테고리 노드 목록 (응답 순서 유지)
        """
        if isinstance(response, list):
            records = response
        elif isinstance(response, dict):
            records = _first(response, "categories", "result", "subCategories", default=[])
        else:
            records = []

        if not isinstance(records, list):
            return []

        flat: List[CategoryNode] = []
        self._walk(records, None, flat, set())
        return flat

    def _walk(
        self,
        records: Iterable[Any],
        parent_id: Optional[int],
        out: List[CategoryNode],
        seen: set,
    ):
        for record in records:
            if not isinstance(record, dict):
                continue
            node = self.normalize_category(record, parent_id)
            if node.id in seen:
                continue
            seen.add(node.id)
            out.append(node)

            children = record.get("subCategories")
            if isinstance(children, list) and children:
                self._walk(children, node.id, out, seen)

    def normalize_category(self, record: Dict[str, Any], parent_id: Optional[int] = None) -> CategoryNode:
        """단일 카테고리 레코드 정규화

        부모 ID 는 ``parentId``, ``parentCategoryId``, ``parentCategory.id`` 순으로 찾고,
        중첩 트리에서는 상위 노드 ID 를 사용한다.
        """
        parent = record.get("parentCategory")
        raw_parent = _first(
            record,
            "parentId",
            "parentCategoryId",
            default=parent.get("id") if isinstance(parent, dict) else None,
        )
        if raw_parent is None:
            raw_parent = parent_id

        children = record.get("subCategories")
        if "leaf" in record or "isLeaf" in record:
            is_leaf = bool(_first(record, "leaf", "isLeaf", default=False))
        elif isinstance(children, list):
            is_leaf = len(children) == 0
        else:
            is_leaf = False

        return CategoryNode(
            id=_to_int(record.get("id")),
            name=str(record.get("name") or ""),
            parent_id=_to_int(raw_parent),
            is_leaf=is_leaf,
        )

    def parse_attributes(self, response: Any) -> List[Attribute]:
        """카테고리 속성 응답 파싱

        ``categoryAttributes`` 항목의 ``attribute`` 중첩 객체와 평면 형식을 모두 지원한다.
        """
        if isinstance(response, list):
            records = response
        elif isinstance(response, dict):
            records = _first(
                response, "categoryAttributes", "attributes", "result", default=[]
            )
        else:
            records = []

        if not isinstance(records, list):
            logger.warning(f"예상하지 못한 속성 응답 형식: {type(records).__name__}")
            return []

        return [self.normalize_attribute(record) for record in records if isinstance(record, dict)]

    def normalize_attribute(self, record: Dict[str, Any]) -> Attribute:
        """단일 속성 레코드 정규화"""
        nested = record.get("attribute") if isinstance(record.get("attribute"), dict) else {}

        raw_values = _first(record, "attributeValues", "values", default=[])
        values = [
            AttributeValue(
                id=_to_int(_first(value, "id", "valueId")),
                name=str(_first(value, "name", "value", default="")),
            )
            for value in (raw_values if isinstance(raw_values, list) else [])
            if isinstance(value, dict)
        ]

        return Attribute(
            id=_to_int(_first(nested, "id", default=None) or _first(record, "id", "attributeId")),
            name=str(
                _first(nested, "name", default=None)
                or _first(record, "name", "attributeName", default="")
            ),
            required=bool(_first(record, "required", "isRequired", default=False)),
            allow_custom=bool(
                _first(record, "allowCustom", "allowCustomValue", "hasCustomValue", default=False)
            ),
            is_variant=bool(_first(record, "varianter", "variant", "isVariant", default=False)),
            values=values,
        )
