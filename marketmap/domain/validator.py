"""
매핑 검증 모듈
leaf 카테고리 속성 스키마와 사용자 속성 선택을 비교해 저장 가능 여부 판정
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from marketmap.errors import MappingValidationError
from marketmap.models.category import (
    Attribute,
    AttributeAssignment,
    MappingAttributeEntry,
    MappingPayload,
)


class ValidationLevel(Enum):
    """검증 수준"""

    ERROR = "error"  # 저장 불가
    WARNING = "warning"  # 저장 가능, 확인 권장
    INFO = "info"  # 정보성 알림


@dataclass
class ValidationResult:
    """검증 결과"""

    is_valid: bool
    errors: List[Dict[str, Any]]
    warnings: List[Dict[str, Any]]
    info: List[Dict[str, Any]]
    score: float  # 필수 속성 입력률 (0.0 ~ 1.0)

    def add_error(self, field: str, message: str, details: Optional[Dict] = None):
        """오류 추가"""
        self.errors.append(
            {
                "field": field,
                "message": message,
                "level": ValidationLevel.ERROR.value,
                "details": details or {},
            }
        )
        self.is_valid = False

    def add_warning(self, field: str, message: str, details: Optional[Dict] = None):
        """경고 추가"""
        self.warnings.append(
            {
                "field": field,
                "message": message,
                "level": ValidationLevel.WARNING.value,
                "details": details or {},
            }
        )

    def add_info(self, field: str, message: str, details: Optional[Dict] = None):
        """정보 추가"""
        self.info.append(
            {
                "field": field,
                "message": message,
                "level": ValidationLevel.INFO.value,
                "details": details or {},
            }
        )


class MappingValidator:
    """카테고리 매핑 검증기"""

    @staticmethod
    def missing_required(
        attributes: Sequence[Attribute], assignments: AttributeAssignment
    ) -> Dict[int, str]:
        """값이 선택되지 않은 필수 속성 (ID -> 이름)"""
        return {
            attr.id: attr.name
            for attr in attributes
            if attr.required and assignments.get(attr.id) is None
        }

    def is_save_eligible(
        self, leaf_id: int, attributes: Sequence[Attribute], assignments: AttributeAssignment
    ) -> bool:
        """모든 필수 속성에 값이 선택되었는지 여부"""
        return not self.missing_required(attributes, assignments)

    def build_payload(
        self, leaf_id: int, attributes: Sequence[Attribute], assignments: AttributeAssignment
    ) -> MappingPayload:
        """
        저장용 페이로드 생성

        스키마의 모든 속성을 스키마 순서대로 포함하며, 선택되지 않은 선택 속성은
        attribute_value_id=None 으로 남긴다.

        Raises:
            MappingValidationError: 필수 속성 누락
        """
        missing = self.missing_required(attributes, assignments)
        if missing:
            raise MappingValidationError(leaf_id, missing)

        return MappingPayload(
            category_id=leaf_id,
            attributes=[
                MappingAttributeEntry(
                    attribute_id=attr.id, attribute_value_id=assignments.get(attr.id)
                )
                for attr in attributes
            ],
        )

    def validate(
        self, leaf_id: int, attributes: Sequence[Attribute], assignments: AttributeAssignment
    ) -> ValidationResult:
        """
        상세 검증

        필수 속성 누락은 오류, 허용 목록 밖의 값과 스키마에 없는 속성은 경고로 기록한다.
        저장 가능 여부에는 오류만 영향을 준다.
        """
        result = ValidationResult(is_valid=True, errors=[], warnings=[], info=[], score=1.0)
        by_id = {attr.id: attr for attr in attributes}

        for attr_id, name in self.missing_required(attributes, assignments).items():
            result.add_error(
                f"attribute.{attr_id}",
                f"필수 속성 '{name or attr_id}' 값을 선택해야 합니다",
                {"attribute_id": attr_id},
            )

        for attr_id, value_id in assignments.items():
            attr = by_id.get(attr_id)
            if attr is None:
                result.add_warning(
                    f"attribute.{attr_id}",
                    f"카테고리 {leaf_id} 스키마에 없는 속성입니다",
                    {"attribute_id": attr_id},
                )
                continue
            if value_id is not None and not attr.allows_value(value_id):
                result.add_warning(
                    f"attribute.{attr_id}",
                    f"'{attr.name}' 속성에 허용되지 않은 값입니다: {value_id}",
                    {"attribute_id": attr_id, "value_id": value_id},
                )

        required = [attr for attr in attributes if attr.required]
        if required:
            filled = len(required) - len(result.errors)
            result.score = filled / len(required)
        else:
            result.add_info("attributes", "필수 속성이 없는 카테고리입니다")

        variants = [attr.name for attr in attributes if attr.is_variant]
        if variants:
            result.add_info("variants", f"옵션 속성: {', '.join(variants)}")

        return result
