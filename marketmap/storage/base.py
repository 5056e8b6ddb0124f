"""
매핑 저장소 기본 인터페이스
확정된 카테고리 매핑(MappingPayload)을 영속화하는 저장소 추상 클래스
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from marketmap.models.category import MappingPayload


class BaseMappingStore(ABC):
    """매핑 저장소 추상 클래스"""

    @abstractmethod
    def save_mapping(
        self, store_id: int, product_id: str, payload: MappingPayload, replace: bool = True
    ) -> Dict[str, Any]:
        """
        상품의 카테고리 매핑 저장

        Args:
            store_id: 스토어 ID
            product_id: 상품 ID
            payload: 저장 가능 판정을 받은 매핑
            replace: 기존 활성 매핑 교체 여부

        Returns:
            저장된 레코드

        Raises:
            ValueError: replace=False 이고 활성 매핑이 이미 있는 경우
        """
        pass

    @abstractmethod
    def get_mapping(self, store_id: int, product_id: str) -> Optional[Dict[str, Any]]:
        """활성 매핑 조회"""
        pass

    @abstractmethod
    def list_mappings(self, store_id: int) -> List[Dict[str, Any]]:
        """스토어의 활성 매핑 목록 (최신순)"""
        pass

    @abstractmethod
    def delete_mapping(self, store_id: int, product_id: str) -> bool:
        """매핑 비활성화 (soft delete)"""
        pass
