"""
카테고리/속성 소스 기본 인터페이스
마켓플레이스별 구현을 위한 추상 클래스
"""

from abc import ABC, abstractmethod
from typing import List

from marketmap.models.account import AccountContext
from marketmap.models.category import Attribute, CategoryNode, CategoryPath


class BaseCategorySource(ABC):
    """
    마켓플레이스 카테고리 트리 소스

    느리거나, 상위에서 일부만 캐시되어 있거나, 일시적으로 응답하지 않을 수 있다.
    """

    marketplace: str = ""

    @abstractmethod
    async def get_children(
        self, parent_id: int, account: AccountContext, cache_only: bool = False
    ) -> List[CategoryNode]:
        """
        parent_id 의 직계 자식 조회

        Args:
            parent_id: 상위 카테고리 ID (0 = 루트)
            account: 마켓플레이스 계정
            cache_only: True 이면 캐시에서만 응답

        Raises:
            NotCachedError: cache_only 조회에서 캐시가 비어있는 경우
            TransportError: 통신 실패
        """
        pass

    @abstractmethod
    async def get_flat_categories(self, account: AccountContext) -> List[CategoryNode]:
        """
        전체 카테고리 평면 목록 (원천 데이터)

        Raises:
            TransportError: 통신 실패
        """
        pass

    @abstractmethod
    async def get_category_path(self, category_id: int, account: AccountContext) -> CategoryPath:
        """
        루트부터 category_id 까지의 경로

        Raises:
            CategoryNotFoundError: 알 수 없는 카테고리
            TransportError: 통신 실패
        """
        pass


class BaseAttributeSource(ABC):
    """leaf 카테고리 속성 스키마 소스"""

    marketplace: str = ""

    @abstractmethod
    async def get_category_attributes(
        self, category_id: int, account: AccountContext
    ) -> List[Attribute]:
        """
        leaf 카테고리의 속성 스키마 조회

        Raises:
            NotLeafError: leaf 가 아닌 카테고리
            TransportError: 통신 실패
        """
        pass
