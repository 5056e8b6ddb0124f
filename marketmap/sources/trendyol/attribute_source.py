"""
Trendyol 속성 소스
leaf 카테고리의 속성 스키마 조회
"""

from typing import List, Optional

from loguru import logger

from marketmap.errors import NotLeafError
from marketmap.models.account import AccountContext
from marketmap.models.category import Attribute
from marketmap.sources.base import BaseAttributeSource
from marketmap.sources.trendyol.category_source import TrendyolCategorySource
from marketmap.sources.trendyol.client import TrendyolClient
from marketmap.sources.trendyol.parser import TrendyolParser


class TrendyolAttributeSource(BaseAttributeSource):
    """Trendyol 카테고리 속성 소스"""

    marketplace = "trendyol"

    def __init__(
        self,
        client: TrendyolClient,
        category_source: Optional[TrendyolCategorySource] = None,
        parser: Optional[TrendyolParser] = None,
    ):
        """
        Args:
            client: Trendyol API 클라이언트
            category_source: leaf 여부 사전 확인용 (캐시된 목록만 사용)
            parser: 응답 파서
        """
        self.client = client
        self.category_source = category_source
        self.parser = parser or TrendyolParser()

    def _check_leaf(self, category_id: int, account: AccountContext) -> None:
        if self.category_source is None:
            return
        flat = self.category_source.cached_flat(account)
        if not flat:
            return
        for node in flat:
            if node.id == category_id and not node.is_leaf:
                raise NotLeafError(category_id)

    async def get_category_attributes(
        self, category_id: int, account: AccountContext
    ) -> List[Attribute]:
        self._check_leaf(category_id, account)

        data, _ = await self.client.fetch_attributes(category_id, account)
        attributes = self.parser.parse_attributes(data)
        if not attributes:
            logger.warning(f"카테고리 {category_id} 의 속성 스키마가 비어 있습니다")
        else:
            required = sum(1 for attr in attributes if attr.required)
            logger.debug(f"카테고리 {category_id} 속성 {len(attributes)}개 (필수 {required}개)")
        return attributes
