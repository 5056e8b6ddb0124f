"""
카테고리 캐시 해석기
캐시 전용 조회를 먼저 시도하고 실패하면 전체 평면 목록에서 자식을 골라낸다
"""

import asyncio
from typing import Awaitable, List, Optional, TypeVar

from marketmap.config import ResolverConfig
from marketmap.errors import CategoryEngineError, TransportError
from marketmap.models.account import AccountContext
from marketmap.models.category import CategoryNode, CategoryPath
from marketmap.monitoring import get_logger, global_metrics
from marketmap.sources.base import BaseCategorySource

logger = get_logger(__name__)

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout: Optional[float], endpoint: str) -> T:
    """
    외부 호출에 타임아웃 적용

    Raises:
        TransportError: 타임아웃 (reason="timeout")
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        raise TransportError(
            f"{endpoint} 응답 시간 초과 ({timeout}s)", endpoint=endpoint, reason="timeout"
        ) from None


class CategoryCacheResolver:
    """
    2단계 카테고리 자식 조회

    1단계: source.get_children(cache_only=True)
    2단계: source.get_flat_categories() 후 parent_id 로 필터링

    해석기 자체는 캐시를 갖지 않는다. 캐시는 소스의 책임이다.
    """

    def __init__(
        self,
        source: BaseCategorySource,
        account: AccountContext,
        config: Optional[ResolverConfig] = None,
    ):
        self.source = source
        self.account = account
        self.config = config or ResolverConfig()
        self.logger = logger.bind(supplier=account.cache_key)

    async def children_of(self, parent_id: int) -> List[CategoryNode]:
        """
        parent_id 의 직계 자식 (0 = 루트)

        빈 목록은 정상 결과이다.

        Raises:
            TransportError: 2단계 조회까지 실패
        """
        try:
            children = await with_timeout(
                self.source.get_children(parent_id, self.account, cache_only=True),
                self.config.children_timeout,
                "children",
            )
            global_metrics.increment("resolver.cache_hits")
            self.logger.debug(f"카테고리 {parent_id} 자식 {len(children)}개 (cache)")
            return children
        except CategoryEngineError as e:
            self.logger.debug(f"카테고리 {parent_id} 캐시 조회 실패, 전체 목록 사용: {e.message}")

        global_metrics.increment("resolver.fallbacks")
        try:
            flat = await with_timeout(
                self.source.get_flat_categories(self.account),
                self.config.flat_timeout,
                "flat",
            )
        except TransportError as e:
            global_metrics.increment("resolver.errors")
            self.logger.warning(f"카테고리 {parent_id} 자식 조회 실패: {e.message}")
            raise

        children = [node for node in flat if node.parent_id == parent_id]
        self.logger.debug(f"카테고리 {parent_id} 자식 {len(children)}개 (flat)")
        return children

    async def children_of_node(self, node: CategoryNode) -> List[CategoryNode]:
        """leaf 노드는 upstream 호출 없이 빈 목록"""
        if node.is_leaf:
            return []
        return await self.children_of(node.id)

    async def flat_categories(self) -> List[CategoryNode]:
        """전체 평면 목록 (캐시 정책은 소스가 결정)"""
        return await with_timeout(
            self.source.get_flat_categories(self.account), self.config.flat_timeout, "flat"
        )

    async def path_of(self, category_id: int) -> CategoryPath:
        """
        루트부터 category_id 까지의 경로

        Raises:
            CategoryNotFoundError: 알 수 없는 카테고리
            TransportError: 통신 실패
        """
        return await with_timeout(
            self.source.get_category_path(category_id, self.account),
            self.config.path_timeout,
            "path",
        )
