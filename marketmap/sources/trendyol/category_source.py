"""
Trendyol 카테고리 소스
메모리(TTL) -> 디스크 -> upstream 순의 계층 캐시를 가진 카테고리 트리 조회
"""

import asyncio
import time
from typing import Callable, Dict, List, Optional

from loguru import logger

from marketmap.domain.tree import get_children, get_path, index_by_id
from marketmap.errors import CategoryNotFoundError, NotCachedError, TransportError
from marketmap.models.account import AccountContext
from marketmap.models.category import CategoryNode, CategoryPath
from marketmap.sources.base import BaseCategorySource
from marketmap.sources.trendyol.client import TrendyolClient
from marketmap.sources.trendyol.parser import TrendyolParser
from marketmap.storage.category_cache import CategoryCacheStore


class _CacheEntry:
    __slots__ = ("flat", "fetched_at", "source")

    def __init__(self, flat: List[CategoryNode], fetched_at: float, source: str):
        self.flat = flat
        self.fetched_at = fetched_at
        self.source = source


class TrendyolCategorySource(BaseCategorySource):
    """Trendyol 카테고리 트리 소스"""

    marketplace = "trendyol"

    def __init__(
        self,
        client: TrendyolClient,
        disk_cache: Optional[CategoryCacheStore] = None,
        ttl: float = 60 * 60 * 6,
        parser: Optional[TrendyolParser] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            client: Trendyol API 클라이언트
            disk_cache: 디스크 캐시 (없으면 메모리 캐시만 사용)
            ttl: 메모리 캐시 유효 시간 (초)
            parser: 응답 파서
            clock: 현재 시각 함수 (테스트용)
        """
        self.client = client
        self.disk_cache = disk_cache
        self.ttl = ttl
        self.parser = parser or TrendyolParser()
        self.clock = clock

        self._memory: Dict[str, _CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        # 마지막 조회가 upstream 실패 후 캐시로 응답했는지 여부
        self.last_cache_used = False

    def _lock_for(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def _fresh(self, entry: Optional[_CacheEntry]) -> bool:
        return entry is not None and bool(entry.flat) and self.clock() - entry.fetched_at < self.ttl

    def _from_disk(self, key: str) -> Optional[_CacheEntry]:
        if self.disk_cache is None:
            return None
        data = self.disk_cache.load(key)
        if not data:
            return None
        entry = _CacheEntry(data["flat"], data["fetched_at"], data["source"])
        self._memory[key] = entry
        return entry

    def cached_flat(self, account: AccountContext) -> Optional[List[CategoryNode]]:
        """upstream 호출 없이 메모리/디스크 캐시만 조회"""
        key = account.cache_key
        entry = self._memory.get(key)
        if entry is not None and entry.flat:
            return entry.flat
        entry = self._from_disk(key)
        return entry.flat if entry else None

    async def _fetch(self, account: AccountContext) -> List[CategoryNode]:
        data, tried = await self.client.fetch_categories(account)
        flat = self.parser.parse_categories(data)
        if not flat:
            raise TransportError(
                "카테고리 목록이 비어 있습니다",
                endpoint=self.client.CATEGORIES_PATH,
                reason="empty",
                tried=tried,
            )
        source = tried[-1].split(" -> ")[0] if tried else "trendyol"
        self._memory[account.cache_key] = _CacheEntry(flat, self.clock(), source)
        if self.disk_cache is not None:
            self.disk_cache.save(account.cache_key, flat, source)
        logger.info(f"Trendyol 카테고리 {len(flat)}개 수집 (판매자 {account.supplier_id})")
        return flat

    async def get_flat_categories(
        self, account: AccountContext, force: bool = False, cache_only: bool = False
    ) -> List[CategoryNode]:
        """
        전체 카테고리 평면 목록

        Args:
            account: 마켓플레이스 계정
            force: 메모리 캐시가 유효해도 upstream 에서 새로 받기
            cache_only: 메모리/디스크 캐시에서만 응답

        Raises:
            NotCachedError: cache_only 인데 캐시가 비어있는 경우
            TransportError: upstream 실패 및 캐시 없음
        """
        key = account.cache_key
        self.last_cache_used = False

        if not force and self._fresh(self._memory.get(key)):
            return self._memory[key].flat

        if cache_only:
            flat = self.cached_flat(account)
            if flat:
                return flat
            raise NotCachedError("카테고리 캐시가 비어 있습니다 (cache_only)")

        async with self._lock_for(key):
            # 대기 중 다른 요청이 채웠을 수 있음
            if not force and self._fresh(self._memory.get(key)):
                return self._memory[key].flat
            try:
                return await self._fetch(account)
            except TransportError as e:
                flat = self.cached_flat(account)
                if flat:
                    self.last_cache_used = True
                    logger.warning(f"Trendyol 카테고리 조회 실패, 캐시 사용: {e.message}")
                    return flat
                raise

    async def get_children(
        self, parent_id: int, account: AccountContext, cache_only: bool = False
    ) -> List[CategoryNode]:
        flat = await self.get_flat_categories(account, cache_only=cache_only)
        return get_children(flat, parent_id)

    async def get_category_path(self, category_id: int, account: AccountContext) -> CategoryPath:
        flat = await self.get_flat_categories(account)
        path = get_path(flat, category_id)
        if not path:
            raise CategoryNotFoundError(category_id)
        return path

    async def find_node(self, category_id: int, account: AccountContext) -> Optional[CategoryNode]:
        """평면 목록에서 단일 노드 조회"""
        flat = await self.get_flat_categories(account)
        return index_by_id(flat).get(category_id)

    async def warmup(self, account: AccountContext) -> int:
        """캐시 강제 갱신 후 카테고리 수 반환"""
        flat = await self.get_flat_categories(account, force=True)
        return len(flat)

    def invalidate(self, account: AccountContext) -> None:
        """메모리 캐시 항목 제거 (디스크 캐시는 유지)"""
        self._memory.pop(account.cache_key, None)
