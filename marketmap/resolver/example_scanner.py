"""
예시 카테고리 스캐너
분기 아래를 너비 우선으로 훑어 속성 스키마가 있는 leaf 를 찾는다
"""

import asyncio
from collections import deque
from typing import Deque, List, Optional

from marketmap.config import ResolverConfig
from marketmap.errors import CategoryEngineError
from marketmap.models.category import CategoryNode, CategoryPath, ExampleMatch, ScanResult
from marketmap.monitoring import get_logger, global_metrics
from marketmap.sources.base import BaseAttributeSource

from .cache_resolver import CategoryCacheResolver, with_timeout

logger = get_logger(__name__)


class ExampleScanner:
    """속성이 있는 leaf 예시 탐색"""

    def __init__(
        self,
        resolver: CategoryCacheResolver,
        attribute_source: BaseAttributeSource,
        config: Optional[ResolverConfig] = None,
    ):
        self.resolver = resolver
        self.attribute_source = attribute_source
        self.config = config or resolver.config

    async def _count_attributes(self, path: CategoryPath) -> int:
        """leaf 의 속성 수 (조회 실패 시 0)"""
        category_id = path.target.id
        global_metrics.increment("scanner.lookups")
        try:
            attributes = await with_timeout(
                self.attribute_source.get_category_attributes(category_id, self.resolver.account),
                self.config.attributes_timeout,
                "attributes",
            )
        except CategoryEngineError as e:
            logger.warning(f"예시 후보 {category_id} 속성 조회 실패, 건너뜀: {e.message}")
            return 0
        return len(attributes)

    async def _lookup(self, batch: List[CategoryPath]) -> List[int]:
        """배치 조회 (모든 조회가 끝난 뒤 예상 밖 오류를 다시 발생)"""
        results = await asyncio.gather(
            *(self._count_attributes(p) for p in batch), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results

    async def _children(self, path: CategoryPath) -> List[CategoryNode]:
        if not path:
            return await self.resolver.children_of(0)
        return await self.resolver.children_of_node(path.target)

    async def find_examples(self, root_id: int, limit: Optional[int] = None) -> ScanResult:
        """
        root_id 아래에서 속성 스키마가 비어있지 않은 leaf 를 최대 limit 개 수집

        root_id 가 0 이면 전체 트리(루트 목록)에서 시작한다.
        분기를 하나 펼칠 때마다 새로 발견된 leaf 를 먼저 조회한 뒤 다음 분기로
        넘어가며, 배치 크기는 남은 필요 개수를 넘지 않는다. 따라서 limit 개를
        찾은 뒤에는 더 이상 조회하지 않는다.

        Raises:
            CategoryNotFoundError: 알 수 없는 root_id
            TransportError: 자식 목록 조회 실패
        """
        limit = self.config.clamp_limit(limit)
        budget = self.config.visit_budget(limit)

        root_path = CategoryPath() if root_id == 0 else await self.resolver.path_of(root_id)
        queue: Deque[CategoryPath] = deque()
        pending: Deque[CategoryPath] = deque()
        if root_path.is_terminal:
            pending.append(root_path)
        else:
            queue.append(root_path)

        seen = {node.id for node in root_path}
        found: List[ExampleMatch] = []
        visited = 0
        exhausted = False

        while len(found) < limit:
            if pending:
                batch_size = min(self.config.scan_concurrency, limit - len(found))
                take = min(batch_size, len(pending), budget - visited)
                if take <= 0:
                    exhausted = True
                    break
                batch = [pending.popleft() for _ in range(take)]
                visited += take
                counts = await self._lookup(batch)
                for path, count in zip(batch, counts):
                    if count and len(found) < limit:
                        found.append(ExampleMatch(path=path, attribute_count=count))
                        global_metrics.increment("scanner.matches")
                continue

            if not queue:
                break
            if visited >= budget:
                exhausted = True
                break

            path = queue.popleft()
            visited += 1
            for child in await self._children(path):
                if child.id in seen:
                    continue
                seen.add(child.id)
                if child.is_leaf:
                    pending.append(path.extend(child))
                else:
                    queue.append(path.extend(child))

        logger.info(
            f"카테고리 {root_id} 예시 스캔: {len(found)}/{limit}개 발견 "
            f"(방문 {visited}/{budget}{', 한도 도달' if exhausted else ''})"
        )
        return ScanResult(root_id=root_id, examples=found, visited=visited, exhausted=exhausted)
