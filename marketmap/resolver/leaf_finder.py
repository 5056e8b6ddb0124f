"""
leaf 카테고리 자동 탐색
첫 번째 자식을 따라 내려가며 가장 먼저 만나는 leaf 를 찾는다
"""

from typing import Optional

from marketmap.config import ResolverConfig
from marketmap.errors import LeafNotFoundError, TaxonomyInconsistencyError
from marketmap.models.category import LeafResult
from marketmap.monitoring import get_logger, global_metrics

from .cache_resolver import CategoryCacheResolver

logger = get_logger(__name__)


class LeafFinder:
    """greedy 하향 탐색으로 leaf 보장"""

    def __init__(self, resolver: CategoryCacheResolver, config: Optional[ResolverConfig] = None):
        self.resolver = resolver
        self.config = config or resolver.config

    async def ensure_leaf(self, start_id: int) -> LeafResult:
        """
        start_id 에서 시작해 leaf 카테고리 확보

        start 가 leaf 이면 그대로 반환한다. 아니면 자식 중 첫 번째 leaf 를,
        leaf 자식이 없으면 첫 번째 자식으로 내려가 반복한다. 목록 순서에 의존하므로
        호출마다 다른(하지만 유효한) leaf 가 나올 수 있다.

        Raises:
            CategoryNotFoundError: 알 수 없는 start_id
            LeafNotFoundError: 깊이/방문 한도 초과 또는 순환
            TaxonomyInconsistencyError: 자식이 없는 non-leaf 노드
            TransportError: 통신 실패
        """
        path = (await self.resolver.path_of(start_id)).validate_chain()
        start = path.target

        if start.is_leaf:
            return LeafResult(leaf_id=start.id, path=path, was_leaf=True)

        visited = {node.id for node in path}
        visits = 0
        depth = 0
        current = start

        while True:
            if depth >= self.config.max_depth or visits >= self.config.max_visits:
                logger.warning(
                    f"카테고리 {start_id} leaf 탐색 한도 초과 (depth={depth}, visits={visits})"
                )
                raise LeafNotFoundError(
                    start_id, reason="budget", details={"depth": depth, "visits": visits}
                )

            children = await self.resolver.children_of_node(current)
            visits += 1
            global_metrics.increment("leaf_finder.visits")

            if not children:
                raise TaxonomyInconsistencyError(start_id, current.id)

            leaf = next((child for child in children if child.is_leaf), None)
            if leaf is not None:
                logger.debug(f"카테고리 {start_id} -> leaf {leaf.id} (depth={depth + 1})")
                return LeafResult(leaf_id=leaf.id, path=path.extend(leaf), was_leaf=False)

            current = children[0]
            if current.id in visited:
                logger.warning(f"카테고리 {start_id} 탐색 중 순환 감지: {current.id}")
                raise LeafNotFoundError(
                    start_id,
                    reason="budget",
                    message=f"카테고리 {start_id} 아래에서 순환이 감지되었습니다 ({current.id})",
                    details={"cycle_at": current.id},
                )
            visited.add(current.id)
            path = path.extend(current)
            depth += 1
