"""
Trendyol API 클라이언트
httpx 로 여러 게이트웨이 후보 엔드포인트를 순서대로 시도
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx
from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from marketmap.config import TrendyolConfig
from marketmap.errors import TransportError
from marketmap.models.account import AccountContext
from marketmap.monitoring import global_metrics, performance_tracker

# Cloudflare/게이트웨이 계열 상태 코드 (재시도 대상)
GATEWAY_STATUSES = {403, 502, 503, 504, 520, 522, 523, 524, 556}


class GatewayError(Exception):
    """재시도 가능한 게이트웨이 응답"""

    def __init__(self, status_code: int, ray: Optional[str] = None):
        self.status_code = status_code
        self.ray = ray
        super().__init__(f"gateway status {status_code}")


@dataclass
class Candidate:
    """요청 후보 (URL + 쿼리 파라미터)"""

    url: str
    params: Dict[str, Any] = field(default_factory=dict)


def is_gateway_response(response: httpx.Response) -> bool:
    if response.is_success:
        return False
    server = response.headers.get("server", "")
    return (
        response.status_code in GATEWAY_STATUSES
        or "cloudflare" in server.lower()
        or "cf-ray" in response.headers
    )


class TrendyolClient:
    """Trendyol 통합 API 클라이언트"""

    CATEGORIES_PATH = "/product-categories"
    ATTRIBUTES_PATH = "/product-categories/{category_id}/attributes"

    def __init__(self, config: TrendyolConfig, http_client: Optional[httpx.AsyncClient] = None):
        """
        초기화

        Args:
            config: Trendyol API 설정 (URL 후보, 타임아웃, 재시도, 프록시)
            http_client: 직접 연결용 클라이언트 (테스트에서 주입)
        """
        self.config = config
        self.client = http_client or httpx.AsyncClient(timeout=config.timeout)
        self._proxy_clients: Dict[str, httpx.AsyncClient] = {}

    async def close(self):
        await self.client.aclose()
        for client in self._proxy_clients.values():
            await client.aclose()
        self._proxy_clients.clear()

    async def __aenter__(self) -> "TrendyolClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def _headers(self, account: AccountContext) -> Dict[str, str]:
        headers = {
            "Authorization": account.basic_auth(),
            "Accept": "application/json",
            "User-Agent": f"{self.config.user_agent} ({account.supplier_id})",
        }
        if account.supplier_id:
            sid = str(account.supplier_id)
            headers["supplierId"] = sid
            headers["x-supplier-id"] = sid
        return headers

    def _client_for(self, proxy: Optional[str]) -> httpx.AsyncClient:
        if proxy is None:
            return self.client
        if proxy not in self._proxy_clients:
            self._proxy_clients[proxy] = httpx.AsyncClient(proxy=proxy, timeout=self.config.timeout)
        return self._proxy_clients[proxy]

    def category_candidates(self) -> List[Candidate]:
        return [Candidate(url=f"{base}{self.CATEGORIES_PATH}") for base in self.config.base_urls]

    def attribute_candidates(self, category_id: int, account: AccountContext) -> List[Candidate]:
        path = self.ATTRIBUTES_PATH.format(category_id=category_id)
        params: Dict[str, Any] = {"includeValues": "true"}
        if account.supplier_id:
            params["supplierId"] = account.supplier_id
        return [Candidate(url=f"{base}{path}", params=dict(params)) for base in self.config.base_urls]

    async def get_json(
        self, candidates: List[Candidate], account: AccountContext
    ) -> Tuple[Any, List[str]]:
        """
        후보 엔드포인트를 순서대로 GET 요청

        직접 연결을 먼저 시도하고 이후 프록시 풀을 사용한다. 게이트웨이 계열 응답은
        후보별로 max_retries 회까지 재시도하고, 그 외 실패는 다음 후보로 넘어간다.

        Returns:
            (JSON 응답, 시도 기록)

        Raises:
            TransportError: 모든 후보/프록시 실패
        """
        tried: List[str] = []
        headers = self._headers(account)
        last_reason = "no candidates"

        for proxy in [None, *self.config.proxies]:
            client = self._client_for(proxy)
            via = f" via {proxy}" if proxy else ""

            for candidate in candidates:
                try:
                    response = await self._get_with_retry(client, candidate, headers, tried, via)
                except GatewayError as e:
                    last_reason = str(e)
                    continue
                except httpx.HTTPError as e:
                    last_reason = f"{type(e).__name__}: {e}"
                    tried.append(f"{candidate.url}{via} -> ERR {last_reason}")
                    global_metrics.increment("source.errors")
                    continue

                if response.is_success:
                    try:
                        return response.json(), tried
                    except ValueError:
                        last_reason = "invalid json"
                        tried.append(f"{candidate.url}{via} -> invalid json")
                        continue

                last_reason = f"status {response.status_code}"

        logger.error(f"Trendyol 요청 실패: {last_reason} ({len(tried)}회 시도)")
        raise TransportError(
            "Cloudflare/게이트웨이 또는 upstream 오류로 Trendyol 에 접근할 수 없습니다",
            endpoint=candidates[0].url if candidates else None,
            reason=last_reason,
            tried=tried,
        )

    async def _get_with_retry(
        self,
        client: httpx.AsyncClient,
        candidate: Candidate,
        headers: Dict[str, str],
        tried: List[str],
        via: str,
    ) -> httpx.Response:
        backoff = self.config.backoff_seconds
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=wait_incrementing(start=backoff, increment=backoff),
            retry=retry_if_exception_type(GatewayError),
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                global_metrics.increment("source.requests")
                async with performance_tracker.track_async("trendyol.get", "source.latency"):
                    response = await client.get(candidate.url, params=candidate.params, headers=headers)

                ray = response.headers.get("cf-ray")
                tried.append(
                    f"{candidate.url}{via} -> {response.status_code}"
                    + (f" cf-ray:{ray}" if ray else "")
                )
                if response.is_success:
                    return response
                global_metrics.increment("source.errors")
                if is_gateway_response(response):
                    raise GatewayError(response.status_code, ray)
                return response

    async def fetch_categories(self, account: AccountContext) -> Tuple[Any, List[str]]:
        """전체 카테고리 트리 원본 응답"""
        return await self.get_json(self.category_candidates(), account)

    async def fetch_attributes(self, category_id: int, account: AccountContext) -> Tuple[Any, List[str]]:
        """카테고리 속성 원본 응답"""
        return await self.get_json(self.attribute_candidates(category_id, account), account)
