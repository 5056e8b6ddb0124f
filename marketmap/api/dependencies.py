"""
API 의존성 주입
"""

from typing import Any

from fastapi import Depends, HTTPException, Request, status

from marketmap.config import settings
from marketmap.engine import CategoryEngine
from marketmap.factory import build_services
from marketmap.models.account import AccountContext
from marketmap.monitoring import get_logger
from marketmap.sources.trendyol import TrendyolAttributeSource, TrendyolCategorySource
from marketmap.storage import BaseMappingStore

logger = get_logger(__name__)


def _service(request: Request, name: str) -> Any:
    services = getattr(request.app.state, "services", None)
    if services is None:
        logger.debug("앱 서비스가 없어 새로 생성합니다")
        services = build_services()
        request.app.state.services = services
    return services[name]


async def get_account() -> AccountContext:
    """설정된 Trendyol 계정"""
    if not settings.trendyol.is_configured():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Trendyol API 키/시크릿/판매자 ID 설정이 필요합니다",
        )
    return settings.trendyol.account()


async def get_category_source(request: Request) -> TrendyolCategorySource:
    return _service(request, "category_source")


async def get_attribute_source(request: Request) -> TrendyolAttributeSource:
    return _service(request, "attribute_source")


async def get_mapping_store(request: Request) -> BaseMappingStore:
    return _service(request, "mapping_store")


async def get_engine(
    account: AccountContext = Depends(get_account),
    category_source: TrendyolCategorySource = Depends(get_category_source),
    attribute_source: TrendyolAttributeSource = Depends(get_attribute_source),
    store: BaseMappingStore = Depends(get_mapping_store),
) -> CategoryEngine:
    """요청 단위 카테고리 엔진"""
    return CategoryEngine(
        category_source,
        attribute_source,
        account,
        config=settings.resolver,
        store=store,
    )
