"""
설정으로부터 Trendyol 클라이언트, 소스, 저장소, 엔진 조립
"""

from typing import Any, Dict, Optional

from marketmap.config import Settings, get_settings
from marketmap.engine import CategoryEngine
from marketmap.models.account import AccountContext
from marketmap.sources.trendyol import (
    TrendyolAttributeSource,
    TrendyolCategorySource,
    TrendyolClient,
)
from marketmap.storage import CategoryCacheStore, JSONMappingStore


def build_services(config: Optional[Settings] = None) -> Dict[str, Any]:
    """
    공유 클라이언트/소스/저장소 생성

    카테고리 메모리 캐시는 소스 인스턴스에 있으므로 프로세스(앱) 수명 동안 하나만 만든다.
    """
    config = config or get_settings()
    client = TrendyolClient(config.trendyol)
    disk_cache = CategoryCacheStore(config.category_cache_path) if config.cache_enabled else None
    category_source = TrendyolCategorySource(client, disk_cache=disk_cache, ttl=config.cache_ttl)
    attribute_source = TrendyolAttributeSource(client, category_source=category_source)
    store = JSONMappingStore(str(config.mapping_store_path))

    return {
        "client": client,
        "category_source": category_source,
        "attribute_source": attribute_source,
        "mapping_store": store,
    }


def build_engine(
    services: Dict[str, Any],
    account: Optional[AccountContext] = None,
    config: Optional[Settings] = None,
) -> CategoryEngine:
    config = config or get_settings()
    return CategoryEngine(
        services["category_source"],
        services["attribute_source"],
        account or config.trendyol.account(),
        config=config.resolver,
        store=services["mapping_store"],
    )
