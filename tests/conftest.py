"""
pytest 공통 fixtures 및 설정
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from marketmap.config import ResolverConfig  # noqa: E402
from marketmap.engine import CategoryEngine  # noqa: E402
from marketmap.models.account import AccountContext  # noqa: E402
from marketmap.resolver import CategoryCacheResolver  # noqa: E402
from tests.fixtures.fake_sources import (  # noqa: E402
    FakeAttributeSource,
    FakeCategorySource,
    sample_attributes,
    sample_flat,
)
from tests.fixtures.memory_store import MemoryMappingStore  # noqa: E402


@pytest.fixture(scope="session")
def test_env():
    """테스트 환경 설정"""
    os.environ["ENV"] = "test"
    os.environ["DEBUG"] = "true"
    os.environ["LOG_LEVEL"] = "DEBUG"
    os.environ["CACHE_ENABLED"] = "false"
    os.environ["LOCAL_DATA_PATH"] = "./tests/data"

    yield


@pytest.fixture
def mock_settings(test_env, tmp_path):
    """Mock 설정 객체"""
    from marketmap.config import Settings

    settings = Settings(
        env="test",
        debug=True,
        log_level="DEBUG",
        cache_enabled=False,
        local_data_path=tmp_path / "data",
    )

    with patch("marketmap.config.get_settings", return_value=settings):
        yield settings


@pytest.fixture
def account() -> AccountContext:
    """테스트용 Trendyol 계정"""
    return AccountContext(store_id=1, api_key="key", api_secret="secret", supplier_id=12345)


@pytest.fixture
def resolver_config() -> ResolverConfig:
    return ResolverConfig(
        children_timeout=1.0,
        flat_timeout=1.0,
        attributes_timeout=1.0,
        path_timeout=1.0,
        max_depth=10,
        max_visits=200,
        scan_limit=3,
        scan_concurrency=4,
    )


@pytest.fixture
def category_source() -> FakeCategorySource:
    return FakeCategorySource(sample_flat())


@pytest.fixture
def attribute_source() -> FakeAttributeSource:
    return FakeAttributeSource(sample_attributes())


@pytest.fixture
def mapping_store() -> MemoryMappingStore:
    return MemoryMappingStore()


@pytest.fixture
def resolver(category_source, account, resolver_config) -> CategoryCacheResolver:
    return CategoryCacheResolver(category_source, account, resolver_config)


@pytest.fixture
def engine(category_source, attribute_source, account, resolver_config, mapping_store):
    return CategoryEngine(
        category_source,
        attribute_source,
        account,
        config=resolver_config,
        store=mapping_store,
    )
