"""
설정 관리 모듈
환경 변수를 읽어 Pydantic 모델로 변환하여 타입 안전성 보장
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from marketmap.models.account import AccountContext

# .env 파일 로드
load_dotenv(dotenv_path=".env", override=False)


DEFAULT_TRENDYOL_URLS = [
    "https://apigw.trendyol.com/integration/product",
    "https://api.trendyol.com/sapigw/integration/product",
    "https://api.trendyol.com/sapigw",
]


class TrendyolConfig(BaseSettings):
    """Trendyol API 설정"""

    api_key: str = Field(default="")
    api_secret: str = Field(default="")
    supplier_id: int = Field(default=0)
    store_id: int = Field(default=1, description="연결된 마켓플레이스 계정(스토어) ID")

    base_urls: List[str] = Field(default_factory=lambda: list(DEFAULT_TRENDYOL_URLS))
    timeout: float = Field(default=25.0, description="단일 HTTP 요청 타임아웃 (초)")
    max_retries: int = Field(default=2, description="게이트웨이 오류 시 후보별 재시도 횟수")
    backoff_seconds: float = Field(default=1.2)
    proxy_pool: str = Field(default="", description="';' 로 구분된 프록시 URL 목록")
    user_agent: str = Field(default="MarketMap/1.0")

    model_config = SettingsConfigDict(env_prefix="TRENDYOL_", extra="ignore")

    @property
    def proxies(self) -> List[str]:
        """프록시 풀"""
        return [p.strip() for p in self.proxy_pool.split(";") if p.strip()]

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret and self.supplier_id)

    def account(self) -> AccountContext:
        """설정값으로 계정 컨텍스트 생성"""
        return AccountContext(
            store_id=self.store_id,
            api_key=self.api_key,
            api_secret=self.api_secret,
            supplier_id=self.supplier_id,
        )


class ResolverConfig(BaseSettings):
    """카테고리 해석 엔진 설정"""

    # 외부 호출 타임아웃 (초)
    children_timeout: float = Field(default=5.0)
    flat_timeout: float = Field(default=30.0)
    attributes_timeout: float = Field(default=30.0)
    path_timeout: float = Field(default=30.0)

    # 탐색 한도
    max_depth: int = Field(default=10, ge=1)
    max_visits: int = Field(default=200, ge=1)

    # 예시 카테고리 스캔
    scan_limit: int = Field(default=3, ge=1)
    scan_limit_max: int = Field(default=20, ge=1)
    scan_concurrency: int = Field(default=4, ge=1)

    model_config = SettingsConfigDict(env_prefix="RESOLVER_", extra="ignore")

    def clamp_limit(self, limit: Optional[int]) -> int:
        """스캔 limit 을 허용 범위로 보정"""
        if limit is None:
            limit = self.scan_limit
        return max(1, min(self.scan_limit_max, int(limit)))

    def visit_budget(self, limit: int) -> int:
        """스캔 방문 노드 한도"""
        return min(max(limit * 15, 60), self.max_visits)


class Settings(BaseSettings):
    """전체 애플리케이션 설정"""

    # 환경
    env: Literal["development", "staging", "production", "test"] = Field(default="development")
    debug: bool = Field(default=False)

    # 로깅
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)
    json_logs: bool = Field(default=False)

    # 캐시
    cache_enabled: bool = Field(default=True)
    cache_ttl: int = Field(default=60 * 60 * 6, description="카테고리 메모리 캐시 TTL (초)")

    # 파일 경로
    local_data_path: Path = Field(default=Path("./data"))

    # 하위 설정 (lazy)
    _trendyol: Optional[TrendyolConfig] = None
    _resolver: Optional[ResolverConfig] = None

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_file", mode="before")
    @classmethod
    def create_log_path(cls, v):
        if v:
            path = Path(v)
            path.parent.mkdir(parents=True, exist_ok=True)
            return path
        return v

    @field_validator("local_data_path", mode="before")
    @classmethod
    def create_paths(cls, v):
        path = Path(v)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def trendyol(self) -> TrendyolConfig:
        """Trendyol 설정 (lazy loading)"""
        if self._trendyol is None:
            self._trendyol = TrendyolConfig()
        return self._trendyol

    @property
    def resolver(self) -> ResolverConfig:
        """해석 엔진 설정 (lazy loading)"""
        if self._resolver is None:
            self._resolver = ResolverConfig()
        return self._resolver

    @property
    def category_cache_path(self) -> Path:
        return self.local_data_path / "trendyol_categories_cache.json"

    @property
    def mapping_store_path(self) -> Path:
        return self.local_data_path / "mappings"

    def is_production(self) -> bool:
        """프로덕션 환경 여부"""
        return self.env == "production"

    def is_development(self) -> bool:
        """개발 환경 여부"""
        return self.env == "development"


@lru_cache()
def get_settings() -> Settings:
    """설정 싱글톤 인스턴스 반환"""
    return Settings()


# 전역 설정 인스턴스
settings = get_settings()
