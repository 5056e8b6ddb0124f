"""
마켓플레이스 계정 컨텍스트
모든 카테고리/속성 조회에 명시적으로 전달되는 인증 정보
"""

import base64

from pydantic import BaseModel, ConfigDict, Field


class AccountContext(BaseModel):
    """마켓플레이스 계정 (스토어) 인증 정보"""

    store_id: int = Field(..., description="스토어 ID")
    api_key: str = Field(default="", repr=False)
    api_secret: str = Field(default="", repr=False)
    supplier_id: int = Field(default=0, description="Trendyol 판매자 ID")

    model_config = ConfigDict(frozen=True)

    @property
    def cache_key(self) -> str:
        """캐시 구분 키 (판매자 단위)"""
        return f"{self.supplier_id or 'anonymous'}"

    def basic_auth(self) -> str:
        token = base64.b64encode(f"{self.api_key}:{self.api_secret}".encode("utf-8"))
        return f"Basic {token.decode('ascii')}"
