"""
마켓플레이스 카테고리 매핑 API
FastAPI 기반 RESTful API 서버
"""

from .main import app
from .routers import categories

__all__ = ["app", "categories"]
