"""
API 라우터 모듈
"""

from . import categories

__all__ = ["categories"]
