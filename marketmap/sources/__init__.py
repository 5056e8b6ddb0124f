"""
카테고리/속성 소스 모듈
"""

from .base import BaseAttributeSource, BaseCategorySource

__all__ = ["BaseCategorySource", "BaseAttributeSource"]
