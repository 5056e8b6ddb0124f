"""
저장소 모듈
"""

from marketmap.storage.base import BaseMappingStore
from marketmap.storage.category_cache import CategoryCacheStore
from marketmap.storage.json_storage import JSONMappingStore

__all__ = ["BaseMappingStore", "CategoryCacheStore", "JSONMappingStore"]
