"""
카테고리 해석 모듈
캐시 해석기, leaf 탐색, 예시 스캔
"""

from .cache_resolver import CategoryCacheResolver, with_timeout
from .example_scanner import ExampleScanner
from .leaf_finder import LeafFinder

__all__ = ["CategoryCacheResolver", "LeafFinder", "ExampleScanner", "with_timeout"]
