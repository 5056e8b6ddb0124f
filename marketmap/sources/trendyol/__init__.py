"""
Trendyol 마켓플레이스 연동
"""

from .attribute_source import TrendyolAttributeSource
from .category_source import TrendyolCategorySource
from .client import TrendyolClient
from .parser import TrendyolParser

__all__ = [
    "TrendyolClient",
    "TrendyolParser",
    "TrendyolCategorySource",
    "TrendyolAttributeSource",
]
