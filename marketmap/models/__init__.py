"""
데이터 모델
"""

from marketmap.models.account import AccountContext
from marketmap.models.category import (
    Attribute,
    AttributeAssignment,
    AttributeValue,
    CategoryNode,
    CategoryPath,
    ExampleMatch,
    LeafResult,
    MappingAttributeEntry,
    MappingPayload,
    ScanResult,
)

__all__ = [
    "AccountContext",
    "Attribute",
    "AttributeAssignment",
    "AttributeValue",
    "CategoryNode",
    "CategoryPath",
    "ExampleMatch",
    "LeafResult",
    "MappingAttributeEntry",
    "MappingPayload",
    "ScanResult",
]
