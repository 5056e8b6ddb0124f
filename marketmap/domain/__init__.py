"""
도메인 로직 모듈
"""

from .tree import build_tree, children_index, find_leaf_descendant, get_children, get_path, index_by_id
from .validator import MappingValidator, ValidationLevel, ValidationResult

__all__ = [
    "build_tree",
    "children_index",
    "find_leaf_descendant",
    "get_children",
    "get_path",
    "index_by_id",
    "MappingValidator",
    "ValidationLevel",
    "ValidationResult",
]
