"""
마켓플레이스 카테고리 해석 및 속성 검증 엔진
"""

__version__ = "1.0.0"
