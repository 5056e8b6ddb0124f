"""
카테고리 해석 엔진 오류 정의
사용자 안내 메시지와 진단용 상세 정보를 함께 보관
"""

from typing import Any, Dict, List, Optional


class CategoryEngineError(Exception):
    """카테고리 해석 엔진 기본 오류"""

    user_message = "카테고리 처리 중 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "error": self.message,
            "kind": self.__class__.__name__,
            "user_message": self.user_message,
        }
        if self.details:
            data["details"] = self.details
        return data


class TransportError(CategoryEngineError):
    """마켓플레이스 통신 오류 (네트워크, 타임아웃, 비정상 상태 코드)"""

    user_message = "마켓플레이스에 연결할 수 없습니다. 잠시 후 다시 시도해 주세요."

    def __init__(
        self,
        message: Optional[str] = None,
        endpoint: Optional[str] = None,
        reason: Optional[str] = None,
        tried: Optional[List[str]] = None,
    ):
        self.endpoint = endpoint
        self.reason = reason
        self.tried = list(tried or [])
        details: Dict[str, Any] = {}
        if endpoint:
            details["endpoint"] = endpoint
        if reason:
            details["reason"] = reason
        if self.tried:
            details["tried"] = self.tried
        super().__init__(message or f"{endpoint or 'upstream'} 요청 실패: {reason}", details)


class NotCachedError(CategoryEngineError):
    """cache-only 조회 실패 (내부 신호, 사용자에게 노출하지 않음)"""

    user_message = "캐시된 카테고리가 없습니다."


class NotLeafError(CategoryEngineError):
    """leaf 가 아닌 카테고리에 대한 속성 조회"""

    user_message = "더 하위(leaf) 카테고리를 선택해 주세요."

    def __init__(self, category_id: int, message: Optional[str] = None):
        self.category_id = category_id
        super().__init__(
            message or f"카테고리 {category_id} 는 leaf 가 아닙니다",
            {"category_id": category_id},
        )


class CategoryNotFoundError(CategoryEngineError):
    """존재하지 않는 카테고리"""

    user_message = "카테고리를 찾을 수 없습니다."

    def __init__(self, category_id: int):
        self.category_id = category_id
        super().__init__(f"카테고리 {category_id} 를 찾을 수 없습니다", {"category_id": category_id})


class LeafNotFoundError(CategoryEngineError):
    """탐색 한도 내에서 leaf 를 찾지 못함"""

    user_message = "이 카테고리 아래에서 leaf 를 찾지 못했습니다. 직접 선택하거나 다른 분기를 시도해 주세요."

    def __init__(
        self,
        category_id: int,
        reason: str = "budget",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.category_id = category_id
        self.reason = reason
        super().__init__(
            message or f"카테고리 {category_id} 아래에서 leaf 를 찾지 못했습니다 ({reason})",
            {"category_id": category_id, "reason": reason, **(details or {})},
        )


class TaxonomyInconsistencyError(LeafNotFoundError):
    """카테고리 데이터 불일치 (leaf 가 아닌데 자식이 없음, 끊어진 경로 등)"""

    user_message = "마켓플레이스 카테고리 데이터가 올바르지 않습니다. 다른 분기를 선택해 주세요."

    def __init__(self, category_id: int, node_id: int, message: Optional[str] = None):
        self.node_id = node_id
        super().__init__(
            category_id,
            reason="inconsistent",
            message=message or f"leaf 가 아닌 카테고리 {node_id} 에 하위 카테고리가 없습니다",
            details={"node_id": node_id},
        )


class NoExampleFoundError(CategoryEngineError):
    """스캔 한도 내에서 속성이 있는 leaf 예시를 찾지 못함"""

    user_message = "이 분기에서 속성이 있는 leaf 예시를 찾지 못했습니다. 다른 하위 분기를 시도해 주세요."

    def __init__(self, root_id: int, visited: int = 0):
        self.root_id = root_id
        self.visited = visited
        super().__init__(
            f"카테고리 {root_id} 에서 예시를 찾지 못했습니다 (방문 {visited})",
            {"root_id": root_id, "visited": visited},
        )


class MappingValidationError(CategoryEngineError):
    """필수 속성 미입력으로 저장 불가"""

    user_message = "필수 속성을 모두 선택해야 저장할 수 있습니다."

    def __init__(self, category_id: int, missing: Dict[int, str]):
        self.category_id = category_id
        self.missing = dict(missing)
        names = ", ".join(name or str(attr_id) for attr_id, name in self.missing.items())
        super().__init__(
            f"필수 속성 누락: {names}",
            {"category_id": category_id, "missing": sorted(self.missing)},
        )


class StaleResultError(CategoryEngineError):
    """더 최신 선택으로 대체된 비동기 결과 (내부 신호)"""

    user_message = "이전 선택의 결과가 무시되었습니다."

    def __init__(self, captured: int, current: int):
        self.captured = captured
        self.current = current
        super().__init__(
            f"stale generation {captured} (current {current})",
            {"captured": captured, "current": current},
        )
