"""
테스트용 인메모리 매핑 저장소
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from marketmap.models.category import MappingPayload
from marketmap.storage.base import BaseMappingStore


class MemoryMappingStore(BaseMappingStore):
    """(store_id, product_id) -> 레코드"""

    def __init__(self):
        self.records: Dict[Tuple[int, str], Dict[str, Any]] = {}

    def save_mapping(
        self, store_id: int, product_id: str, payload: MappingPayload, replace: bool = True
    ) -> Dict[str, Any]:
        key = (store_id, str(product_id))
        if key in self.records and not replace:
            raise ValueError("이 상품에 대한 카테고리 매핑이 이미 존재합니다")
        record = {
            "id": f"{store_id}:{product_id}",
            "store_id": store_id,
            "product_id": str(product_id),
            "payload": payload.to_api(),
            "is_active": True,
            "created_at": datetime.now().isoformat(),
        }
        self.records[key] = record
        return record

    def get_mapping(self, store_id: int, product_id: str) -> Optional[Dict[str, Any]]:
        return self.records.get((store_id, str(product_id)))

    def list_mappings(self, store_id: int) -> List[Dict[str, Any]]:
        return [r for (sid, _), r in self.records.items() if sid == store_id]

    def delete_mapping(self, store_id: int, product_id: str) -> bool:
        return self.records.pop((store_id, str(product_id)), None) is not None
