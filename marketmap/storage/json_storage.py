"""
JSON 파일 기반 매핑 저장소
개발/테스트용으로 DB 없이 로컬 파일에 매핑 저장
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from loguru import logger

from marketmap.models.category import MappingPayload
from marketmap.storage.base import BaseMappingStore


class JSONMappingStore(BaseMappingStore):
    """JSON 파일 기반 매핑 저장소 구현"""

    def __init__(self, base_path: str = "./data/mappings"):
        """
        Args:
            base_path: 데이터 저장 경로
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.mapping_file = self.base_path / "category_mappings.json"

        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = Lock()

        self._load_data()

    def _load_data(self):
        """파일에서 데이터 로드"""
        if not self.mapping_file.exists():
            return
        try:
            with open(self.mapping_file, "r", encoding="utf-8") as f:
                self._records = json.load(f)
            logger.info(f"카테고리 매핑 {len(self._records)}개 로드됨")
        except (OSError, ValueError) as e:
            logger.error(f"카테고리 매핑 로드 실패: {e}")
            self._records = {}

    def _save_data(self):
        """메모리 데이터를 파일에 저장"""
        try:
            with open(self.mapping_file, "w", encoding="utf-8") as f:
                json.dump(self._records, f, ensure_ascii=False, indent=2, default=str)
        except OSError as e:
            logger.error(f"카테고리 매핑 저장 실패: {e}")
            raise

    def _find_active(self, store_id: int, product_id: str) -> Optional[Dict[str, Any]]:
        for record in self._records.values():
            if (
                record["store_id"] == store_id
                and record["product_id"] == str(product_id)
                and record.get("is_active", True)
            ):
                return record
        return None

    def save_mapping(
        self, store_id: int, product_id: str, payload: MappingPayload, replace: bool = True
    ) -> Dict[str, Any]:
        with self._lock:
            existing = self._find_active(store_id, product_id)
            if existing is not None:
                if not replace:
                    raise ValueError("이 상품에 대한 카테고리 매핑이 이미 존재합니다")
                existing["is_active"] = False
                existing["updated_at"] = datetime.now().isoformat()

            record_id = str(uuid.uuid4())
            now = datetime.now().isoformat()
            record = {
                "id": record_id,
                "store_id": store_id,
                "product_id": str(product_id),
                "payload": payload.to_api(),
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            }
            self._records[record_id] = record
            self._save_data()

        logger.info(
            f"카테고리 매핑 저장: store={store_id} product={product_id} "
            f"category={payload.category_id}"
        )
        return record

    def get_mapping(self, store_id: int, product_id: str) -> Optional[Dict[str, Any]]:
        return self._find_active(store_id, product_id)

    def list_mappings(self, store_id: int) -> List[Dict[str, Any]]:
        records = [
            record
            for record in self._records.values()
            if record["store_id"] == store_id and record.get("is_active", True)
        ]
        return sorted(records, key=lambda r: r["created_at"], reverse=True)

    def delete_mapping(self, store_id: int, product_id: str) -> bool:
        with self._lock:
            record = self._find_active(store_id, product_id)
            if record is None:
                return False
            record["is_active"] = False
            record["updated_at"] = datetime.now().isoformat()
            self._save_data()
        return True

    @staticmethod
    def payload_of(record: Dict[str, Any]) -> MappingPayload:
        """저장된 레코드를 MappingPayload 로 복원"""
        return MappingPayload.model_validate(record["payload"])
