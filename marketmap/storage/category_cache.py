"""
카테고리 디스크 캐시
판매자별 평면 카테고리 목록을 JSON 파일로 보관
"""

import json
import time
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from marketmap.models.category import CategoryNode


class CategoryCacheStore:
    """JSON 파일 기반 카테고리 캐시"""

    def __init__(self, path: Path):
        """
        Args:
            path: 캐시 파일 경로 (판매자 키가 파일명에 추가됨)
        """
        self.path = Path(path)
        self._lock = Lock()

    def _file_for(self, key: str) -> Path:
        return self.path.with_name(f"{self.path.stem}_{key}{self.path.suffix}")

    def save(self, key: str, flat: List[CategoryNode], source: str = "") -> None:
        """평면 목록 저장 (실패해도 예외를 올리지 않음)"""
        data = {
            "flat": [node.model_dump() for node in flat],
            "fetched_at": time.time(),
            "source": source,
        }
        target = self._file_for(key)
        with self._lock:
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                tmp = target.with_suffix(target.suffix + ".tmp")
                with open(tmp, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False)
                tmp.replace(target)
                logger.debug(f"카테고리 디스크 캐시 저장: {target} ({len(flat)}개)")
            except OSError as e:
                logger.warning(f"카테고리 디스크 캐시 저장 실패: {e}")

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        """
        저장된 캐시 로드

        Returns:
            {"flat": [CategoryNode...], "fetched_at": float, "source": str} 또는 None
        """
        target = self._file_for(key)
        if not target.exists():
            return None

        try:
            with open(target, "r", encoding="utf-8") as f:
                raw = json.load(f)
            flat = [CategoryNode(**item) for item in raw.get("flat") or []]
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"카테고리 디스크 캐시 로드 실패: {e}")
            return None

        if not flat:
            return None

        return {
            "flat": flat,
            "fetched_at": float(raw.get("fetched_at") or 0),
            "source": raw.get("source") or "disk",
        }

    def clear(self, key: str) -> None:
        target = self._file_for(key)
        with self._lock:
            if target.exists():
                target.unlink()
