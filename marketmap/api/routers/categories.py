"""
Trendyol 카테고리/속성/매핑 API 엔드포인트
"""

from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from marketmap.api.dependencies import get_account, get_category_source, get_engine
from marketmap.domain.tree import build_tree, count_leaves
from marketmap.engine import CategoryEngine
from marketmap.models.account import AccountContext
from marketmap.models.category import Attribute, CategoryNode, LeafResult, ScanResult
from marketmap.monitoring import get_logger
from marketmap.sources.trendyol import TrendyolCategorySource

logger = get_logger(__name__)

router = APIRouter()


class MappingRequest(BaseModel):
    """매핑 저장 요청"""

    product_id: str = Field(..., min_length=1)
    category_id: int
    assignments: Dict[int, Optional[int]] = Field(default_factory=dict)
    replace: bool = True


def _nodes(nodes: List[CategoryNode]) -> List[Dict]:
    return [node.model_dump() for node in nodes]


def _leaf(result: LeafResult) -> Dict:
    return {
        "leaf_id": result.leaf_id,
        "was_leaf": result.was_leaf,
        "path": result.path.summary(),
        "breadcrumb": result.path.breadcrumb,
    }


def _attributes(attributes: List[Attribute]) -> List[Dict]:
    return [attr.model_dump() for attr in attributes]


def _scan(result: ScanResult) -> Dict:
    return {
        "root_id": result.root_id,
        "examples": [
            {
                "category_id": match.category_id,
                "name": match.name,
                "attribute_count": match.attribute_count,
                "path": match.path.summary(),
            }
            for match in result.examples
        ],
        "visited": result.visited,
        "exhausted": result.exhausted,
    }


@router.get("/categories")
async def list_categories(
    format: Literal["flat", "tree"] = Query("flat"),
    force: bool = Query(False, description="메모리 캐시 무시하고 새로 조회"),
    cache_only: bool = Query(False, description="캐시에서만 응답"),
    account: AccountContext = Depends(get_account),
    source: TrendyolCategorySource = Depends(get_category_source),
):
    """전체 카테고리 (평면 목록 또는 트리)"""
    flat = await source.get_flat_categories(account, force=force, cache_only=cache_only)
    response = {
        "count": len(flat),
        "leaf_count": count_leaves(flat),
        "cache_used": source.last_cache_used,
    }
    if format == "tree":
        response["tree"] = build_tree(flat)
    else:
        response["categories"] = _nodes(flat)
    return response


@router.get("/categories/warmup")
async def warmup_categories(
    account: AccountContext = Depends(get_account),
    source: TrendyolCategorySource = Depends(get_category_source),
):
    """카테고리 캐시 강제 갱신"""
    count = await source.warmup(account)
    logger.info(f"카테고리 캐시 갱신 완료: {count}개")
    return {"ok": True, "count": count, "cache_used": source.last_cache_used}


@router.delete("/categories/cache")
async def invalidate_categories(
    account: AccountContext = Depends(get_account),
    source: TrendyolCategorySource = Depends(get_category_source),
):
    """메모리 카테고리 캐시 비우기 (다음 조회 시 새로 가져옴)"""
    source.invalidate(account)
    return {"ok": True}


@router.get("/categories/children")
async def category_children(
    parent_id: int = Query(0, ge=0),
    engine: CategoryEngine = Depends(get_engine),
):
    """직계 자식 카테고리 (0 = 루트)"""
    children = await engine.resolve_children(parent_id)
    return {"parent_id": parent_id, "children": _nodes(children)}


@router.get("/categories/path")
async def category_path(
    category_id: int = Query(..., gt=0),
    engine: CategoryEngine = Depends(get_engine),
):
    """루트부터의 경로"""
    path = await engine.get_path(category_id)
    return {"category_id": category_id, "path": path.summary(), "breadcrumb": path.breadcrumb}


@router.get("/categories/ensure-leaf")
async def ensure_leaf(
    category_id: int = Query(..., gt=0),
    strategy: Literal["first", "nearest"] = Query("first"),
    engine: CategoryEngine = Depends(get_engine),
):
    """leaf 카테고리 확보 (first: 첫 자식 하향 탐색, nearest: 가장 가까운 leaf 자손)"""
    if strategy == "nearest":
        result = await engine.ensure_leaf_nearest(category_id)
    else:
        result = await engine.ensure_leaf(category_id)
    return _leaf(result)


@router.get("/category-attributes")
async def category_attributes(
    category_id: int = Query(..., gt=0),
    engine: CategoryEngine = Depends(get_engine),
):
    """leaf 카테고리 속성 스키마"""
    attributes = await engine.load_attributes(category_id)
    return {"category_id": category_id, "attributes": _attributes(attributes)}


@router.get("/category-attributes/smart")
async def smart_category_attributes(
    category_id: int = Query(..., gt=0),
    engine: CategoryEngine = Depends(get_engine),
):
    """leaf 확보 후 속성 스키마 조회"""
    leaf, attributes = await engine.smart_attributes(category_id)
    return {
        "requested_id": category_id,
        **_leaf(leaf),
        "attributes": _attributes(attributes),
    }


@router.get("/category-attributes/scan")
async def scan_category_attributes(
    parent_id: int = Query(0, ge=0, description="0 = 전체 트리"),
    limit: Optional[int] = Query(None, description="찾을 예시 수 (1~20)"),
    engine: CategoryEngine = Depends(get_engine),
):
    """분기 아래에서 속성이 있는 leaf 예시 탐색"""
    result = await engine.find_examples(parent_id, limit)
    return _scan(result)


@router.post("/mappings", status_code=status.HTTP_201_CREATED)
async def save_mapping(request: MappingRequest, engine: CategoryEngine = Depends(get_engine)):
    """필수 속성 검증 후 매핑 저장"""
    attributes = await engine.load_attributes(request.category_id)
    report = engine.validate(request.category_id, attributes, request.assignments)
    payload = engine.build_payload(request.category_id, attributes, request.assignments)

    try:
        record = engine.save_mapping(payload, request.product_id, replace=request.replace)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return {"mapping": record, "warnings": report.warnings, "score": report.score}


@router.get("/mappings/{product_id}")
async def get_mapping(product_id: str, engine: CategoryEngine = Depends(get_engine)):
    """상품의 활성 매핑 조회"""
    record = engine.store.get_mapping(engine.account.store_id, product_id) if engine.store else None
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="카테고리 매핑을 찾을 수 없습니다"
        )
    return {"mapping": record}


@router.get("/mappings")
async def list_mappings(engine: CategoryEngine = Depends(get_engine)):
    """스토어의 활성 매핑 목록 (최신순)"""
    records = engine.store.list_mappings(engine.account.store_id) if engine.store else []
    return {"count": len(records), "mappings": records}


@router.delete("/mappings/{product_id}")
async def delete_mapping(product_id: str, engine: CategoryEngine = Depends(get_engine)):
    """상품의 활성 매핑 비활성화"""
    deleted = engine.store.delete_mapping(engine.account.store_id, product_id) if engine.store else False
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="카테고리 매핑을 찾을 수 없습니다"
        )
    logger.info(f"카테고리 매핑 삭제: product={product_id}")
    return {"ok": True, "product_id": product_id}
