"""
API 서버 메인 애플리케이션
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketmap.config import settings
from marketmap.errors import (
    CategoryEngineError,
    CategoryNotFoundError,
    LeafNotFoundError,
    MappingValidationError,
    NoExampleFoundError,
    NotCachedError,
    NotLeafError,
    TransportError,
)
from marketmap.factory import build_services
from marketmap.monitoring import get_logger, global_metrics, setup_logging

from .routers import categories

logger = get_logger(__name__)

# 오류 종류별 HTTP 상태 코드 (상속 순서대로 검사)
ERROR_STATUS = [
    (TransportError, status.HTTP_502_BAD_GATEWAY),
    (NotCachedError, status.HTTP_404_NOT_FOUND),
    (NotLeafError, status.HTTP_409_CONFLICT),
    (CategoryNotFoundError, status.HTTP_404_NOT_FOUND),
    (LeafNotFoundError, status.HTTP_404_NOT_FOUND),
    (NoExampleFoundError, status.HTTP_404_NOT_FOUND),
    (MappingValidationError, 422),
]


def status_for(exc: CategoryEngineError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기 관리"""
    setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.json_logs or settings.is_production(),
    )
    logger.info("API 서버 시작")

    services = build_services()
    app.state.services = services

    yield

    logger.info("API 서버 종료")
    await services["client"].close()


# FastAPI 앱 생성
app = FastAPI(
    title="마켓플레이스 카테고리 매핑 API",
    description="카테고리 트리 탐색, leaf 확보, 속성 스키마 조회, 매핑 저장 검증",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(categories.router, prefix="/api/trendyol", tags=["trendyol"])


# 예외 처리
@app.exception_handler(CategoryEngineError)
async def category_error_handler(request: Request, exc: CategoryEngineError):
    """엔진 오류를 HTTP 응답으로 변환"""
    code = status_for(exc)
    global_metrics.increment("api.errors")
    if code >= 500:
        logger.error(f"{request.url.path} 처리 실패: {exc.message}")
    else:
        logger.info(f"{request.url.path} 요청 거부: {exc.message}")

    return JSONResponse(status_code=code, content={"error": {"code": code, **exc.to_dict()}})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP 예외 처리"""
    global_metrics.increment("api.errors")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {"code": exc.status_code, "message": exc.detail, "path": str(request.url.path)}
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """검증 오류 처리"""
    global_metrics.increment("api.validation_errors")

    return JSONResponse(
        status_code=422,
        content={"error": {"code": 422, "message": "Validation Error", "details": exc.errors()}},
    )


@app.get("/")
async def root():
    """API 상태 확인"""
    return {
        "name": "마켓플레이스 카테고리 매핑 API",
        "version": "1.0.0",
        "status": "running",
        "environment": settings.env,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """헬스 체크"""
    return {
        "status": "healthy",
        "trendyol_configured": settings.trendyol.is_configured(),
        "metrics": global_metrics.get_summary(),
    }


@app.get("/metrics")
async def metrics():
    """전체 메트릭"""
    return global_metrics.get_all_metrics()


def run(host: str = "0.0.0.0", port: int = 8000):
    """API 서버 실행"""
    import uvicorn

    logger.info(f"API 서버 시작: http://{host}:{port}")

    uvicorn.run(
        "marketmap.api.main:app",
        host=host,
        port=port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
