"""
로깅 시스템
loguru 기반 구조화 로깅
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# 로그 줄 끝에 표시할 바인딩 컨텍스트 (판매자, 세션 세대, 카테고리)
CONTEXT_KEYS = ("supplier", "generation", "category_id")


def format_context(extra: Dict[str, Any]) -> str:
    """바인딩된 컨텍스트를 " [supplier=1 generation=3]" 형태로 변환"""
    parts = [f"{key}={extra[key]}" for key in CONTEXT_KEYS if extra.get(key) is not None]
    return f" [{' '.join(parts)}]" if parts else ""


def make_formatter(base: str):
    """컨텍스트 접미사를 붙이는 loguru format 함수"""

    def formatter(record) -> str:
        record["extra"]["context"] = format_context(record["extra"])
        return base + "{extra[context]}\n{exception}"

    return formatter


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    backup_count: int = 5,
    console_output: bool = True,
):
    """
    로깅 시스템 초기화

    Args:
        log_level: 로그 레벨
        log_file: 로그 파일 경로
        json_logs: JSON 형식 로그 사용 여부
        backup_count: 보관할 로그 파일 개수
        console_output: 콘솔 출력 여부
    """
    logger.remove()

    level = log_level.upper()

    if console_output:
        if json_logs:
            logger.add(sys.stdout, level=level, format="{message}", serialize=True)
        else:
            logger.add(sys.stdout, level=level, format=make_formatter(CONSOLE_FORMAT), colorize=True)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_file),
            level=level,
            format="{message}" if json_logs else make_formatter(FILE_FORMAT),
            serialize=json_logs,
            rotation="100 MB",
            retention=backup_count,
            compression="zip",
        )

        # 에러 전용 로그 파일
        error_log = log_file.parent / f"{log_file.stem}_error{log_file.suffix}"
        logger.add(
            str(error_log),
            level="ERROR",
            format=make_formatter(FILE_FORMAT),
            rotation="1 day",
            retention="30 days",
            compression="zip",
        )

        # 성능 로그 파일
        perf_log = log_file.parent / f"{log_file.stem}_performance{log_file.suffix}"
        logger.add(
            str(perf_log),
            level="INFO",
            format="{message}",
            filter=lambda record: "performance" in record["extra"],
            serialize=True,
            rotation="1 day",
            retention="7 days",
        )


class LoggerAdapter:
    """컨텍스트 정보를 포함한 로거 어댑터"""

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self.name = name
        self.context = context or {}
        self._logger = logger.bind(name=name, **self.context)

    def bind(self, **kwargs) -> "LoggerAdapter":
        """새로운 컨텍스트 바인딩"""
        return LoggerAdapter(self.name, {**self.context, **kwargs})

    def debug(self, message: str, **kwargs):
        self._logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self._logger.error(message, **kwargs)

    def exception(self, message: str, **kwargs):
        self._logger.exception(message, **kwargs)

    def performance(self, operation: str, duration: float, **kwargs):
        """성능 로그"""
        self._logger.bind(performance=True, operation=operation, duration=duration, **kwargs).info(
            f"Performance: {operation} took {duration:.3f}s"
        )


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    로거 인스턴스 생성

    Args:
        name: 로거 이름
        **context: 컨텍스트 정보

    Returns:
        LoggerAdapter 인스턴스
    """
    return LoggerAdapter(name, context)
