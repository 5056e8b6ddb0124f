"""
모니터링 시스템
로깅, 메트릭 기능 제공
"""

from .logger import get_logger, setup_logging
from .metrics import MetricsCollector, PerformanceTracker, global_metrics, performance_tracker

__all__ = [
    "setup_logging",
    "get_logger",
    "MetricsCollector",
    "PerformanceTracker",
    "global_metrics",
    "performance_tracker",
]
