"""
성능 메트릭 시스템
카테고리 해석 경로(캐시 적중, 폴백, 스캔)와 외부 호출 지연 추적
"""

import statistics
import time
from collections import deque
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from .logger import get_logger

logger = get_logger(__name__)


class Metric:
    """개별 메트릭"""

    def __init__(self, name: str, metric_type: str = "gauge", window_size: int = 100):
        self.name = name
        self.metric_type = metric_type  # gauge, counter, histogram
        self.values = deque(maxlen=window_size)
        self._counter = 0.0
        self.created_at = datetime.now()

    def record(self, value: float):
        """값 기록"""
        if self.metric_type == "counter":
            self._counter += value
            self.values.append(self._counter)
        else:
            self.values.append(value)

    def increment(self, amount: float = 1):
        if self.metric_type == "counter":
            self.record(amount)

    def get_value(self) -> float:
        if self.metric_type == "counter":
            return self._counter
        if not self.values:
            return 0
        return self.values[-1]

    def get_stats(self) -> Dict[str, float]:
        """통계 정보"""
        if not self.values:
            return {"count": 0, "mean": 0, "min": 0, "max": 0, "p50": 0, "p95": 0}

        values = list(self.values)
        sorted_values = sorted(values)
        count = len(values)

        return {
            "count": count,
            "mean": statistics.mean(values),
            "min": sorted_values[0],
            "max": sorted_values[-1],
            "p50": sorted_values[int(count * 0.5)],
            "p95": sorted_values[int(count * 0.95)] if count > 20 else sorted_values[-1],
        }


class MetricsCollector:
    """메트릭 수집기"""

    def __init__(self):
        self.metrics: Dict[str, Metric] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        # 캐시 해석
        self.register("resolver.cache_hits", "counter")
        self.register("resolver.fallbacks", "counter")
        self.register("resolver.errors", "counter")

        # 탐색
        self.register("leaf_finder.visits", "counter")
        self.register("scanner.lookups", "counter")
        self.register("scanner.matches", "counter")

        # 외부 호출
        self.register("source.requests", "counter")
        self.register("source.errors", "counter")
        self.register("source.latency", "histogram")

    def register(self, name: str, metric_type: str = "gauge", window_size: int = 100) -> Metric:
        if name not in self.metrics:
            self.metrics[name] = Metric(name, metric_type, window_size)
        return self.metrics[name]

    def record(self, name: str, value: float):
        if name not in self.metrics:
            self.register(name)
        self.metrics[name].record(value)

    def increment(self, name: str, amount: float = 1):
        if name not in self.metrics:
            self.register(name, "counter")
        self.metrics[name].increment(amount)

    def get_value(self, name: str) -> float:
        metric = self.metrics.get(name)
        return metric.get_value() if metric else 0

    def get_all_metrics(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {
                "type": metric.metric_type,
                "value": metric.get_value(),
                "stats": metric.get_stats() if metric.metric_type == "histogram" else None,
            }
            for name, metric in self.metrics.items()
        }

    def get_summary(self) -> Dict[str, Any]:
        """메트릭 요약"""
        hits = self.get_value("resolver.cache_hits")
        fallbacks = self.get_value("resolver.fallbacks")
        return {
            "timestamp": datetime.now().isoformat(),
            "resolver": {
                "cache_hits": hits,
                "fallbacks": fallbacks,
                "fallback_rate": fallbacks / max(hits + fallbacks, 1),
                "errors": self.get_value("resolver.errors"),
            },
            "scanner": {
                "lookups": self.get_value("scanner.lookups"),
                "matches": self.get_value("scanner.matches"),
            },
            "source": {
                "requests": self.get_value("source.requests"),
                "errors": self.get_value("source.errors"),
                "latency": self.metrics["source.latency"].get_stats(),
            },
        }


class PerformanceTracker:
    """성능 추적기"""

    def __init__(self, metrics_collector: Optional[MetricsCollector] = None):
        self.metrics = metrics_collector or MetricsCollector()

    @asynccontextmanager
    async def track_async(self, operation: str, metric_name: Optional[str] = None):
        """비동기 작업 성능 추적"""
        start_time = time.perf_counter()
        error_occurred = False

        try:
            yield
        except Exception:
            error_occurred = True
            raise
        finally:
            duration = time.perf_counter() - start_time

            if metric_name:
                self.metrics.record(metric_name, duration)

            logger.performance(operation, duration, error=error_occurred)


# 전역 메트릭 수집기
global_metrics = MetricsCollector()
performance_tracker = PerformanceTracker(global_metrics)
