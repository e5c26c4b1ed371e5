"""Metrics and monitoring API endpoints."""

import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict

import psutil
from fastapi import APIRouter, Depends

from ..dependencies import get_metrics
from ..models.response import MetricsResponse, SearchResponse

router = APIRouter(prefix="/api/v1", tags=["metrics"])


class SearchMetrics:
    """Query counters kept at the HTTP boundary.
    
    The search pipeline itself is stateless; this collector only observes
    the responses the API hands out.
    """
    
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.reset()
    
    def reset(self) -> None:
        with self._lock:
            self._stats = {
                "total_queries": 0,
                "empty_queries": 0,
                "fuzzy_fallbacks": 0,
                "typo_detections": 0,
                "no_results": 0,
                "errors": 0,
                "total_execution_time": 0.0,
            }
    
    def record(self, response: SearchResponse) -> None:
        with self._lock:
            self._stats["total_queries"] += 1
            self._stats["total_execution_time"] += response.execution_time_ms
            if not response.normalized_query:
                self._stats["empty_queries"] += 1
            if response.fuzzy_applied:
                self._stats["fuzzy_fallbacks"] += 1
            if response.typo_detected:
                self._stats["typo_detections"] += 1
            if response.total_results == 0:
                self._stats["no_results"] += 1
    
    def record_error(self, execution_time_ms: float) -> None:
        with self._lock:
            self._stats["total_queries"] += 1
            self._stats["errors"] += 1
            self._stats["total_execution_time"] += execution_time_ms
    
    def snapshot(self) -> Dict[str, Any]:
        """Get counters plus derived rates."""
        with self._lock:
            stats = self._stats.copy()
        
        total = stats["total_queries"]
        if total > 0:
            stats["average_execution_time_ms"] = stats["total_execution_time"] / total
            stats["fuzzy_fallback_rate"] = stats["fuzzy_fallbacks"] / total
            stats["no_result_rate"] = stats["no_results"] / total
            stats["error_rate"] = stats["errors"] / total
        else:
            stats["average_execution_time_ms"] = 0.0
            stats["fuzzy_fallback_rate"] = 0.0
            stats["no_result_rate"] = 0.0
            stats["error_rate"] = 0.0
        
        return stats


def _memory_usage_mb() -> float:
    return psutil.Process(os.getpid()).memory_info().rss / (1024 * 1024)


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Get performance metrics",
    description="Get query statistics and process resource usage"
)
async def get_search_metrics(metrics: SearchMetrics = Depends(get_metrics)) -> MetricsResponse:
    """Get query statistics and memory usage."""
    stats = metrics.snapshot()
    
    return MetricsResponse(
        total_queries=stats["total_queries"],
        average_response_time_ms=stats["average_execution_time_ms"],
        fuzzy_fallback_rate=stats["fuzzy_fallback_rate"],
        no_result_rate=stats["no_result_rate"],
        error_rate=stats["error_rate"],
        memory_usage_mb=_memory_usage_mb()
    )


@router.get(
    "/metrics/detailed",
    summary="Get detailed metrics",
    description="Get raw query counters and system resource usage"
)
async def get_detailed_metrics(metrics: SearchMetrics = Depends(get_metrics)) -> Dict[str, Any]:
    """Get raw counters together with CPU and memory figures."""
    memory_info = psutil.virtual_memory()
    
    return {
        "search": metrics.snapshot(),
        "system": {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_total_mb": memory_info.total / (1024 * 1024),
            "memory_used_mb": memory_info.used / (1024 * 1024),
            "memory_percent": memory_info.percent,
            "process_memory_mb": _memory_usage_mb(),
        },
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
