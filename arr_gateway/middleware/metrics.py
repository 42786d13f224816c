"""
Prometheus 指标中间件

采集 HTTP 请求与工具调用的核心指标
"""

import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware


# ============================================================
# HTTP 请求指标
# ============================================================

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "path"],
)


# ============================================================
# 工具调用指标
# ============================================================

TOOL_CALLS_TOTAL = Counter(
    "tool_calls_total",
    "Total tool invocations",
    ["tool_name", "outcome"],  # outcome: success | error | timeout
)

TOOL_CALL_DURATION_SECONDS = Histogram(
    "tool_call_duration_seconds",
    "Tool invocation duration in seconds",
    ["tool_name"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)


# ============================================================
# 中间件
# ============================================================

KNOWN_PATHS = {"/health", "/v1/run", "/v1/tools", "/v1/service-health"}


class MetricsMiddleware(BaseHTTPMiddleware):
    """Prometheus 指标采集中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # 跳过 metrics 端点自身
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, path=path).inc()

        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=method,
                path=path,
                status_code=status_code,
            ).inc()

            HTTP_REQUEST_DURATION_SECONDS.labels(
                method=method,
                path=path,
            ).observe(duration)

            HTTP_REQUESTS_IN_PROGRESS.labels(method=method, path=path).dec()

        return response

    def _normalize_path(self, path: str) -> str:
        """未知路径归并为一个标签，避免标签基数失控"""
        return path if path in KNOWN_PATHS else "other"


# ============================================================
# Metrics 端点
# ============================================================

async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics 端点"""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# ============================================================
# 辅助函数
# ============================================================

def record_tool_call(tool_name: str, outcome: str, duration: float) -> None:
    """记录工具调用"""
    TOOL_CALLS_TOTAL.labels(tool_name=tool_name, outcome=outcome).inc()
    TOOL_CALL_DURATION_SECONDS.labels(tool_name=tool_name).observe(duration)
