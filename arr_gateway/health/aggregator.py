"""
依赖服务健康汇总

每次调用都重新检查，不缓存、不熔断。各检查器并发执行、互相隔离：
某个检查器失败或超时不会影响其他检查器的结果。
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

import structlog

from arr_gateway.tools.schemas import ServiceHealthReport


def _discard_result(task: "asyncio.Future[None]") -> None:
    # 超时后放弃的检查，取走结果避免 "exception was never retrieved"
    if not task.cancelled():
        task.exception()


class ServiceChecker(ABC):
    """服务健康检查器"""

    @property
    @abstractmethod
    def name(self) -> str:
        """服务名"""

    @abstractmethod
    async def check(self) -> None:
        """健康则正常返回，不健康则抛出异常（异常消息即细节）"""


class HealthAggregator:
    """健康检查汇总器"""

    def __init__(
        self,
        check_timeout: float = 5.0,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ):
        self.check_timeout = check_timeout
        self._checkers: List[ServiceChecker] = []
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def checkers(self) -> List[ServiceChecker]:
        return list(self._checkers)

    def register(self, checker: ServiceChecker) -> None:
        """注册检查器"""
        self._checkers = [*self._checkers, checker]
        self._logger.info("health_checker_registered", service=checker.name)

    async def _run_one(self, checker: ServiceChecker) -> Optional[str]:
        """
        执行单个检查，返回 None 表示健康，否则返回细节

        超时后取消检查任务但不等待其退出，忽略取消的检查器不会拖住汇总。
        """
        task = asyncio.ensure_future(checker.check())
        try:
            done, _ = await asyncio.wait({task}, timeout=self.check_timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task not in done:
            task.cancel()
            task.add_done_callback(_discard_result)
            return "health check timed out"

        if task.cancelled():
            return "health check cancelled"
        exc = task.exception()
        if exc is not None:
            return str(exc) or type(exc).__name__
        return None

    async def check_all(self) -> ServiceHealthReport:
        """检查全部服务并汇总"""
        checkers = self._checkers
        details = await asyncio.gather(*(self._run_one(c) for c in checkers))

        services = {}
        for checker, detail in zip(checkers, details):
            if detail is None:
                services[checker.name] = "healthy"
            else:
                services[checker.name] = f"unhealthy: {detail}"
                self._logger.warning("service_unhealthy", service=checker.name, detail=detail)

        status = "ok" if all(d is None for d in details) else "degraded"
        return ServiceHealthReport(status=status, services=services)
