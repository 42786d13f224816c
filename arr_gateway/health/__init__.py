"""依赖服务健康检查"""

from arr_gateway.health.aggregator import HealthAggregator, ServiceChecker

__all__ = ["HealthAggregator", "ServiceChecker"]
