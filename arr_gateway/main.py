"""
ARR MCP Gateway - 主入口

职责:
- 组装工具注册表、分发器与健康检查汇总器
- 按配置注册 Sonarr / Radarr / Prowlarr 工具
- 暴露 /health、/v1/tools、/v1/run、/v1/service-health
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI

from arr_gateway import __version__
from arr_gateway.api import router as api_router
from arr_gateway.api.errors import install_exception_handlers
from arr_gateway.core.config import Settings, get_settings
from arr_gateway.core.logging import get_logger, setup_logging
from arr_gateway.health.aggregator import HealthAggregator
from arr_gateway.integrations.arr import register_arr_tools
from arr_gateway.middleware import MetricsMiddleware, metrics_endpoint
from arr_gateway.tools.dispatcher import ToolDispatcher
from arr_gateway.tools.registry import ToolRegistry

ENDPOINTS = {
    "/health": "Server health check endpoint",
    "/v1/service-health": "Services health check endpoint",
    "/v1/run": "MCP run endpoint",
    "/v1/tools": "List available tools",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理"""
    settings: Settings = app.state.settings
    log = get_logger("arr_gateway")

    clients = register_arr_tools(app.state.registry, app.state.health, settings)
    log.info(
        "server_starting",
        url=f"http://{settings.HOST}:{settings.PORT}",
        env=settings.ENV,
        log_level=settings.LOG_LEVEL,
        sonarr="connected" if settings.sonarr_enabled else "not configured",
        radarr="connected" if settings.radarr_enabled else "not configured",
        prowlarr="connected" if settings.prowlarr_enabled else "not configured",
        tools=len(app.state.registry),
        endpoints=list(ENDPOINTS),
    )

    yield

    log.info("server_shutting_down")
    for client in clients:
        await client.close()
    log.info("server_shutdown_complete")


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ToolRegistry] = None,
    health: Optional[HealthAggregator] = None,
) -> FastAPI:
    """
    创建 FastAPI 应用实例

    日志在这里配置一次，绑定后的 logger 注入各组件。
    组件可由调用方注入（测试或嵌入式使用），否则按配置新建。
    ARR 工具在 lifespan 启动阶段注册。
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    logger = get_logger("arr_gateway")

    registry = registry if registry is not None else ToolRegistry(logger=logger.bind(component="registry"))
    health = health if health is not None else HealthAggregator(
        check_timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS,
        logger=logger.bind(component="health"),
    )

    app = FastAPI(
        title="ARR MCP Gateway",
        description="Sonarr / Radarr / Prowlarr tool gateway",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.health = health
    app.state.dispatcher = ToolDispatcher(registry, logger=logger.bind(component="dispatcher"))

    app.add_middleware(MetricsMiddleware)
    install_exception_handlers(app)

    app.include_router(api_router)
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])

    return app


def run() -> None:
    """命令行入口：启动 HTTP 服务"""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level="warning" if settings.LOG_LEVEL == "warn" else settings.LOG_LEVEL,
        timeout_graceful_shutdown=settings.SHUTDOWN_TIMEOUT_SECONDS,
    )


if __name__ == "__main__":
    run()
