"""
测试配置和 fixtures
"""

import asyncio
from typing import Any, AsyncGenerator, AsyncIterator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from arr_gateway.core.config import Settings
from arr_gateway.health.aggregator import HealthAggregator, ServiceChecker
from arr_gateway.main import create_app
from arr_gateway.tools.handler import StreamingToolHandler, ToolHandler
from arr_gateway.tools.registry import ToolRegistry
from arr_gateway.tools.schemas import RunRequest, ToolDefinition


# ============================================================
# 测试用处理器与检查器
# ============================================================

class MockHandler(ToolHandler):
    """返回固定结果或抛出固定异常"""

    def __init__(self, response: Any = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: List[RunRequest] = []

    async def handle(self, request: RunRequest) -> Any:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        return self.response


class EchoHandler(ToolHandler):
    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        return {"echoed": request.input["msg"]}


class SlowHandler(ToolHandler):
    """睡眠指定秒数，记录是否被取消"""

    def __init__(self, delay: float):
        self.delay = delay
        self.cancelled = False

    async def handle(self, request: RunRequest) -> Any:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return {"slept": self.delay}


class StubbornHandler(ToolHandler):
    """忽略取消信号，继续运行直到完成"""

    def __init__(self, delay: float):
        self.delay = delay

    async def handle(self, request: RunRequest) -> Any:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            await asyncio.sleep(self.delay)
        return "done"


class CountingStreamHandler(StreamingToolHandler):
    """依次产出 0..count-1，可选在中途失败"""

    def __init__(self, count: int, fail_at: Optional[int] = None, delay: float = 0.0):
        self.count = count
        self.fail_at = fail_at
        self.delay = delay

    async def stream(self, request: RunRequest) -> AsyncIterator[Any]:
        for i in range(self.count):
            if self.fail_at is not None and i == self.fail_at:
                raise RuntimeError(f"stream broke at {i}")
            if self.delay:
                await asyncio.sleep(self.delay)
            yield {"n": i}


class MockServiceChecker(ServiceChecker):
    def __init__(self, service_name: str, error: Optional[Exception] = None, delay: float = 0.0):
        self.service_name = service_name
        self.error = error
        self.delay = delay
        self.calls = 0

    @property
    def name(self) -> str:
        return self.service_name

    async def check(self) -> None:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error


class StubbornChecker(MockServiceChecker):
    """忽略取消信号，超时后仍然正常返回"""

    async def check(self) -> None:
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            await asyncio.sleep(self.delay)


ECHO_DEFINITION = ToolDefinition(
    name="Echo",
    description="Echo the message back",
    parameters={"msg": {"type": "string", "required": True, "description": "message"}},
)


# ============================================================
# fixtures
# ============================================================

@pytest.fixture
def settings() -> Settings:
    """不读取 .env，且不启用任何 ARR 服务"""
    return Settings(
        _env_file=None,
        LOG_LEVEL="debug",
        SONARR_URL="",
        SONARR_API_KEY="",
        RADARR_URL="",
        RADARR_API_KEY="",
        PROWLARR_URL="",
        PROWLARR_API_KEY="",
    )


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def health() -> HealthAggregator:
    return HealthAggregator(check_timeout=0.5)


@pytest.fixture
def app(settings, registry, health):
    return create_app(settings=settings, registry=registry, health=health)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """创建测试客户端"""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
