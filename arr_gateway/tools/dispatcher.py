"""
工具分发器

负责一次工具调用的完整生命周期：
Received → Resolved → Validated → Executing → Succeeded / Failed

分发器本身无状态，每次 run 互相独立；失败一律不重试。
"""

import asyncio
import time
from typing import Any, AsyncIterator, Awaitable, Optional

import structlog
from pydantic_core import to_jsonable_python

from arr_gateway.core.errors import (
    GatewayError,
    HandlerFailure,
    MissingToolName,
    ToolTimeout,
    UnknownTool,
)
from arr_gateway.middleware.metrics import record_tool_call
from arr_gateway.tools.handler import StreamingToolHandler, supports_streaming
from arr_gateway.tools.registry import RegisteredTool, ToolRegistry
from arr_gateway.tools.schemas import FinalResponse, PartialResponse, RunRequest
from arr_gateway.tools.validator import validate_parameters

_NOTHING = object()


def _discard_result(task: "asyncio.Future[Any]") -> None:
    # 超时后放弃的任务，取走结果避免 "exception was never retrieved"
    if not task.cancelled():
        task.exception()


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class ToolDispatcher:
    """工具分发器"""

    def __init__(
        self,
        registry: ToolRegistry,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ):
        self.registry = registry
        self._logger = logger or structlog.get_logger(__name__)

    # ============================================================
    # 解析与校验
    # ============================================================

    def resolve(self, request: RunRequest) -> RegisteredTool:
        """按 tool_name 解析已注册工具"""
        if not request.tool_name:
            self._logger.warning("tool_name_missing", request_id=request.request_id)
            raise MissingToolName()

        tool = self.registry.get(request.tool_name)
        if tool is None:
            self._logger.warning(
                "unknown_tool_requested",
                tool_name=request.tool_name,
                request_id=request.request_id,
            )
            raise UnknownTool(request.tool_name)

        return tool

    def prepare(self, request: RunRequest) -> RegisteredTool:
        """解析并校验参数，校验永远发生在处理器调用之前"""
        tool = self.resolve(request)
        try:
            validate_parameters(request.input, tool.definition.parameters)
        except GatewayError as e:
            self._logger.warning(
                "parameter_validation_failed",
                tool_name=tool.name,
                request_id=request.request_id,
                error=e.message,
            )
            raise
        return tool

    @staticmethod
    def is_streaming(tool: RegisteredTool) -> bool:
        return supports_streaming(tool.handler)

    # ============================================================
    # 执行
    # ============================================================

    async def run(self, request: RunRequest) -> FinalResponse:
        """
        同步路径：解析、校验、执行，返回 final 信封

        Raises:
            GatewayError: 解析、校验、执行任一阶段失败
        """
        tool = self.prepare(request)
        return await self.execute(tool, request)

    async def execute(self, tool: RegisteredTool, request: RunRequest) -> FinalResponse:
        """对已校验的请求执行一次处理器调用"""
        log = self._logger.bind(tool_name=tool.name, request_id=request.request_id)
        deadline = self._deadline(request)
        start_time = time.perf_counter()

        try:
            result = await self._await_with_deadline(
                tool.handler.handle(request), deadline, request
            )
            # 结果无法编码为 JSON 同样算处理器失败
            result = to_jsonable_python(result)
        except ToolTimeout as e:
            record_tool_call(tool.name, "timeout", time.perf_counter() - start_time)
            log.error("tool_call_timeout", timeout_ms=e.timeout_ms)
            raise
        except Exception as e:
            record_tool_call(tool.name, "error", time.perf_counter() - start_time)
            log.error("tool_call_error", error_type=type(e).__name__, error=_error_text(e))
            raise HandlerFailure(_error_text(e)) from e

        duration = time.perf_counter() - start_time
        record_tool_call(tool.name, "success", duration)
        log.debug("tool_call_success", duration_ms=int(duration * 1000))
        return FinalResponse(result=result)

    async def stream(
        self,
        tool: RegisteredTool,
        request: RunRequest,
    ) -> AsyncIterator[PartialResponse]:
        """
        渐进路径：把处理器产出的内容包装为 partial 帧

        始终以且仅以一个 done=True 帧结束；处理器失败或超时时，
        最后一帧的 content 为 {"error": <message>}。
        """
        handler = tool.handler
        if not isinstance(handler, StreamingToolHandler):
            final = await self.execute(tool, request)
            yield PartialResponse(content=final.result, done=True)
            return

        log = self._logger.bind(tool_name=tool.name, request_id=request.request_id)
        deadline = self._deadline(request)
        start_time = time.perf_counter()
        chunks = handler.stream(request).__aiter__()
        pending: Any = _NOTHING
        failure: Optional[str] = None
        frames = 0

        async def _next() -> Any:
            return await chunks.__anext__()

        while True:
            try:
                chunk = await self._await_with_deadline(_next(), deadline, request)
                chunk = to_jsonable_python(chunk)
            except StopAsyncIteration:
                break
            except ToolTimeout as e:
                record_tool_call(tool.name, "timeout", time.perf_counter() - start_time)
                log.error("tool_stream_timeout", timeout_ms=e.timeout_ms, frames=frames)
                failure = e.message
                break
            except Exception as e:
                record_tool_call(tool.name, "error", time.perf_counter() - start_time)
                log.error("tool_stream_error", error_type=type(e).__name__, error=_error_text(e))
                failure = _error_text(e)
                break

            if pending is not _NOTHING:
                frames += 1
                yield PartialResponse(content=pending, done=False)
            pending = chunk

        if failure is not None:
            # 失败前已产出的内容照常下发
            if pending is not _NOTHING:
                yield PartialResponse(content=pending, done=False)
            yield PartialResponse(content={"error": failure}, done=True)
            return

        duration = time.perf_counter() - start_time
        record_tool_call(tool.name, "success", duration)
        log.debug("tool_stream_success", frames=frames + 1, duration_ms=int(duration * 1000))
        yield PartialResponse(content=None if pending is _NOTHING else pending, done=True)

    # ============================================================
    # 截止时间
    # ============================================================

    @staticmethod
    def _deadline(request: RunRequest) -> Optional[float]:
        if request.timeout <= 0:
            return None
        return asyncio.get_running_loop().time() + request.timeout / 1000

    @staticmethod
    async def _await_with_deadline(
        awaitable: Awaitable[Any],
        deadline: Optional[float],
        request: RunRequest,
    ) -> Any:
        """
        在截止时间内等待处理器

        超时后取消处理器任务但不等待其退出，调用方在截止时间立即拿到 ToolTimeout。
        调用方自身被取消时，取消信号同样传递给处理器任务。
        """
        if deadline is None:
            return await awaitable

        task = asyncio.ensure_future(awaitable)
        remaining = max(0.0, deadline - asyncio.get_running_loop().time())
        try:
            done, _ = await asyncio.wait({task}, timeout=remaining)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task in done:
            return task.result()

        task.cancel()
        task.add_done_callback(_discard_result)
        raise ToolTimeout(request.tool_name, request.timeout)
