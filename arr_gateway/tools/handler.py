"""
工具处理器抽象

每个工具对应一个 ToolHandler 实现，分发器只依赖这一抽象
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from arr_gateway.tools.schemas import RunRequest


class ToolHandler(ABC):
    """工具处理器：给定请求，返回结果或抛出异常"""

    @abstractmethod
    async def handle(self, request: RunRequest) -> Any:
        """
        执行工具

        Returns:
            可 JSON 序列化的结果

        Raises:
            Exception: 任何异常都会被视为处理器失败，消息原样返回给调用方
        """


class StreamingToolHandler(ToolHandler):
    """
    可渐进输出的处理器

    stream() 逐个产出中间内容，分发器负责把它们包装成 partial 帧，
    并在结束时补上唯一一个 done=True 帧。
    """

    @abstractmethod
    def stream(self, request: RunRequest) -> AsyncIterator[Any]:
        """产出中间结果（async generator）"""

    async def handle(self, request: RunRequest) -> Any:
        last = None
        async for chunk in self.stream(request):
            last = chunk
        return last


def supports_streaming(handler: ToolHandler) -> bool:
    """处理器是否声明了流式输出能力"""
    return isinstance(handler, StreamingToolHandler)
