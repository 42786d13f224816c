"""
工具网关模块

核心组件：
- ToolRegistry: 工具定义与处理器的注册表
- validate_parameters: 基于参数 schema 的浅层校验
- ToolDispatcher: 解析、校验、执行并映射为响应信封
- ToolHandler / StreamingToolHandler: 处理器抽象
"""

from arr_gateway.tools.dispatcher import ToolDispatcher
from arr_gateway.tools.handler import StreamingToolHandler, ToolHandler, supports_streaming
from arr_gateway.tools.registry import RegisteredTool, ToolRegistry
from arr_gateway.tools.schemas import (
    ErrorResponse,
    FinalResponse,
    ParamSpec,
    ParamType,
    PartialResponse,
    RunRequest,
    ServiceHealthReport,
    ToolDefinition,
)
from arr_gateway.tools.validator import validate_parameters

__all__ = [
    "ToolDispatcher",
    "ToolHandler",
    "StreamingToolHandler",
    "supports_streaming",
    "RegisteredTool",
    "ToolRegistry",
    "ErrorResponse",
    "FinalResponse",
    "ParamSpec",
    "ParamType",
    "PartialResponse",
    "RunRequest",
    "ServiceHealthReport",
    "ToolDefinition",
    "validate_parameters",
]
