"""
网关错误类型

所有请求级失败都以 GatewayError 子类抛出，由传输层统一渲染为 error 信封
"""

from typing import Any, Dict, Optional

REQUIRED_PARAMETER_MISSING = "required parameter missing"


class GatewayError(Exception):
    """网关错误基类"""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为 error 信封中的 error 字段"""
        return {"message": self.message, "code": self.error_code}


class MalformedRequest(GatewayError):
    """请求体无法解析"""

    status_code = 400
    error_code = "MALFORMED_REQUEST"


class MissingToolName(GatewayError):
    """请求未携带 tool_name"""

    status_code = 400
    error_code = "MISSING_TOOL_NAME"

    def __init__(self, message: str = "Missing tool_name in request"):
        super().__init__(message)


class UnknownTool(GatewayError):
    """请求的工具未注册"""

    status_code = 400
    error_code = "UNKNOWN_TOOL"

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class InvalidParameter(GatewayError):
    """参数校验失败"""

    status_code = 400
    error_code = "INVALID_PARAMETER"

    def __init__(self, param: str, reason: str):
        self.param = param
        self.reason = reason
        super().__init__(f"Parameter validation failed: {self.detail}")

    @property
    def detail(self) -> str:
        """可读的失败描述，始终包含参数名"""
        if self.reason == REQUIRED_PARAMETER_MISSING:
            return f"{self.reason}: {self.param}"
        return f"parameter {self.param} {self.reason}"


class HandlerFailure(GatewayError):
    """工具处理器执行失败，消息原样透传"""

    status_code = 500
    error_code = "HANDLER_FAILURE"


class ToolTimeout(HandlerFailure):
    """工具执行超过请求的截止时间"""

    error_code = "TIMEOUT"

    def __init__(self, tool_name: str, timeout_ms: int):
        self.tool_name = tool_name
        self.timeout_ms = timeout_ms
        super().__init__(f"Tool {tool_name} timed out after {timeout_ms}ms")


class StreamingUnsupported(GatewayError):
    """传输层无法提供流式输出"""

    status_code = 500
    error_code = "STREAMING_UNSUPPORTED"

    def __init__(self, message: str = "Streaming not supported"):
        super().__init__(message)


class MethodNotAllowed(GatewayError):
    """HTTP 方法不被允许"""

    status_code = 405
    error_code = "METHOD_NOT_ALLOWED"

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)
