"""
工具网关 Schema 定义

工具定义、请求与响应信封全部通过 Pydantic v2 建模
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_serializer, field_validator


class ParamType(str, Enum):
    """参数类型"""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ParamSpec(BaseModel):
    """
    单个参数的声明

    items 仅用于描述数组元素类型，校验器不会递归检查
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    type: ParamType = Field(..., description="参数类型")
    required: bool = Field(False, description="是否必填")
    description: str = Field("", description="参数说明")
    items: Optional["ParamSpec"] = Field(None, description="数组元素类型")


class ToolDefinition(BaseModel):
    """
    工具定义

    注册后不可变，parameters 以只读映射保存。构造时可以直接传入未类型化的嵌套 dict，
    它们即时被转换为 ParamSpec，未知类型在此处被拒绝。
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="工具名称（唯一）")
    description: str = Field("", description="工具描述")
    parameters: Mapping[str, ParamSpec] = Field(
        default_factory=dict, validate_default=True, description="参数 schema（只读）"
    )

    @field_validator("parameters", mode="after")
    @classmethod
    def _read_only_parameters(cls, value: Mapping[str, ParamSpec]) -> Mapping[str, ParamSpec]:
        return MappingProxyType(dict(value))

    @field_serializer("parameters", mode="wrap")
    def _serialize_parameters(self, value: Mapping[str, ParamSpec], handler: Any) -> Any:
        return handler(dict(value))

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（用于 API 响应）"""
        return self.model_dump(mode="json", exclude_none=True)


class RunRequest(BaseModel):
    """工具执行请求"""

    tool_name: str = Field("", description="工具名称")
    input: Dict[str, Any] = Field(default_factory=dict, description="工具输入参数")
    request_id: Optional[str] = Field(None, description="请求 ID")
    timeout: StrictInt = Field(0, ge=0, description="超时（毫秒），0 表示不限")
    access_token: Optional[str] = Field(None, description="透传的访问令牌")

    @field_validator("input", mode="before")
    @classmethod
    def _null_input_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


# ============================================================
# 响应信封
# ============================================================

class FinalResponse(BaseModel):
    """最终结果"""

    type: Literal["final"] = "final"
    result: Any = None


class PartialResponse(BaseModel):
    """流式分片，done=True 的分片是该请求的最后一帧"""

    type: Literal["partial"] = "partial"
    content: Any = None
    done: bool = False


class ErrorBody(BaseModel):
    """错误详情"""

    message: str
    code: Optional[str] = None


class ErrorResponse(BaseModel):
    """错误信封"""

    type: Literal["error"] = "error"
    error: ErrorBody


class ToolListResponse(BaseModel):
    """工具列表响应"""

    tools: List[ToolDefinition]


class ServiceHealthReport(BaseModel):
    """依赖服务健康汇总"""

    status: Literal["ok", "degraded"]
    services: Dict[str, str] = Field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.status == "ok"
