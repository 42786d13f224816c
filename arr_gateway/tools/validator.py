"""
参数校验

按工具声明的参数 schema 做浅层、快速失败的校验：
只检查 schema 中声明的参数，遇到第一个错误即返回，未声明的输入键原样放行。
"""

from typing import Any, Mapping

from arr_gateway.core.errors import REQUIRED_PARAMETER_MISSING, InvalidParameter
from arr_gateway.tools.schemas import ParamSpec, ParamType


def _is_number(value: Any) -> bool:
    # bool 是 int 的子类，JSON 中两者不同
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    if not _is_number(value):
        return False
    if isinstance(value, int):
        return True
    return value.is_integer()


_TYPE_CHECKS = {
    ParamType.STRING: (lambda v: isinstance(v, str), "must be a string"),
    ParamType.NUMBER: (_is_number, "must be a number"),
    ParamType.INTEGER: (_is_integer, "must be an integer"),
    ParamType.BOOLEAN: (lambda v: isinstance(v, bool), "must be a boolean"),
    ParamType.ARRAY: (lambda v: isinstance(v, list), "must be an array"),
    ParamType.OBJECT: (lambda v: isinstance(v, dict), "must be an object"),
}


def check_type(value: Any, spec: ParamSpec) -> bool:
    """值是否符合声明类型（数组元素不做递归检查）"""
    check, _ = _TYPE_CHECKS[ParamType(spec.type)]
    return check(value)


def validate_parameters(input: Mapping[str, Any], parameters: Mapping[str, ParamSpec]) -> None:
    """
    校验输入参数

    Args:
        input: 请求的 input 映射
        parameters: 工具声明的参数 schema

    Raises:
        InvalidParameter: 第一个不满足约束的参数
    """
    for name, spec in parameters.items():
        if name not in input:
            if spec.required:
                raise InvalidParameter(name, REQUIRED_PARAMETER_MISSING)
            continue

        if not check_type(input[name], spec):
            _, reason = _TYPE_CHECKS[ParamType(spec.type)]
            raise InvalidParameter(name, reason)
