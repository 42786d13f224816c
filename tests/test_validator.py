"""
参数校验测试
"""

import pytest

from arr_gateway.core.errors import InvalidParameter
from arr_gateway.tools.schemas import ParamSpec
from arr_gateway.tools.validator import validate_parameters


def _schema(**specs):
    return {name: ParamSpec.model_validate(spec) for name, spec in specs.items()}


def test_required_parameter_missing():
    schema = _schema(msg={"type": "string", "required": True})

    with pytest.raises(InvalidParameter) as exc_info:
        validate_parameters({}, schema)

    assert exc_info.value.param == "msg"
    assert exc_info.value.reason == "required parameter missing"
    assert "msg" in exc_info.value.message


def test_required_parameter_present_passes():
    schema = _schema(msg={"type": "string", "required": True})
    validate_parameters({"msg": "hi"}, schema)


def test_optional_parameter_absent_passes():
    schema = _schema(limit={"type": "integer"})
    validate_parameters({}, schema)


def test_unknown_input_keys_are_ignored():
    schema = _schema(msg={"type": "string", "required": True})
    validate_parameters({"msg": "hi", "extra": object()}, schema)


@pytest.mark.parametrize(
    "value, ok",
    [
        (5, True),
        (5.0, True),
        (-3.0, True),
        (5.5, False),
        ("5", False),
        (True, False),
        (None, False),
    ],
)
def test_integer_boundary(value, ok):
    """5.0 视为整数，5.5 和 "5" 不是"""
    schema = _schema(n={"type": "integer"})
    if ok:
        validate_parameters({"n": value}, schema)
    else:
        with pytest.raises(InvalidParameter) as exc_info:
            validate_parameters({"n": value}, schema)
        assert exc_info.value.param == "n"
        assert exc_info.value.reason == "must be an integer"


@pytest.mark.parametrize(
    "param_type, good, bad",
    [
        ("string", "text", 1),
        ("number", 1.5, "1.5"),
        ("number", 2, False),
        ("boolean", False, 0),
        ("array", [1, "a"], {"a": 1}),
        ("object", {"a": 1}, [1]),
    ],
)
def test_type_checks(param_type, good, bad):
    schema = _schema(p={"type": param_type})
    validate_parameters({"p": good}, schema)
    with pytest.raises(InvalidParameter):
        validate_parameters({"p": bad}, schema)


def test_array_items_not_checked():
    """数组元素类型仅为声明，不做递归校验"""
    schema = _schema(ids={"type": "array", "items": {"type": "integer"}})
    validate_parameters({"ids": ["not", "ints"]}, schema)


def test_first_error_short_circuits():
    schema = _schema(
        a={"type": "string", "required": True},
        b={"type": "string", "required": True},
    )

    with pytest.raises(InvalidParameter) as exc_info:
        validate_parameters({}, schema)

    assert exc_info.value.param == "a"


def test_type_error_message_names_parameter():
    schema = _schema(query={"type": "string"})

    with pytest.raises(InvalidParameter) as exc_info:
        validate_parameters({"query": 42}, schema)

    assert exc_info.value.message == "Parameter validation failed: parameter query must be a string"
