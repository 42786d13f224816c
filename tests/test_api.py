"""
HTTP 接口测试

通过 httpx.AsyncClient + ASGITransport 直接驱动应用
"""

import json

import pytest

from arr_gateway.tools.schemas import ToolDefinition

from tests.conftest import (
    ECHO_DEFINITION,
    CountingStreamHandler,
    EchoHandler,
    MockHandler,
    MockServiceChecker,
    SlowHandler,
)


def _assert_error(response, status_code, code):
    assert response.status_code == status_code
    body = response.json()
    assert body["type"] == "error"
    assert body["error"]["code"] == code
    return body["error"]["message"]


# ============================================================
# 存活与服务健康
# ============================================================

class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_liveness_rejects_post(self, client):
        response = await client.post("/health")

        _assert_error(response, 405, "METHOD_NOT_ALLOWED")

    @pytest.mark.asyncio
    async def test_service_health_ok(self, client, health):
        health.register(MockServiceChecker("Sonarr"))

        response = await client.get("/v1/service-health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "services": {"Sonarr": "healthy"}}

    @pytest.mark.asyncio
    async def test_service_health_degraded(self, client, health):
        health.register(MockServiceChecker("A"))
        health.register(MockServiceChecker("B", error=RuntimeError("x down")))

        response = await client.get("/v1/service-health")

        assert response.status_code == 503
        assert response.json() == {
            "status": "degraded",
            "services": {"A": "healthy", "B": "unhealthy: x down"},
        }

    @pytest.mark.asyncio
    async def test_service_health_without_services(self, client):
        response = await client.get("/v1/service-health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "services": {}}


# ============================================================
# 工具列表
# ============================================================

class TestListTools:
    @pytest.mark.asyncio
    async def test_empty_registry(self, client):
        response = await client.get("/v1/tools")

        assert response.status_code == 200
        assert response.json() == {"tools": []}

    @pytest.mark.asyncio
    async def test_lists_registered_tools(self, client, registry):
        registry.register(ECHO_DEFINITION, EchoHandler())

        response = await client.get("/v1/tools")

        tools = response.json()["tools"]
        assert len(tools) == 1
        assert tools[0]["name"] == "Echo"
        assert tools[0]["parameters"]["msg"] == {
            "type": "string",
            "required": True,
            "description": "message",
        }

    @pytest.mark.asyncio
    async def test_tools_rejects_post(self, client):
        response = await client.post("/v1/tools", json={})

        _assert_error(response, 405, "METHOD_NOT_ALLOWED")


# ============================================================
# 工具执行
# ============================================================

class TestRunTool:
    @pytest.mark.asyncio
    async def test_echo_end_to_end(self, client, registry):
        registry.register(ECHO_DEFINITION, EchoHandler())

        response = await client.post(
            "/v1/run",
            json={"tool_name": "Echo", "input": {"msg": "hi"}},
        )

        assert response.status_code == 200
        assert response.json() == {"type": "final", "result": {"echoed": "hi"}}

    @pytest.mark.asyncio
    async def test_missing_required_parameter(self, client, registry):
        registry.register(ECHO_DEFINITION, EchoHandler())

        response = await client.post("/v1/run", json={"tool_name": "Echo", "input": {}})

        message = _assert_error(response, 400, "INVALID_PARAMETER")
        assert "msg" in message

    @pytest.mark.asyncio
    async def test_null_input_treated_as_empty(self, client, registry):
        registry.register(ToolDefinition(name="NoArgs"), MockHandler(response=[1, 2]))

        response = await client.post("/v1/run", json={"tool_name": "NoArgs", "input": None})

        assert response.status_code == 200
        assert response.json() == {"type": "final", "result": [1, 2]}

    @pytest.mark.asyncio
    async def test_handler_error_is_500_with_message(self, client, registry):
        registry.register(ToolDefinition(name="Broken"), MockHandler(error=RuntimeError("sonarr exploded")))

        response = await client.post("/v1/run", json={"tool_name": "Broken"})

        message = _assert_error(response, 500, "HANDLER_FAILURE")
        assert message == "sonarr exploded"

    @pytest.mark.asyncio
    async def test_unserializable_result_is_handler_failure(self, client, registry):
        """结果无法编码为 JSON 时返回 error 信封而不是纯文本 500"""
        registry.register(ToolDefinition(name="Opaque"), MockHandler(response={"value": object()}))

        response = await client.post("/v1/run", json={"tool_name": "Opaque"})

        _assert_error(response, 500, "HANDLER_FAILURE")

    @pytest.mark.asyncio
    async def test_timeout(self, client, registry):
        registry.register(ToolDefinition(name="Slow"), SlowHandler(5))

        response = await client.post("/v1/run", json={"tool_name": "Slow", "timeout": 50})

        _assert_error(response, 500, "TIMEOUT")

    @pytest.mark.asyncio
    async def test_malformed_body(self, client):
        response = await client.post(
            "/v1/run",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        message = _assert_error(response, 400, "MALFORMED_REQUEST")
        assert message == "Invalid request format"

    @pytest.mark.asyncio
    async def test_non_object_body(self, client):
        response = await client.post("/v1/run", json=["Echo"])

        _assert_error(response, 400, "MALFORMED_REQUEST")

    @pytest.mark.asyncio
    async def test_wrongly_typed_field(self, client):
        response = await client.post("/v1/run", json={"tool_name": "Echo", "input": "hi"})

        _assert_error(response, 400, "MALFORMED_REQUEST")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout", [True, "50", 1.5, -1])
    async def test_wrongly_typed_timeout(self, client, registry, timeout):
        """timeout 只接受非负整数，布尔值和数字字符串不做隐式转换"""
        handler = MockHandler(response="never")
        registry.register(ToolDefinition(name="Tool"), handler)

        response = await client.post("/v1/run", json={"tool_name": "Tool", "timeout": timeout})

        _assert_error(response, 400, "MALFORMED_REQUEST")
        assert handler.calls == []

    @pytest.mark.asyncio
    async def test_missing_tool_name(self, client):
        response = await client.post("/v1/run", json={"input": {}})

        message = _assert_error(response, 400, "MISSING_TOOL_NAME")
        assert message == "Missing tool_name in request"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, client):
        response = await client.post("/v1/run", json={"tool_name": "Nope"})

        message = _assert_error(response, 400, "UNKNOWN_TOOL")
        assert message == "Unknown tool: Nope"

    @pytest.mark.asyncio
    async def test_run_rejects_get(self, client):
        response = await client.get("/v1/run")

        _assert_error(response, 405, "METHOD_NOT_ALLOWED")


# ============================================================
# 流式执行
# ============================================================

class TestStreaming:
    @pytest.mark.asyncio
    async def test_ndjson_frames(self, client, registry):
        registry.register(ToolDefinition(name="Count"), CountingStreamHandler(3))

        response = await client.post("/v1/run", json={"tool_name": "Count"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        frames = [json.loads(line) for line in response.text.splitlines() if line]
        assert frames == [
            {"type": "partial", "content": {"n": 0}, "done": False},
            {"type": "partial", "content": {"n": 1}, "done": False},
            {"type": "partial", "content": {"n": 2}, "done": True},
        ]

    @pytest.mark.asyncio
    async def test_stream_failure_frame(self, client, registry):
        registry.register(ToolDefinition(name="Count"), CountingStreamHandler(3, fail_at=1))

        response = await client.post("/v1/run", json={"tool_name": "Count"})

        frames = [json.loads(line) for line in response.text.splitlines() if line]
        assert frames[-1] == {
            "type": "partial",
            "content": {"error": "stream broke at 1"},
            "done": True,
        }

    @pytest.mark.asyncio
    async def test_stream_validation_still_returns_error_envelope(self, client, registry):
        registry.register(
            ToolDefinition(name="Count", parameters={"limit": {"type": "integer", "required": True}}),
            CountingStreamHandler(3),
        )

        response = await client.post("/v1/run", json={"tool_name": "Count", "input": {}})

        _assert_error(response, 400, "INVALID_PARAMETER")

    @pytest.mark.asyncio
    async def test_streaming_disabled(self, settings, registry, health):
        from httpx import ASGITransport, AsyncClient

        from arr_gateway.main import create_app

        no_streaming = settings.model_copy(update={"STREAMING_ENABLED": False})
        app = create_app(settings=no_streaming, registry=registry, health=health)
        registry.register(ToolDefinition(name="Count"), CountingStreamHandler(3))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.post("/v1/run", json={"tool_name": "Count"})

        _assert_error(response, 500, "STREAMING_UNSUPPORTED")


# ============================================================
# 指标
# ============================================================

@pytest.mark.asyncio
async def test_metrics_endpoint(client, registry):
    registry.register(ECHO_DEFINITION, EchoHandler())
    await client.post("/v1/run", json={"tool_name": "Echo", "input": {"msg": "hi"}})

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "tool_calls_total" in response.text
    assert "http_requests_total" in response.text
