"""
工具 API

- GET  /v1/tools: 列出已注册工具
- POST /v1/run: 执行工具，返回 final / error 信封，或流式 partial 帧
"""

import json
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from arr_gateway.api.deps import DispatcherDep, RegistryDep, SettingsDep
from arr_gateway.core.errors import MalformedRequest, StreamingUnsupported
from arr_gateway.core.logging import get_logger
from arr_gateway.tools.schemas import PartialResponse, RunRequest

logger = get_logger(__name__)

router = APIRouter()


async def _parse_run_request(request: Request) -> RunRequest:
    """解析请求体，任何解析失败都视为 MalformedRequest"""
    try:
        body = await request.json()
    except (ValueError, UnicodeDecodeError) as e:
        logger.error("invalid_request_body", error=str(e))
        raise MalformedRequest("Invalid request format") from e

    if not isinstance(body, dict):
        raise MalformedRequest("Invalid request format")

    try:
        return RunRequest.model_validate(body)
    except ValidationError as e:
        logger.error("invalid_request_format", errors=e.errors(include_url=False))
        raise MalformedRequest("Invalid request format") from e


async def _ndjson(frames: AsyncIterator[PartialResponse]) -> AsyncIterator[str]:
    async for frame in frames:
        yield json.dumps(frame.model_dump(mode="json")) + "\n"


@router.get("/tools")
async def list_tools(registry: RegistryDep) -> Dict[str, Any]:
    """获取所有已注册工具的定义"""
    tools = registry.list_all()
    logger.debug("list_tools", count=len(tools))
    return {"tools": [tool.to_dict() for tool in tools]}


@router.post("/run")
async def run_tool(
    request: Request,
    dispatcher: DispatcherDep,
    settings: SettingsDep,
):
    """
    执行工具

    普通处理器返回单个 final 信封；声明了流式能力的处理器返回
    换行分隔的 partial 帧，最后一帧 done=true。
    """
    run_request = await _parse_run_request(request)
    logger.debug(
        "run_request_received",
        tool_name=run_request.tool_name,
        request_id=run_request.request_id,
    )

    tool = dispatcher.prepare(run_request)

    if dispatcher.is_streaming(tool):
        if not settings.STREAMING_ENABLED:
            raise StreamingUnsupported()
        return StreamingResponse(
            _ndjson(dispatcher.stream(tool, run_request)),
            media_type="application/x-ndjson",
        )

    final = await dispatcher.execute(tool, run_request)
    return JSONResponse(content=final.model_dump(mode="json"))
