"""
错误渲染

所有失败统一渲染为 {"type": "error", "error": {"message", "code"}} 信封
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from arr_gateway.core.errors import GatewayError, MalformedRequest, MethodNotAllowed
from arr_gateway.core.logging import get_logger
from arr_gateway.tools.schemas import ErrorBody, ErrorResponse

logger = get_logger(__name__)


def error_response(error: GatewayError) -> JSONResponse:
    """GatewayError -> error 信封"""
    envelope = ErrorResponse(error=ErrorBody(message=error.message, code=error.error_code))
    return JSONResponse(
        status_code=error.status_code,
        content=envelope.model_dump(exclude_none=True),
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        response = error_response(MethodNotAllowed())
        if exc.headers and "Allow" in exc.headers:
            response.headers["Allow"] = exc.headers["Allow"]
        return response

    error = GatewayError(str(exc.detail), error_code="HTTP_ERROR")
    error.status_code = exc.status_code
    return error_response(error)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("request_validation_failed", path=request.url.path, errors=exc.errors())
    return error_response(MalformedRequest("Invalid request format"))


def install_exception_handlers(app: FastAPI) -> None:
    """注册异常处理器"""
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
