"""
健康检查 API
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from arr_gateway.api.deps import HealthDep

router = APIRouter()


@router.get("/health")
async def liveness_check() -> dict:
    """进程存活检查，不依赖任何外部服务"""
    return {"status": "ok"}


@router.get("/v1/service-health")
async def service_health(health: HealthDep) -> JSONResponse:
    """
    依赖服务健康检查

    全部健康返回 200，任一不健康返回 503
    """
    report = await health.check_all()
    status_code = status.HTTP_200_OK if report.healthy else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=report.model_dump())
