"""
API 路由模块

统一注册所有 API 路由
"""

from fastapi import APIRouter

from arr_gateway.api.v1 import health, tools

router = APIRouter()

# 健康检查
router.include_router(health.router, tags=["健康检查"])

# 工具
router.include_router(tools.router, prefix="/v1", tags=["工具"])
