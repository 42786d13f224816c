"""
API 依赖注入

组件在 create_app 时挂到 app.state 上，路由通过依赖获取
"""

from typing import Annotated

from fastapi import Depends, Request

from arr_gateway.core.config import Settings
from arr_gateway.health.aggregator import HealthAggregator
from arr_gateway.tools.dispatcher import ToolDispatcher
from arr_gateway.tools.registry import ToolRegistry


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ToolRegistry:
    return request.app.state.registry


def get_dispatcher(request: Request) -> ToolDispatcher:
    return request.app.state.dispatcher


def get_health_aggregator(request: Request) -> HealthAggregator:
    return request.app.state.health


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
RegistryDep = Annotated[ToolRegistry, Depends(get_registry)]
DispatcherDep = Annotated[ToolDispatcher, Depends(get_dispatcher)]
HealthDep = Annotated[HealthAggregator, Depends(get_health_aggregator)]
