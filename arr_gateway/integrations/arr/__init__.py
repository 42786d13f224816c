"""
ARR 服务集成

Sonarr / Radarr / Prowlarr 的客户端、工具处理器与注册入口
"""

from arr_gateway.integrations.arr.client import (
    ArrAPIError,
    ArrClient,
    ProwlarrClient,
    RadarrClient,
    SonarrClient,
)
from arr_gateway.integrations.arr.tools import register_arr_tools

__all__ = [
    "ArrAPIError",
    "ArrClient",
    "ProwlarrClient",
    "RadarrClient",
    "SonarrClient",
    "register_arr_tools",
]
