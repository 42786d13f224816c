"""
ARR 工具注册

按配置启用的服务注册对应工具与健康检查器
"""

from typing import List

from arr_gateway.core.config import Settings
from arr_gateway.core.logging import get_logger
from arr_gateway.health.aggregator import HealthAggregator
from arr_gateway.integrations.arr.client import (
    ArrClient,
    LibraryClient,
    ProwlarrClient,
    RadarrClient,
    SonarrClient,
)
from arr_gateway.integrations.arr.handlers import (
    LibraryAddHandler,
    LibraryListHandler,
    LibrarySearchHandler,
    ProwlarrIndexersHandler,
    ProwlarrSearchHandler,
    QualityProfilesHandler,
    RootFoldersHandler,
)
from arr_gateway.tools.registry import ToolRegistry
from arr_gateway.tools.schemas import ToolDefinition

logger = get_logger(__name__)


def _register_library_tools(
    registry: ToolRegistry,
    client: LibraryClient,
    *,
    noun: str,
    list_key: str,
    add_tool: str,
    add_input_key: str,
    add_result_key: str,
    id_field: str,
) -> None:
    """注册 Sonarr / Radarr 共有的五个工具"""
    prefix = client.name

    registry.register(
        ToolDefinition(
            name=f"{prefix}Search",
            description=f"Search for {noun} in {prefix}",
            parameters={
                "query": {
                    "type": "string",
                    "description": f"The search query for {noun}",
                    "required": True,
                },
            },
        ),
        LibrarySearchHandler(client),
    )

    registry.register(
        ToolDefinition(name=f"{prefix}List", description=f"List {noun} in {prefix}"),
        LibraryListHandler(client, result_key=list_key),
    )

    registry.register(
        ToolDefinition(
            name=add_tool,
            description=f"Add a new {add_result_key} to {prefix}",
            parameters={
                add_input_key: {
                    "type": "object",
                    "description": (
                        f"The {add_result_key} data to add "
                        f"(requires {id_field}, title, qualityProfileId, rootFolderPath)"
                    ),
                    "required": True,
                },
            },
        ),
        LibraryAddHandler(client, input_key=add_input_key, result_key=add_result_key),
    )

    registry.register(
        ToolDefinition(name=f"{prefix}GetProfiles", description=f"Get quality profiles from {prefix}"),
        QualityProfilesHandler(client),
    )

    registry.register(
        ToolDefinition(name=f"{prefix}GetRootFolders", description=f"Get root folders from {prefix}"),
        RootFoldersHandler(client),
    )


def _register_prowlarr_tools(registry: ToolRegistry, client: ProwlarrClient) -> None:
    registry.register(
        ToolDefinition(
            name="ProwlarrSearch",
            description="Search for content using Prowlarr indexers",
            parameters={
                "query": {
                    "type": "string",
                    "description": "The search query for content",
                    "required": True,
                },
                "categories": {
                    "type": "array",
                    "description": "Optional category IDs to filter results",
                    "items": {"type": "integer"},
                },
            },
        ),
        ProwlarrSearchHandler(client),
    )

    registry.register(
        ToolDefinition(name="ProwlarrIndexers", description="List Prowlarr indexers"),
        ProwlarrIndexersHandler(client),
    )


def register_arr_tools(
    registry: ToolRegistry,
    health: HealthAggregator,
    settings: Settings,
) -> List[ArrClient]:
    """
    为已配置的服务创建客户端、注册工具和健康检查器

    Returns:
        创建的客户端列表（关闭时需要释放连接）
    """
    client_kwargs = {
        "timeout": settings.ARR_REQUEST_TIMEOUT_SECONDS,
        "health_timeout": settings.HEALTH_CHECK_TIMEOUT_SECONDS,
    }
    clients: List[ArrClient] = []

    if settings.sonarr_enabled:
        sonarr = SonarrClient(settings.SONARR_URL, settings.SONARR_API_KEY, **client_kwargs)
        health.register(sonarr)
        _register_library_tools(
            registry,
            sonarr,
            noun="TV shows",
            list_key="series",
            add_tool="SonarrAddSeries",
            add_input_key="seriesData",
            add_result_key="series",
            id_field="tvdbId",
        )
        clients.append(sonarr)

    if settings.radarr_enabled:
        radarr = RadarrClient(settings.RADARR_URL, settings.RADARR_API_KEY, **client_kwargs)
        health.register(radarr)
        _register_library_tools(
            registry,
            radarr,
            noun="movies",
            list_key="movies",
            add_tool="RadarrAddMovie",
            add_input_key="movieData",
            add_result_key="movie",
            id_field="tmdbId",
        )
        clients.append(radarr)

    if settings.prowlarr_enabled:
        prowlarr = ProwlarrClient(settings.PROWLARR_URL, settings.PROWLARR_API_KEY, **client_kwargs)
        health.register(prowlarr)
        _register_prowlarr_tools(registry, prowlarr)
        clients.append(prowlarr)

    if not clients:
        logger.warning("no_arr_services_configured")

    return clients
