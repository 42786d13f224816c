"""
ARR 服务客户端

Sonarr / Radarr / Prowlarr 的 HTTP API 客户端。每个客户端同时实现
ServiceChecker，供 /v1/service-health 汇总使用。
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx

from arr_gateway.core.logging import get_logger
from arr_gateway.health.aggregator import ServiceChecker

logger = get_logger(__name__)

# 超过此长度的查询改用 POST，避免 URL 过长
LONG_TERM_THRESHOLD = 100


class ArrAPIError(Exception):
    """ARR API 调用错误"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ArrClient(ServiceChecker):
    """ARR 服务通用客户端"""

    status_path = "/api/v3/system/status"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        service_name: str,
        timeout: float = 30.0,
        health_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_name = service_name
        self.health_timeout = health_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"X-Api-Key": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return self.service_name

    async def close(self) -> None:
        await self._client.aclose()

    async def check(self) -> None:
        """请求 system/status，状态码 >= 400 视为不健康"""
        try:
            response = await self._client.get(self.status_path, timeout=self.health_timeout)
        except httpx.HTTPError as e:
            raise ArrAPIError(f"health check failed: {e}") from e

        if response.status_code >= 400:
            raise ArrAPIError(
                f"health check failed with status: {response.status_code}",
                status_code=response.status_code,
            )

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        调用 ARR API 并解析 JSON 响应

        Raises:
            ArrAPIError: 网络错误、状态码 >= 400 或响应不是合法 JSON
        """
        if not path.startswith("/"):
            path = "/" + path

        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error("arr_request_failed", service=self.service_name, path=path, error=str(e))
            raise ArrAPIError(f"error making request: {e}") from e

        if response.status_code >= 400:
            raise ArrAPIError(
                f"API returned error status: {response.status_code}, details: {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ArrAPIError(f"error parsing response: {e}") from e


class LibraryClient(ArrClient):
    """
    媒体库类服务（Sonarr / Radarr）的公共能力

    子类声明资源名、新增时的必填字段与默认值
    """

    resource: str = ""
    required_fields: Sequence[str] = ()
    add_defaults: Dict[str, Any] = {}

    async def lookup(self, term: str) -> List[Dict[str, Any]]:
        """按关键词搜索"""
        path = f"/api/v3/{self.resource}/lookup"
        if len(term) < LONG_TERM_THRESHOLD:
            return await self.request("GET", path, params={"term": term})
        return await self.request("POST", path, json={"term": term})

    async def list_items(self) -> List[Dict[str, Any]]:
        return await self.request("GET", f"/api/v3/{self.resource}")

    async def add_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """新增条目，缺省字段按服务默认值补齐"""
        for field in self.required_fields:
            if field not in data:
                raise ArrAPIError(f"missing required field for adding {self.resource}: {field}")

        payload = dict(data)
        for key, value in self.add_defaults.items():
            payload.setdefault(key, value)

        return await self.request("POST", f"/api/v3/{self.resource}", json=payload)

    async def get_quality_profiles(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/api/v3/qualityprofile")

    async def get_root_folders(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/api/v3/rootfolder")


class SonarrClient(LibraryClient):
    """Sonarr 客户端"""

    resource = "series"
    required_fields = ("tvdbId", "title", "qualityProfileId", "rootFolderPath")
    add_defaults = {
        "monitored": True,
        "seasonFolder": True,
        "addOptions": {"searchForMissingEpisodes": True},
    }

    def __init__(self, base_url: str, api_key: str, **kwargs: Any):
        super().__init__(base_url, api_key, "Sonarr", **kwargs)


class RadarrClient(LibraryClient):
    """Radarr 客户端"""

    resource = "movie"
    required_fields = ("tmdbId", "title", "qualityProfileId", "rootFolderPath")
    add_defaults = {
        "monitored": True,
        "minimumAvailability": "released",
        "addOptions": {"searchForMovie": True},
    }

    def __init__(self, base_url: str, api_key: str, **kwargs: Any):
        super().__init__(base_url, api_key, "Radarr", **kwargs)


class ProwlarrClient(ArrClient):
    """Prowlarr 客户端"""

    status_path = "/api/v1/system/status"

    def __init__(self, base_url: str, api_key: str, **kwargs: Any):
        super().__init__(base_url, api_key, "Prowlarr", **kwargs)

    async def get_indexers(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/api/v1/indexer")

    async def search(self, query: str, categories: Sequence[int] = ()) -> List[Dict[str, Any]]:
        """通过 Prowlarr 的全部索引器搜索"""
        params: Dict[str, Any] = {"query": query}
        if categories:
            params["categories"] = ",".join(str(c) for c in categories)
        return await self.request("GET", "/api/v1/search", params=params)
