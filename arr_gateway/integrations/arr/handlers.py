"""
ARR 工具处理器

每个处理器只做参数提取和结果包装，HTTP 细节留在客户端
"""

from typing import Any, Dict, List

from arr_gateway.integrations.arr.client import LibraryClient, ProwlarrClient
from arr_gateway.tools.handler import ToolHandler
from arr_gateway.tools.schemas import RunRequest


def _require_query(request: RunRequest) -> str:
    query = request.input.get("query")
    if not isinstance(query, str) or not query:
        raise ValueError("missing or invalid 'query' parameter")
    return query


class LibrarySearchHandler(ToolHandler):
    """媒体库搜索"""

    def __init__(self, client: LibraryClient):
        self.client = client

    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        query = _require_query(request)
        try:
            results = await self.client.lookup(query)
        except Exception as e:
            raise RuntimeError(f"{self.client.name.lower()} search failed: {e}") from e
        return {"results": results}


class LibraryListHandler(ToolHandler):
    """列出媒体库条目，结果键由工具决定（series / movies）"""

    def __init__(self, client: LibraryClient, result_key: str):
        self.client = client
        self.result_key = result_key

    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        try:
            items = await self.client.list_items()
        except Exception as e:
            raise RuntimeError(f"failed to get {self.result_key} from {self.client.name}: {e}") from e
        return {self.result_key: items}


class LibraryAddHandler(ToolHandler):
    """新增媒体库条目"""

    def __init__(self, client: LibraryClient, input_key: str, result_key: str):
        self.client = client
        self.input_key = input_key
        self.result_key = result_key

    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        data = request.input.get(self.input_key)
        if not isinstance(data, dict) or not data:
            raise ValueError(f"missing or invalid '{self.input_key}' parameter")

        try:
            created = await self.client.add_item(data)
        except Exception as e:
            raise RuntimeError(f"failed to add {self.result_key} to {self.client.name}: {e}") from e
        return {self.result_key: created}


class QualityProfilesHandler(ToolHandler):
    """获取质量配置"""

    def __init__(self, client: LibraryClient):
        self.client = client

    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        try:
            profiles = await self.client.get_quality_profiles()
        except Exception as e:
            raise RuntimeError(f"failed to get quality profiles from {self.client.name}: {e}") from e
        return {"profiles": profiles}


class RootFoldersHandler(ToolHandler):
    """获取根目录"""

    def __init__(self, client: LibraryClient):
        self.client = client

    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        try:
            folders = await self.client.get_root_folders()
        except Exception as e:
            raise RuntimeError(f"failed to get root folders from {self.client.name}: {e}") from e
        return {"folders": folders}


class ProwlarrSearchHandler(ToolHandler):
    """Prowlarr 索引器搜索"""

    def __init__(self, client: ProwlarrClient):
        self.client = client

    @staticmethod
    def _categories(request: RunRequest) -> List[int]:
        # 非数字的分类直接忽略
        raw = request.input.get("categories")
        if not isinstance(raw, list):
            return []
        return [
            int(c)
            for c in raw
            if isinstance(c, (int, float)) and not isinstance(c, bool)
        ]

    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        query = _require_query(request)
        try:
            results = await self.client.search(query, self._categories(request))
        except Exception as e:
            raise RuntimeError(f"prowlarr search failed: {e}") from e
        return {"results": results}


class ProwlarrIndexersHandler(ToolHandler):
    """列出 Prowlarr 索引器"""

    def __init__(self, client: ProwlarrClient):
        self.client = client

    async def handle(self, request: RunRequest) -> Dict[str, Any]:
        try:
            indexers = await self.client.get_indexers()
        except Exception as e:
            raise RuntimeError(f"failed to get indexers from Prowlarr: {e}") from e
        return {"indexers": indexers}
