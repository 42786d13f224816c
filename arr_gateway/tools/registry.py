"""
工具注册表

管理所有可用工具的定义与处理器。注册通常只在启动时发生，
查询发生在每个请求上，因此用读写锁保护内部映射。
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog

from arr_gateway.core.locks import ReadWriteLock
from arr_gateway.tools.handler import ToolHandler
from arr_gateway.tools.schemas import ToolDefinition


@dataclass(frozen=True)
class RegisteredTool:
    """已注册的工具：定义 + 处理器"""

    definition: ToolDefinition
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """工具注册表"""

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._tools: Dict[str, RegisteredTool] = {}
        self._lock = ReadWriteLock()
        self._logger = logger or structlog.get_logger(__name__)

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> None:
        """注册工具，同名工具会被替换"""
        with self._lock.write():
            replaced = definition.name in self._tools
            self._tools[definition.name] = RegisteredTool(definition, handler)

        self._logger.info("tool_registered", tool_name=definition.name, replaced=replaced)

    def get(self, name: str) -> Optional[RegisteredTool]:
        """获取工具"""
        with self._lock.read():
            return self._tools.get(name)

    def lookup(self, name: str) -> Optional[ToolDefinition]:
        """获取工具定义"""
        tool = self.get(name)
        return tool.definition if tool else None

    def list_all(self) -> List[ToolDefinition]:
        """列出所有工具定义（顺序不保证）"""
        with self._lock.read():
            return [tool.definition for tool in self._tools.values()]

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._tools)

    def __contains__(self, name: object) -> bool:
        with self._lock.read():
            return name in self._tools
