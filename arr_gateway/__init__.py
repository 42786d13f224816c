"""
ARR MCP Gateway

以 MCP 风格协议暴露 Sonarr / Radarr / Prowlarr 能力的工具网关
"""

__version__ = "0.1.0"
