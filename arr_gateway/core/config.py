"""
应用配置

使用 pydantic-settings 管理环境变量配置
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = ("debug", "info", "warn", "warning", "error")


class Settings(BaseSettings):
    """应用配置类"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # 基础配置
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "info"
    LOG_JSON: bool = False

    # 服务配置
    HOST: str = "localhost"
    PORT: int = 8080
    SHUTDOWN_TIMEOUT_SECONDS: int = 15

    # 关闭后，声明流式能力的工具会返回 STREAMING_UNSUPPORTED
    STREAMING_ENABLED: bool = True

    # Sonarr 配置
    SONARR_URL: str = ""
    SONARR_API_KEY: str = ""

    # Radarr 配置
    RADARR_URL: str = ""
    RADARR_API_KEY: str = ""

    # Prowlarr 配置
    PROWLARR_URL: str = ""
    PROWLARR_API_KEY: str = ""

    # 外部调用超时
    ARR_REQUEST_TIMEOUT_SECONDS: float = 30.0
    HEALTH_CHECK_TIMEOUT_SECONDS: float = 5.0

    @field_validator("HOST")
    @classmethod
    def _host_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("host cannot be empty")
        return value

    @field_validator("PORT")
    @classmethod
    def _port_in_range(cls, value: int) -> int:
        if value <= 0 or value > 65535:
            raise ValueError("port must be between 1 and 65535")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in VALID_LOG_LEVELS:
            raise ValueError("log level must be one of: debug, info, warn, error")
        return level

    @property
    def sonarr_enabled(self) -> bool:
        return bool(self.SONARR_URL and self.SONARR_API_KEY)

    @property
    def radarr_enabled(self) -> bool:
        return bool(self.RADARR_URL and self.RADARR_API_KEY)

    @property
    def prowlarr_enabled(self) -> bool:
        return bool(self.PROWLARR_URL and self.PROWLARR_API_KEY)

    @property
    def any_service_enabled(self) -> bool:
        return self.sonarr_enabled or self.radarr_enabled or self.prowlarr_enabled


@lru_cache
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
