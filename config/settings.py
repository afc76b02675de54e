"""Configuration management using pydantic-settings."""
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Jolpica (Ergast-compatible) F1 API configuration
    jolpica_api_url: str = "http://api.jolpi.ca/ergast/f1"
    f1_api_timeout: int = 10000  # milliseconds
    user_agent: str = "F1-MCP-Server/1.0.0"

    # Cache TTLs in seconds, one per TTL class
    cache_ttl_default: int = 1800
    cache_ttl_live: int = 60
    cache_ttl_periodic: int = 300
    cache_ttl_reference: int = 3600

    # Interval between background sweeps of expired entries
    cache_check_period: int = 120

    # MCP server identity and HTTP binding
    mcp_server_name: str = "f1-mcp-server"
    mcp_server_version: str = "1.0.0"
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 3001

    # production starts degraded when the upstream is down, development refuses to start
    environment: Literal["production", "development"] = "production"

    log_level: str = "INFO"

    @property
    def strict_startup(self) -> bool:
        return self.environment == "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
