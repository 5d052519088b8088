"""Configuration management for the MCP MySQL gateway."""

import os
from typing import Optional
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from core.exceptions import ConfigurationError

# Load .env: ENV_FILE_PATH first, then the working directory, then the project root
_env_loaded = False

env_file = os.getenv('ENV_FILE_PATH')
if env_file and Path(env_file).exists():
    load_dotenv(env_file, override=False)
    _env_loaded = True
else:
    possible_paths = [
        Path.cwd() / '.env',
        Path(__file__).parent.parent.parent / '.env',
    ]
    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(str(env_path), override=False)
            _env_loaded = True
            break

if not _env_loaded:
    load_dotenv()


DEFAULT_MYSQL_PORT = 3306


class PoolConfig(BaseModel):
    """Connection pool settings applied to every pool the gateway builds."""

    pool_size: int = Field(default=10, ge=1, description="Maximum pooled connections")
    min_size: int = Field(default=1, ge=0, description="Connections opened eagerly when the pool is built")
    connect_timeout: int = Field(default=10, description="Socket connect timeout in seconds")
    acquire_timeout: float = Field(default=60.0, description="Seconds to wait for a free pooled connection")
    pool_recycle: int = Field(default=-1, description="Recycle connections older than this many seconds (-1 disables)")
    charset: str = Field(default="utf8mb4", description="Connection character set")
    connect_retries: int = Field(default=1, description="Extra connect+execute attempts after a connection failure")

    @classmethod
    def from_env(cls) -> "PoolConfig":
        """Create pool configuration from environment variables."""
        try:
            return cls(
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                min_size=int(os.getenv("DB_POOL_MIN_SIZE", "1")),
                connect_timeout=int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
                acquire_timeout=float(os.getenv("DB_ACQUIRE_TIMEOUT", "60")),
                pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "-1")),
                charset=os.getenv("DB_CHARSET", "utf8mb4"),
                connect_retries=int(os.getenv("DB_CONNECT_RETRIES", "1"))
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid DB_* pool setting: {e}")


class ApifoxConfig(BaseModel):
    """Apifox OpenAPI import/export configuration."""

    api_key: Optional[str] = None
    default_project_id: Optional[str] = None
    base_url: str = "https://api.apifox.com"
    api_version: str = "2024-03-28"
    locale: str = "zh-CN"
    timeout: int = 60

    @classmethod
    def from_env(cls) -> "ApifoxConfig":
        """Create Apifox configuration from environment variables."""
        return cls(
            api_key=os.getenv("APIFOX_API_KEY") or None,
            default_project_id=os.getenv("APIFOX_DEFAULT_PROJECT_ID") or None,
            base_url=os.getenv("APIFOX_BASE_URL", "https://api.apifox.com").rstrip("/"),
            api_version=os.getenv("APIFOX_API_VERSION", "2024-03-28"),
            locale=os.getenv("APIFOX_LOCALE", "zh-CN"),
            timeout=int(os.getenv("APIFOX_TIMEOUT", "60"))
        )


class HTTPToolConfig(BaseModel):
    """Limits for the ad-hoc HTTP request tool."""

    timeout: float = 30.0
    max_body_chars: int = 20000

    @classmethod
    def from_env(cls) -> "HTTPToolConfig":
        """Create HTTP tool configuration from environment variables."""
        return cls(
            timeout=float(os.getenv("HTTP_TOOL_TIMEOUT", "30")),
            max_body_chars=int(os.getenv("HTTP_TOOL_MAX_BODY_CHARS", "20000"))
        )


class HTTPConfig(BaseModel):
    """HTTP server configuration including rate limiting and CORS."""

    rate_limit_default: str = Field(
        default="100/minute",
        description="Default rate limit for all endpoints"
    )
    rate_limit_tools: str = Field(
        default="30/minute",
        description="Rate limit for tool call endpoints"
    )
    cors_preflight_max_age: int = Field(
        default=600,
        description="CORS preflight max age in seconds"
    )

    @classmethod
    def from_env(cls) -> "HTTPConfig":
        """Create HTTP configuration from environment variables."""
        return cls(
            rate_limit_default=os.getenv("RATE_LIMIT_DEFAULT", "100/minute"),
            rate_limit_tools=os.getenv("RATE_LIMIT_TOOLS", "30/minute"),
            cors_preflight_max_age=int(os.getenv("CORS_PREFLIGHT_MAX_AGE", "600"))
        )


def get_http_config() -> HTTPConfig:
    """Get HTTP configuration from environment."""
    return HTTPConfig.from_env()


class AppConfig(BaseModel):
    """Application configuration combining all configs."""

    pool: PoolConfig
    apifox: ApifoxConfig
    http_tool: HTTPToolConfig
    http_config: HTTPConfig
    expose_sensitive_info: bool = False
    server_name: str = Field(default="mysql-mcp-server", description="MCP server name identifier")
    server_version: str = Field(default="1.0.0", description="MCP server version")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create full application configuration from environment variables."""
        return cls(
            pool=PoolConfig.from_env(),
            apifox=ApifoxConfig.from_env(),
            http_tool=HTTPToolConfig.from_env(),
            http_config=HTTPConfig.from_env(),
            expose_sensitive_info=os.getenv("EXPOSE_SENSITIVE_INFO", "false").lower() == "true",
            server_name=os.getenv("MCP_SERVER_NAME", "mysql-mcp-server"),
            server_version=os.getenv("MCP_SERVER_VERSION", "1.0.0")
        )
