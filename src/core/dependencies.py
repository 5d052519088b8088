"""Dependency injection helpers for the MCP MySQL gateway."""

from functools import lru_cache
import logging

from fastapi import Request

logger = logging.getLogger(__name__)


@lru_cache()
def get_app_config() -> "AppConfig":
    """Get cached AppConfig instance.

    This function is cached to ensure only one AppConfig instance exists.
    """
    from core.config import AppConfig
    config = AppConfig.from_env()
    logger.info("Initialized AppConfig")
    return config


def reset_app_config():
    """Drop the cached AppConfig (useful for testing)."""
    get_app_config.cache_clear()


# FastAPI Dependency Injection helpers
def get_gateway_dependency(request: Request) -> "ConnectionGateway":
    """FastAPI dependency returning the gateway owned by the running server.

    Usage:
        @router.get("/endpoint")
        async def endpoint(gateway: ConnectionGateway = Depends(get_gateway_dependency)):
            ...
    """
    return request.app.state.gateway


def get_registry_dependency(request: Request) -> "ToolRegistry":
    """FastAPI dependency returning the tool registry owned by the running server."""
    return request.app.state.registry
