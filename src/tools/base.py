"""Base classes for MCP tool handlers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from mcp.types import CallToolRequest

from core.config import AppConfig
from core.error_handling import mcp_text


class ToolHandler(ABC):
    """Abstract base class for MCP tool handlers."""

    def __init__(self, app_config: Optional[AppConfig] = None):
        self.app_config = app_config or AppConfig.from_env()

    @property
    @abstractmethod
    def tool_names(self) -> List[str]:
        """Return list of tool names this handler supports."""
        pass

    @abstractmethod
    async def handle(self, request: CallToolRequest, gateway: Any) -> Dict[str, Any]:
        """
        Handle tool invocation.

        Args:
            request: MCP tool call request (``name`` and ``arguments``)
            gateway: ConnectionGateway owned by the server

        Returns:
            MCP response dictionary with 'content' and 'isError' keys
        """
        pass

    def _error_response(self, error_message: str) -> Dict[str, Any]:
        """Create standardized error response."""
        return mcp_text(f"✗ {error_message}", is_error=True)

    def _success_response(self, text: str) -> Dict[str, Any]:
        """Create standardized success response."""
        return mcp_text(text)
