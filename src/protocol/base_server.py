"""Base MCP server - transport-agnostic MCP protocol implementation.

Owns the single ConnectionGateway of the process and routes ``call_tool``
requests through the ToolRegistry. Transports (STDIO, SSE) subclass this and
only decide how the streams are obtained.
"""

import logging
from typing import Any, Dict, List, Optional
from mcp.server import Server
from mcp.types import TextContent

from core.config import AppConfig
from core.exceptions import ToolExecutionError
from database.gateway import ConnectionGateway
from tools import ToolRegistry, get_all_tools

logger = logging.getLogger(__name__)


class ToolCall:
    """Name/arguments pair handed to tool handlers."""

    def __init__(self, name: str, arguments: Optional[Dict[str, Any]] = None):
        self.name = name
        self.arguments = arguments or {}


def envelope_to_content(envelope: Dict[str, Any]) -> List[TextContent]:
    """Convert an MCP result envelope into SDK content blocks."""
    return [
        TextContent(type="text", text=block.get("text", ""))
        for block in envelope.get("content", [])
        if block.get("type") == "text"
    ]


class BaseMCPServer:
    """Base MCP server providing core protocol functionality.

    This class encapsulates the MCP protocol logic independent of
    the transport mechanism (STDIO, HTTP/SSE, etc.).
    """

    def __init__(
        self,
        gateway: Optional[ConnectionGateway] = None,
        app_config: Optional[AppConfig] = None,
        registry: Optional[ToolRegistry] = None
    ):
        """Initialize base MCP server.

        Args:
            gateway: ConnectionGateway shared by all tool calls (created if omitted)
            app_config: Application configuration (defaults to env)
            registry: Tool registry (created from app_config if omitted)
        """
        self.app_config = app_config or AppConfig.from_env()
        self.gateway = gateway or ConnectionGateway(self.app_config.pool)
        self.registry = registry or ToolRegistry(self.app_config)
        self.server = Server(self.app_config.server_name, version=self.app_config.server_version)
        self._setup_handlers()
        logger.info(f"Initialized {self.app_config.server_name} MCP server")

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Run one tool call and return its envelope."""
        return await self.registry.handle_tool(ToolCall(name, arguments), self.gateway)

    def _setup_handlers(self):
        """Setup MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools():
            """List all available tools."""
            return get_all_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict):
            """Handle tool execution."""
            envelope = await self.dispatch(name, arguments)
            if envelope.get("isError"):
                # The SDK reports raised errors as isError results
                text = "\n".join(block.text for block in envelope_to_content(envelope))
                raise ToolExecutionError(text)
            return envelope_to_content(envelope)

        @self.server.list_prompts()
        async def list_prompts():
            """List available prompts (currently none)."""
            return []

        @self.server.list_resources()
        async def list_resources():
            """List available resources (currently none)."""
            return []

    async def shutdown(self):
        """Release the database session, if any."""
        await self.gateway.close()
