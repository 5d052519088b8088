"""Tool registry for routing MCP tool calls to handlers."""

import logging
from typing import Dict, Any, Optional
from mcp.types import CallToolRequest

from core.config import AppConfig
from core.error_handling import ErrorFormat, format_error_response, mcp_text
from tools.base import ToolHandler
from tools.handlers import (
    MySQLHandler,
    ConnectionHandler,
    SchemaHandler,
    OpenAPIHandler,
    HTTPRequestHandler,
)

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Central registry for MCP tool handlers.

    Routes tool calls to appropriate handlers based on tool name.
    """

    def __init__(self, app_config: Optional[AppConfig] = None):
        self.app_config = app_config or AppConfig.from_env()
        self.handlers: Dict[str, ToolHandler] = {}
        self._register_handlers()

    def _register_handlers(self):
        """Register all tool handlers."""
        handler_classes = [
            MySQLHandler,
            ConnectionHandler,
            SchemaHandler,
            OpenAPIHandler,
            HTTPRequestHandler,
        ]

        for handler_class in handler_classes:
            handler = handler_class(self.app_config)
            for tool_name in handler.tool_names:
                self.handlers[tool_name] = handler
                logger.debug(f"Registered {tool_name} -> {handler_class.__name__}")

        logger.info(f"Registered {len(self.handlers)} MCP tools across {len(handler_classes)} handlers")

    async def handle_tool(
        self,
        request: CallToolRequest,
        gateway: Any
    ) -> Dict[str, Any]:
        """
        Route tool call to appropriate handler.

        Unexpected faults raised by a handler are reported as a generic
        failure envelope carrying the fault's message.

        Args:
            request: MCP tool call request
            gateway: ConnectionGateway instance

        Returns:
            Tool execution result or error envelope
        """
        handler = self.handlers.get(request.name)
        if handler is None:
            logger.warning(f"Unknown tool requested: {request.name}")
            return mcp_text(f"Error: Unknown tool: {request.name}", is_error=True)

        logger.debug(f"Routing {request.name} to {handler.__class__.__name__}")
        try:
            return await handler.handle(request, gateway)
        except Exception as e:
            return format_error_response(
                e,
                ErrorFormat.MCP_TOOL,
                include_stacktrace=self.app_config.expose_sensitive_info,
                context={"tool": request.name}
            )

    def is_tool_registered(self, tool_name: str) -> bool:
        """Check if a tool has a registered handler."""
        return tool_name in self.handlers
