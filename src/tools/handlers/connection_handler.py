"""Connection status and teardown handler."""

import logging
from typing import Any, Dict, List
from mcp.types import CallToolRequest

from tools.base import ToolHandler
from tools.definitions import make_tool_name, TOOL_CONNECTION_STATUS, TOOL_DISCONNECT_MYSQL

logger = logging.getLogger(__name__)


class ConnectionHandler(ToolHandler):
    """Handler for the session lifecycle tools."""

    @property
    def tool_names(self) -> List[str]:
        return [
            make_tool_name(TOOL_CONNECTION_STATUS),
            make_tool_name(TOOL_DISCONNECT_MYSQL),
        ]

    async def handle(self, request: CallToolRequest, gateway: Any) -> Dict[str, Any]:
        if request.name == make_tool_name(TOOL_CONNECTION_STATUS):
            return self._handle_status(gateway)
        elif request.name == make_tool_name(TOOL_DISCONNECT_MYSQL):
            was_connected = gateway.is_connected
            await gateway.close()
            if was_connected:
                return self._success_response("✓ Database connection closed")
            return self._success_response("No active database connection")
        else:
            return self._error_response(f"Unknown connection operation: {request.name}")

    def _handle_status(self, gateway: Any) -> Dict[str, Any]:
        status = gateway.status()
        if not status.connected:
            return self._success_response("Database connection status: disconnected")

        output = "Database connection status: connected\n"
        output += f"Host: {status.host}\n"
        output += f"Port: {status.port}\n"
        output += f"User: {status.user}\n"
        output += f"Database: {status.database}\n"
        return self._success_response(output)
