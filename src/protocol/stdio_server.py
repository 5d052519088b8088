"""STDIO transport MCP server."""

import logging
from typing import Optional
from mcp.server.stdio import stdio_server

from core.config import AppConfig
from protocol.base_server import BaseMCPServer

logger = logging.getLogger(__name__)


class StdioMCPServer(BaseMCPServer):
    """MCP server using STDIO transport."""

    async def run(self):
        """Run the STDIO MCP server."""
        logger.info("Starting STDIO MCP server")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options()
            )


async def run_stdio_server(app_config: Optional[AppConfig] = None):
    """Run STDIO MCP server until the client disconnects.

    Args:
        app_config: App configuration (optional, defaults to env)
    """
    server = StdioMCPServer(app_config=app_config)
    try:
        await server.run()
    finally:
        await server.shutdown()
        logger.info("STDIO MCP server stopped")
