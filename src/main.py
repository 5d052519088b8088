"""Unified entry point for the MCP MySQL gateway.

This module provides a single entry point that can run in either:
- STDIO mode: For use with MCP clients via stdio transport
- HTTP mode: For use with REST API and SSE MCP transport

Usage:
    # STDIO mode (default)
    python main.py

    # HTTP mode
    python main.py --http

    # HTTP mode with custom host/port
    python main.py --http --host 0.0.0.0 --port 8000
"""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

# Configure logging (stderr keeps the STDIO transport clean)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


async def run_stdio_mode():
    """Run MCP server in STDIO mode.

    This mode is used for direct MCP client communication via stdio transport.
    Typically used when the server is spawned as a subprocess by an MCP client.
    """
    logger.info("Starting MCP MySQL gateway in STDIO mode")

    from protocol.stdio_server import run_stdio_server
    try:
        await run_stdio_server()
    except Exception as e:
        logger.error(f"STDIO server error: {e}", exc_info=True)
        sys.exit(1)


def create_app(app_config=None, gateway=None):
    """Build the FastAPI application for HTTP mode.

    Args:
        app_config: AppConfig (defaults to env)
        gateway: ConnectionGateway shared by REST and SSE callers (created if omitted)

    Returns:
        FastAPI application with REST routes under /api/v1 and MCP SSE at /sse
    """
    from fastapi import FastAPI

    from core.config import AppConfig
    from api.middleware import setup_middleware
    from api.routes import router as api_router
    from protocol.sse_server import SseMCPServer

    app_config = app_config or AppConfig.from_env()
    mcp_sse_server = SseMCPServer(gateway=gateway, app_config=app_config, messages_path="/messages")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("HTTP server started")
        yield
        logger.info("Shutting down MCP MySQL gateway...")
        await mcp_sse_server.shutdown()
        logger.info("Graceful shutdown completed")

    app = FastAPI(
        title="MCP MySQL Gateway API",
        version=app_config.server_version,
        description="Model Context Protocol (MCP) MySQL gateway - tools & REST API",
        lifespan=lifespan
    )
    app.state.gateway = mcp_sse_server.gateway
    app.state.registry = mcp_sse_server.registry

    setup_middleware(app)

    app.include_router(api_router)
    logger.info("REST API routes registered")

    app.mount("/sse", mcp_sse_server.create_asgi_app())
    logger.info("MCP SSE server mounted at /sse/")

    @app.get("/")
    async def root():
        return {
            "name": app_config.server_name,
            "version": app_config.server_version,
            "modes": ["REST API", "MCP SSE"],
            "endpoints": {
                "api": "/api/v1",
                "health": "/api/v1/health",
                "tools": "/api/v1/tools",
                "mcp_sse": "/sse/",
                "docs": "/docs"
            }
        }

    return app


async def run_http_mode(host: str = "0.0.0.0", port: int = 8000):
    """Run MCP server in HTTP mode with REST API and SSE support.

    Args:
        host: Host address to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8000)
    """
    logger.info(f"Starting MCP MySQL gateway in HTTP mode on {host}:{port}")

    import uvicorn

    app = create_app()

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info"
    )
    server = uvicorn.Server(config)

    try:
        await server.serve()
    except Exception as e:
        logger.error(f"HTTP server error: {e}", exc_info=True)
        sys.exit(1)


def main(argv: Optional[list] = None):
    """Main entry point with argument parsing."""
    import argparse

    parser = argparse.ArgumentParser(
        description="MCP MySQL gateway - Unified Entry Point"
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Run in HTTP mode (default: STDIO mode)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address for HTTP mode (default: from HTTP_HOST env or 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for HTTP mode (default: from HTTP_PORT env or 8000)"
    )

    args = parser.parse_args(argv)

    if args.http:
        host = args.host or os.getenv("HTTP_HOST", "0.0.0.0")
        port = args.port or int(os.getenv("HTTP_PORT", "8000"))
        asyncio.run(run_http_mode(host, port))
    else:
        asyncio.run(run_stdio_mode())


if __name__ == "__main__":
    main()
