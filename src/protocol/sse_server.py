"""SSE/HTTP transport MCP server.

Provides MCP server functionality over HTTP Server-Sent Events (SSE) transport.
"""

import logging
import os
from typing import Optional, List
from mcp.server.sse import SseServerTransport

from core.config import get_http_config
from protocol.base_server import BaseMCPServer

logger = logging.getLogger(__name__)


def get_allowed_origins() -> List[str]:
    """Read CORS origins from CORS_ALLOWED_ORIGINS, with development defaults."""
    cors_env = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if cors_env:
        return [origin.strip() for origin in cors_env.split(",") if origin.strip()]

    environment = os.getenv("ENVIRONMENT", "development")
    if environment == "development":
        return ["http://localhost:3000", "http://localhost:8000"]

    logger.warning("Production environment: CORS_ALLOWED_ORIGINS not set, CORS disabled")
    return []


class SseMCPServer(BaseMCPServer):
    """MCP server using HTTP/SSE transport."""

    def __init__(self, *args, messages_path: str = "/messages", **kwargs):
        """Initialize SSE MCP server.

        Args:
            messages_path: Path for SSE messages endpoint (relative to mount point)
            *args, **kwargs: Forwarded to BaseMCPServer (gateway, app_config, registry)
        """
        super().__init__(*args, **kwargs)
        self.sse_transport = SseServerTransport(messages_path)
        logger.info(f"SSE MCP server initialized with messages path: {messages_path}")

    async def handle_sse_connection(self, scope, receive, send):
        """Handle SSE connection."""
        logger.info("Handling SSE connection")
        async with self.sse_transport.connect_sse(scope, receive, send) as streams:
            await self.server.run(
                streams[0],
                streams[1],
                self.server.create_initialization_options()
            )

    async def handle_messages(self, scope, receive, send):
        """Handle MCP messages endpoint."""
        logger.debug("Handling MCP messages")
        await self.sse_transport.handle_post_message(scope, receive, send)

    def create_asgi_app(self, allowed_origins: Optional[List[str]] = None):
        """Create ASGI application for SSE MCP with CORS support.

        Args:
            allowed_origins: List of allowed origins for CORS. If None, reads from env.

        Returns:
            ASGI callable that handles both SSE connection and messages with CORS
        """
        if allowed_origins is None:
            allowed_origins = get_allowed_origins()

        async def app(scope, receive, send):
            path = scope.get("path", "/")
            method = scope.get("method", "GET")

            logger.debug(f"SSE MCP app: method={method}, path={path}")

            if method == "OPTIONS":
                await self._handle_cors_preflight(scope, send, allowed_origins)
                return

            async def cors_send(message):
                if message['type'] == 'http.response.start':
                    headers = list(message.get('headers', []))
                    origin = self._get_origin_from_scope(scope)
                    if origin and (origin in allowed_origins or "*" in allowed_origins):
                        headers.append((b'access-control-allow-origin', origin.encode()))
                        headers.append((b'access-control-allow-credentials', b'true'))
                    message['headers'] = headers
                await send(message)

            # SSE connection endpoint (mounted at /sse/)
            if method == "GET" and path.endswith("/"):
                await self.handle_sse_connection(scope, receive, cors_send)
            # Messages endpoint (/sse/messages)
            elif method == "POST" and "messages" in path:
                await self.handle_messages(scope, receive, cors_send)
            else:
                logger.warning(f"Unknown path in SSE MCP app: {method} {path}")
                await cors_send({
                    'type': 'http.response.start',
                    'status': 404,
                    'headers': [(b'content-type', b'text/plain')],
                })
                await cors_send({
                    'type': 'http.response.body',
                    'body': b'Not Found',
                })

        return app

    def _get_origin_from_scope(self, scope) -> Optional[str]:
        """Extract origin from ASGI scope headers."""
        headers = dict(scope.get('headers', []))
        origin = headers.get(b'origin')
        return origin.decode() if origin else None

    async def _handle_cors_preflight(self, scope, send, allowed_origins: List[str]):
        """Handle CORS preflight (OPTIONS) requests."""
        origin = self._get_origin_from_scope(scope)
        http_config = get_http_config()

        headers = [
            (b'content-type', b'text/plain'),
            (b'content-length', b'0'),
        ]

        if origin and (origin in allowed_origins or "*" in allowed_origins):
            headers.extend([
                (b'access-control-allow-origin', origin.encode()),
                (b'access-control-allow-methods', b'GET, POST, OPTIONS'),
                (b'access-control-allow-headers', b'Content-Type, Authorization'),
                (b'access-control-allow-credentials', b'true'),
                (b'access-control-max-age', str(http_config.cors_preflight_max_age).encode()),
            ])

        await send({
            'type': 'http.response.start',
            'status': 200,
            'headers': headers,
        })
        await send({
            'type': 'http.response.body',
            'body': b'',
        })
