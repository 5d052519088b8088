"""Ad-hoc HTTP request handler driven by curl command lines."""

import logging
from typing import Any, Dict, List, Optional
from mcp.types import CallToolRequest

import httpx

from core.config import AppConfig
from core.exceptions import CurlParseError
from tools.base import ToolHandler
from tools.curl import parse_curl, pretty_body
from tools.definitions import make_tool_name, TOOL_HTTP_REQUEST

logger = logging.getLogger(__name__)


class HTTPRequestHandler(ToolHandler):
    """Handler for the http_request tool."""

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(app_config)
        self.transport = transport

    @property
    def tool_names(self) -> List[str]:
        return [make_tool_name(TOOL_HTTP_REQUEST)]

    async def handle(self, request: CallToolRequest, gateway: Any) -> Dict[str, Any]:
        arguments = request.arguments or {}

        try:
            curl_request = parse_curl(arguments.get("curl"))
        except CurlParseError as e:
            return self._error_response(f"curl parse failed: {e.message}")

        timeout = arguments.get("timeout") or self.app_config.http_tool.timeout
        try:
            timeout = float(timeout)
        except (TypeError, ValueError):
            return self._error_response(f"Invalid timeout: {arguments.get('timeout')}")

        logger.info(f"HTTP request: {curl_request.method} {curl_request.url}")
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                verify=curl_request.verify,
                follow_redirects=curl_request.follow_redirects,
                transport=self.transport
            ) as client:
                response = await client.request(
                    curl_request.method,
                    curl_request.url,
                    headers=curl_request.headers,
                    content=curl_request.data.encode("utf-8") if curl_request.data is not None else None,
                    auth=curl_request.auth
                )
        except httpx.TimeoutException:
            return self._error_response(f"Request timed out after {timeout}s: {curl_request.method} {curl_request.url}")
        except httpx.HTTPError as e:
            return self._error_response(f"Request failed: {type(e).__name__}: {e}")

        return self._format_response(curl_request.method, response)

    def _format_response(self, method: str, response: httpx.Response) -> Dict[str, Any]:
        max_chars = self.app_config.http_tool.max_body_chars

        output = f"{method} {response.request.url}\n"
        output += f"Status: {response.status_code} {response.reason_phrase}\n"
        output += "\nHeaders:\n"
        for name, value in response.headers.items():
            output += f"  {name}: {value}\n"

        body = pretty_body(response.text, response.headers.get("content-type", ""))
        if body:
            output += "\nBody:\n"
            if len(body) > max_chars:
                output += body[:max_chars]
                output += f"\n... truncated ({len(body) - max_chars} more characters)\n"
            else:
                output += body

        # 4xx/5xx are reported, not raised
        return self._success_response(output)
