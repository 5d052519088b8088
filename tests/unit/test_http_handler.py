"""
http_request tool tests (httpx.MockTransport)
"""

import httpx
import pytest

from core.config import HTTPToolConfig
from protocol.base_server import ToolCall
from tools.handlers.http_handler import HTTPRequestHandler


def make_handler(app_config, responder, max_body_chars=20000):
    config = app_config.model_copy(update={"http_tool": HTTPToolConfig(timeout=5, max_body_chars=max_body_chars)})
    return HTTPRequestHandler(config, transport=httpx.MockTransport(responder))


class TestHTTPRequestHandler:

    @pytest.mark.asyncio
    async def test_json_response(self, app_config):
        seen = []

        def responder(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        handler = make_handler(app_config, responder)
        envelope = await handler.handle(
            ToolCall("http_request", {"curl": "curl -X POST https://svc.test/items -H 'X-Key: 1' --json '{\"a\":1}'"}),
            None
        )

        text = envelope["content"][0]["text"]
        assert envelope["isError"] is False
        assert "POST https://svc.test/items" in text
        assert "Status: 200 OK" in text
        assert '"ok": true' in text
        assert seen[0].headers["X-Key"] == "1"
        assert seen[0].content == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_error_status_is_reported(self, app_config):
        handler = make_handler(app_config, lambda request: httpx.Response(404, text="missing"))

        envelope = await handler.handle(ToolCall("http_request", {"curl": "curl https://svc.test/nope"}), None)

        assert envelope["isError"] is False
        assert "Status: 404 Not Found" in envelope["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_body_truncated(self, app_config):
        handler = make_handler(app_config, lambda request: httpx.Response(200, text="x" * 50), max_body_chars=10)

        envelope = await handler.handle(ToolCall("http_request", {"curl": "curl https://svc.test/big"}), None)

        assert "truncated (40 more characters)" in envelope["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_basic_auth(self, app_config):
        seen = []

        def responder(request):
            seen.append(request)
            return httpx.Response(204)

        handler = make_handler(app_config, responder)
        await handler.handle(ToolCall("http_request", {"curl": "curl -u admin:pw https://svc.test/"}), None)

        assert seen[0].headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_parse_error(self, app_config):
        handler = make_handler(app_config, lambda request: httpx.Response(200))

        envelope = await handler.handle(ToolCall("http_request", {"curl": "wget https://svc.test/"}), None)

        assert envelope["isError"] is True
        assert "curl parse failed" in envelope["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_transport_error(self, app_config):
        def responder(request):
            raise httpx.ConnectError("connection refused", request=request)

        handler = make_handler(app_config, responder)
        envelope = await handler.handle(ToolCall("http_request", {"curl": "curl https://svc.test/"}), None)

        assert envelope["isError"] is True
        assert "ConnectError" in envelope["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_timeout(self, app_config):
        def responder(request):
            raise httpx.ReadTimeout("slow", request=request)

        handler = make_handler(app_config, responder)
        envelope = await handler.handle(
            ToolCall("http_request", {"curl": "curl https://svc.test/", "timeout": 2}), None
        )

        assert envelope["isError"] is True
        assert "timed out after 2.0s" in envelope["content"][0]["text"]
