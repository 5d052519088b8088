"""OpenAPI import/export handlers (Apifox)."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from mcp.types import CallToolRequest

import httpx

from core.config import AppConfig
from core.error_handling import mcp_text
from core.exceptions import ApifoxAPIError
from tools.apifox import ApifoxClient
from tools.base import ToolHandler
from tools.definitions import make_tool_name, TOOL_IMPORT_OPENAPI, TOOL_EXPORT_OPENAPI
from tools.validators import InputValidator

logger = logging.getLogger(__name__)


def find_json_files(directory: str) -> List[str]:
    """Recursively collect ``*.json`` files; unreadable directories are skipped."""

    def _on_error(error: OSError):
        logger.warning(f"Cannot access directory {error.filename}: {error.strerror}")

    json_files = []
    for root, dirs, files in os.walk(directory, onerror=_on_error):
        dirs.sort()
        for name in sorted(files):
            if name.lower().endswith(".json"):
                json_files.append(os.path.join(root, name))
    return json_files


class OpenAPIHandler(ToolHandler):
    """Handler for OpenAPI import and export."""

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(app_config)
        self.transport = transport

    @property
    def tool_names(self) -> List[str]:
        return [
            make_tool_name(TOOL_IMPORT_OPENAPI),
            make_tool_name(TOOL_EXPORT_OPENAPI)
        ]

    async def handle(self, request: CallToolRequest, gateway: Any) -> Dict[str, Any]:
        arguments = request.arguments or {}

        credentials, error = self._resolve_credentials(arguments)
        if error:
            return self._error_response(error)
        project_id, api_key = credentials
        client = ApifoxClient(api_key, self.app_config.apifox, transport=self.transport)

        if request.name == make_tool_name(TOOL_IMPORT_OPENAPI):
            return await self._handle_import(arguments, project_id, client)
        elif request.name == make_tool_name(TOOL_EXPORT_OPENAPI):
            return await self._handle_export(arguments, project_id, client)
        else:
            return self._error_response(f"Unknown OpenAPI operation: {request.name}")

    def _resolve_credentials(self, arguments: Dict[str, Any]) -> Tuple[Optional[Tuple[str, str]], Optional[str]]:
        project_id = arguments.get("projectId") or self.app_config.apifox.default_project_id
        api_key = arguments.get("apiKey") or self.app_config.apifox.api_key

        is_valid, error_msg = InputValidator.validate_project_id(project_id)
        if not is_valid:
            return None, error_msg
        if not api_key:
            return None, "Apifox API key is required (apiKey argument or APIFOX_API_KEY)"
        return (str(project_id), str(api_key)), None

    async def _handle_import(self, arguments: Dict[str, Any], project_id: str, client: ApifoxClient) -> Dict[str, Any]:
        source = arguments.get("input")
        if not isinstance(source, str) or not source.strip():
            return self._error_response("Input parameter is required")

        path = Path(source)
        try:
            is_file = path.is_file()
            is_dir = path.is_dir()
        except (OSError, ValueError):
            # Raw document text is rarely a valid path
            is_file = is_dir = False

        if is_file:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                return self._error_response(f"Failed to read file {source}: {e}")
            try:
                await client.import_openapi(project_id, content)
            except ApifoxAPIError as e:
                return self._api_error_response(e)
            return self._success_response(f"✓ File {source} imported successfully")

        if is_dir:
            return await self._import_directory(source, project_id, client)

        try:
            await client.import_openapi(project_id, source)
        except ApifoxAPIError as e:
            return self._api_error_response(e)
        return self._success_response("✓ Import succeeded")

    async def _import_directory(self, directory: str, project_id: str, client: ApifoxClient) -> Dict[str, Any]:
        json_files = find_json_files(directory)
        if not json_files:
            return self._error_response(f"No json files found in {directory} or its subdirectories")

        imported = []
        failed = []
        for file_path in json_files:
            relative = os.path.relpath(file_path, directory)
            try:
                content = Path(file_path).read_text(encoding="utf-8")
                await client.import_openapi(project_id, content)
                imported.append(relative)
            except (OSError, UnicodeDecodeError, ApifoxAPIError) as e:
                message = e.message if isinstance(e, ApifoxAPIError) else str(e)
                logger.warning(f"Import of {file_path} failed: {message}")
                failed.append((relative, file_path, message))

        output = "Batch import finished:\n"
        if imported:
            output += "Imported files:\n"
            for relative in imported:
                output += f"✓ {relative}\n"
            output += "\n"
        if failed:
            output += "Failed files:\n"
            for relative, file_path, message in failed:
                output += f"✗ {relative} ({file_path}): {message}\n"

        return mcp_text(output, is_error=bool(failed))

    async def _handle_export(self, arguments: Dict[str, Any], project_id: str, client: ApifoxClient) -> Dict[str, Any]:
        output_path = arguments.get("outputPath")
        if not isinstance(output_path, str) or not output_path.strip():
            return self._error_response("outputPath parameter is required")

        oas_version = arguments.get("oasVersion") or "3.1"
        export_format = (arguments.get("exportFormat") or "JSON").upper()

        try:
            document = await client.export_openapi(project_id, oas_version, export_format)
        except ApifoxAPIError as e:
            return self._api_error_response(e, action="export")

        if export_format == "JSON":
            try:
                document = json.dumps(json.loads(document), indent=2, ensure_ascii=False)
            except ValueError:
                logger.warning("Exported document is not valid JSON, writing it unchanged")

        target = Path(output_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(document, encoding="utf-8")
        except OSError as e:
            return self._error_response(f"Failed to write {output_path}: {e}")

        logger.info(f"Exported OpenAPI document for project {project_id} to {target}")
        output = "✓ OpenAPI document exported\n\n"
        output += f"File: {target.absolute()}\n"
        output += f"Format: OpenAPI {oas_version} ({export_format})\n"
        output += f"Size: {target.stat().st_size} bytes\n"
        return self._success_response(output)

    def _api_error_response(self, error: ApifoxAPIError, action: str = "import") -> Dict[str, Any]:
        details = json.dumps(error.payload, indent=2, ensure_ascii=False, default=str) if error.payload else "{}"
        return self._error_response(f"OpenAPI {action} failed: {error.message}\nDetails:\n{details}")
