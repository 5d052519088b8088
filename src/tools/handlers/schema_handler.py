"""Schema description handler."""

import logging
from typing import Any, Dict, List
from mcp.types import CallToolRequest

from database.results import ErrorKind
from tools.base import ToolHandler
from tools.definitions import make_tool_name, TOOL_TABLES_INFO, TOOL_CONNECT_MYSQL

logger = logging.getLogger(__name__)


class SchemaHandler(ToolHandler):
    """Handler for listing tables and their columns."""

    @property
    def tool_names(self) -> List[str]:
        return [make_tool_name(TOOL_TABLES_INFO)]

    async def handle(self, request: CallToolRequest, gateway: Any) -> Dict[str, Any]:
        result = await gateway.describe_schema()

        if not result.success:
            message = result.error.message if result.error else "Unknown error"
            if result.error and result.error.kind == ErrorKind.NOT_CONNECTED:
                message += f"; call {make_tool_name(TOOL_CONNECT_MYSQL)} first"
            return self._error_response(f"Failed to get table info: {message}")

        if not result.tables:
            return self._success_response("No tables found in the current database")

        output = f"Database tables ({len(result.tables)}):\n\n"
        for table in result.tables:
            output += f"Table: {table.name}\n"
            output += "Columns:\n"
            for column in table.columns:
                nullable = "NOT NULL" if column.get("Null") == "NO" else "NULL"
                key = column.get("Key") or ""
                output += f"  - {column.get('Field')} ({column.get('Type')}) {nullable} {key}".rstrip() + "\n"
            output += "\n"

        return self._success_response(output)
