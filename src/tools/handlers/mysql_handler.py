"""MySQL statement execution handler with security validation."""

import json
import logging
from typing import Any, Dict, List, Optional
from mcp.types import CallToolRequest

from core.config import AppConfig
from core.exceptions import DescriptorParseError
from database.descriptor import mask_descriptor, parse_descriptor
from database.results import ConnectResult, ErrorKind, ExecutionResult
from tools.base import ToolHandler
from tools.definitions import make_tool_name, TOOL_EXECUTE_MYSQL, TOOL_CONNECT_MYSQL, TOOL_EXECUTE_SQL
from tools.validators import StatementValidator

logger = logging.getLogger(__name__)

# Display limit for LLM context
MAX_ROWS_FOR_LLM = 200

_RETRYABLE_KINDS = (ErrorKind.CONNECTION, ErrorKind.NOT_CONNECTED)


class MySQLHandler(ToolHandler):
    """Handler for connecting and executing statements."""

    def __init__(self, app_config: Optional[AppConfig] = None, validator: Optional[StatementValidator] = None):
        super().__init__(app_config)
        self.validator = validator or StatementValidator()

    @property
    def tool_names(self) -> List[str]:
        return [
            make_tool_name(TOOL_EXECUTE_MYSQL),
            make_tool_name(TOOL_CONNECT_MYSQL),
            make_tool_name(TOOL_EXECUTE_SQL),
        ]

    async def handle(self, request: CallToolRequest, gateway: Any) -> Dict[str, Any]:
        arguments = request.arguments or {}

        if request.name == make_tool_name(TOOL_EXECUTE_MYSQL):
            return await self._handle_execute_mysql(arguments, gateway)
        elif request.name == make_tool_name(TOOL_CONNECT_MYSQL):
            return await self._handle_connect(arguments, gateway)
        elif request.name == make_tool_name(TOOL_EXECUTE_SQL):
            return await self._handle_execute_sql(arguments, gateway)
        else:
            return self._error_response(f"Unknown MySQL operation: {request.name}")

    def _check_statement(self, sql: Any, params: Any) -> Optional[Dict[str, Any]]:
        """Run the validation gate; returns an error envelope or None."""
        verdict = self.validator.validate(sql)
        if not verdict.valid:
            logger.warning(f"Statement blocked by security validation: {verdict.reason}")
            return self._error_response(f"SQL validation failed: {verdict.reason}")

        verdict = self.validator.validate_parameters(params)
        if not verdict.valid:
            logger.warning(f"Parameters rejected: {verdict.reason}")
            return self._error_response(f"Parameter validation failed: {verdict.reason}")

        return None

    async def _handle_execute_mysql(self, arguments: Dict[str, Any], gateway: Any) -> Dict[str, Any]:
        """Validate everything up front, then connect-or-reuse and execute."""
        dsn = arguments.get("dsn")
        sql = arguments.get("sql")
        params = arguments.get("params")
        if params is None:
            params = []

        try:
            descriptor = parse_descriptor(dsn)
        except DescriptorParseError as e:
            return self._error_response(f"Connection parameter validation failed: {e.message}")

        rejection = self._check_statement(sql, params)
        if rejection:
            return rejection

        attempts = 1 + max(self.app_config.pool.connect_retries, 0)
        for attempt in range(1, attempts + 1):
            connect_result = await gateway.connect(descriptor)
            if not connect_result.success:
                if attempt < attempts:
                    logger.warning(f"Connect attempt {attempt}/{attempts} failed: {connect_result.message}")
                    continue
                return self._error_response(f"Database connection failed: {connect_result.message}")

            result = await gateway.execute(sql, params)
            if not result.success and result.error.kind in _RETRYABLE_KINDS and attempt < attempts:
                logger.warning(f"Execute attempt {attempt}/{attempts} lost its connection: {result.error.message}")
                continue
            return self._format_execution_result(result, descriptor.masked())

    async def _handle_connect(self, arguments: Dict[str, Any], gateway: Any) -> Dict[str, Any]:
        dsn = arguments.get("dsn")
        try:
            descriptor = parse_descriptor(dsn)
        except DescriptorParseError as e:
            return self._error_response(f"Connection parameter validation failed: {e.message}")

        result = await gateway.connect(descriptor)
        return self._format_connect_result(result, mask_descriptor(dsn))

    async def _handle_execute_sql(self, arguments: Dict[str, Any], gateway: Any) -> Dict[str, Any]:
        sql = arguments.get("sql")
        params = arguments.get("params")
        if params is None:
            params = []

        rejection = self._check_statement(sql, params)
        if rejection:
            return rejection

        result = await gateway.execute(sql, params)
        return self._format_execution_result(result)

    def _format_connect_result(self, result: ConnectResult, masked_dsn: str) -> Dict[str, Any]:
        if not result.success:
            return self._error_response(f"Database connection failed: {result.message}")

        if result.already_connected:
            output = "✓ Already connected to the same database\n"
        else:
            output = "✓ Database connected\n"

        output += f"DSN: {masked_dsn}\n"
        info = result.descriptor or {}
        output += f"Host: {info.get('host')}\n"
        output += f"Port: {info.get('port')}\n"
        output += f"User: {info.get('user')}\n"
        output += f"Database: {info.get('database')}\n"
        return self._success_response(output)

    def _format_execution_result(self, result: ExecutionResult, masked_dsn: Optional[str] = None) -> Dict[str, Any]:
        """Format execution result for MCP response."""
        if not result.success:
            error = result.error
            if error.kind == ErrorKind.NOT_CONNECTED:
                return self._error_response(
                    f"{error.message}; call {make_tool_name(TOOL_CONNECT_MYSQL)} first"
                )
            output = f"SQL execution failed: {error.message}"
            if error.driver_error_code is not None:
                output += f"\nError code: {error.driver_error_code}"
            if error.driver_state:
                output += f"\nSQL state: {error.driver_state}"
            return self._error_response(output)

        output = "✓ SQL executed successfully\n"
        if masked_dsn:
            output += f"DSN: {masked_dsn}\n"
        output += f"Operation: {result.operation_kind.value}\n"
        output += f"Execution time: {result.execution_time_ms}ms\n"
        output += f"Rows: {result.row_count}\n"

        if result.insert_id:
            output += f"Insert ID: {result.insert_id}\n"

        if result.fields:
            output += f"Columns: {', '.join(f.name for f in result.fields)}\n"

        if result.rows:
            shown = result.rows[:MAX_ROWS_FOR_LLM]
            output += "\nResult:\n"
            output += json.dumps(shown, indent=2, ensure_ascii=False, default=str)
            if len(result.rows) > MAX_ROWS_FOR_LLM:
                output += f"\n... and {len(result.rows) - MAX_ROWS_FOR_LLM} more rows\n"

        return self._success_response(output)
