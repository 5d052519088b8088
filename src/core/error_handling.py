"""Unified error handling for the REST API and MCP tool envelopes.

Every tool call ends in one of two envelope shapes, so callers never have to
inspect raw exceptions.
"""

import logging
import traceback
from typing import Any, Dict, Optional
from enum import Enum

from core.exceptions import MCPMySQLError

logger = logging.getLogger(__name__)


class ErrorFormat(Enum):
    """Error response format types."""
    REST_API = "rest_api"      # {"success": false, "error": "..."}
    MCP_TOOL = "mcp_tool"      # {"content": [{"type": "text", "text": "..."}], "isError": true}


def mcp_text(text: str, is_error: bool = False) -> Dict[str, Any]:
    """Build an MCP tool envelope holding a single text block."""
    return {
        "content": [{
            "type": "text",
            "text": text
        }],
        "isError": is_error
    }


def format_error_response(
    error: Exception,
    format_type: ErrorFormat = ErrorFormat.REST_API,
    include_stacktrace: bool = False,
    context: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Format error response in specified format.

    Args:
        error: The exception that occurred
        format_type: Desired response format (REST_API or MCP_TOOL)
        include_stacktrace: Whether to include stack trace (for debugging)
        context: Additional context information

    Returns:
        Formatted error response dict
    """
    error_message = str(error)
    error_type = type(error).__name__

    if format_type == ErrorFormat.REST_API:
        response = {
            "success": False,
            "error": error_message,
            "error_type": error_type
        }

        if isinstance(error, MCPMySQLError) and error.details:
            response["details"] = error.details

        if context:
            response["context"] = context

        if include_stacktrace:
            response["stacktrace"] = traceback.format_exc()

    else:
        error_text = f"Error: {error_message}"

        if include_stacktrace:
            error_text += f"\n\nStack trace:\n{traceback.format_exc()}"

        if context:
            error_text += f"\n\nContext: {context}"

        response = mcp_text(error_text, is_error=True)

    logger.error(f"{error_type}: {error_message}", exc_info=include_stacktrace)

    return response
