"""Core modules for the MCP MySQL gateway."""

from .exceptions import (
    MCPMySQLError,
    DescriptorParseError,
    DatabaseConnectionError,
    NotConnectedError,
    DriverError,
    ToolExecutionError,
    ConfigurationError,
    CurlParseError,
    ApifoxAPIError
)

__all__ = [
    "MCPMySQLError",
    "DescriptorParseError",
    "DatabaseConnectionError",
    "NotConnectedError",
    "DriverError",
    "ToolExecutionError",
    "ConfigurationError",
    "CurlParseError",
    "ApifoxAPIError"
]
