"""Custom exceptions for the MCP MySQL gateway."""


class MCPMySQLError(Exception):
    """Base exception for all gateway errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DescriptorParseError(MCPMySQLError):
    """Exception raised when a connection descriptor is malformed."""
    pass


class DatabaseConnectionError(MCPMySQLError):
    """Exception raised when pool construction or the liveness probe fails."""
    pass


class NotConnectedError(MCPMySQLError):
    """Exception raised when execute/describe is attempted without a session."""
    pass


class DriverError(MCPMySQLError):
    """Exception wrapping an error reported by the MySQL driver."""

    def __init__(self, message: str, code: int = None, state: str = None):
        super().__init__(message, {"code": code, "state": state})
        self.code = code
        self.state = state


class ToolExecutionError(MCPMySQLError):
    """Exception raised when tool execution fails."""
    pass


class ConfigurationError(MCPMySQLError):
    """Exception raised when configuration is invalid."""
    pass


class CurlParseError(MCPMySQLError):
    """Exception raised when a curl command cannot be parsed."""
    pass


class ApifoxAPIError(MCPMySQLError):
    """Exception raised when the Apifox API rejects a request."""

    def __init__(self, message: str, status_code: int = None, payload=None):
        super().__init__(message, {"status_code": status_code, "payload": payload})
        self.status_code = status_code
        self.payload = payload
