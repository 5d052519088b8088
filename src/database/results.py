"""Result records returned by the connection gateway.

Every public gateway operation returns one of these records instead of raising,
so callers always handle both the success and the failure variant.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OperationKind(str, Enum):
    """Coarse classification of a statement by its leading keyword."""
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    SHOW = "show"
    UNKNOWN = "unknown"


class ErrorKind(str, Enum):
    """Failure categories reported by the gateway."""
    PARSE = "parse"
    VALIDATION = "validation"
    CONNECTION = "connection"
    NOT_CONNECTED = "not_connected"
    DRIVER = "driver"
    INTERNAL = "internal"


class ErrorInfo(BaseModel):
    kind: ErrorKind
    message: str
    driver_error_code: Optional[int] = None
    driver_state: Optional[str] = None


class FieldInfo(BaseModel):
    name: str
    type: Optional[str] = None
    length: Optional[int] = None


class ExecutionResult(BaseModel):
    """Uniform outcome of a single statement execution."""

    success: bool
    operation_kind: OperationKind = OperationKind.UNKNOWN
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    fields: List[FieldInfo] = Field(default_factory=list)
    row_count: int = 0
    insert_id: Optional[int] = None
    execution_time_ms: int = 0
    error: Optional[ErrorInfo] = None

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        operation_kind: OperationKind = OperationKind.UNKNOWN,
        code: Optional[int] = None,
        state: Optional[str] = None,
        execution_time_ms: int = 0
    ) -> "ExecutionResult":
        return cls(
            success=False,
            operation_kind=operation_kind,
            execution_time_ms=execution_time_ms,
            error=ErrorInfo(kind=kind, message=message, driver_error_code=code, driver_state=state)
        )


class ConnectResult(BaseModel):
    """Outcome of a connect request."""

    success: bool
    already_connected: bool = False
    descriptor: Optional[Dict[str, Any]] = None
    message: str = ""
    error: Optional[ErrorInfo] = None

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ConnectResult":
        return cls(success=False, message=message, error=ErrorInfo(kind=kind, message=message))


class TableInfo(BaseModel):
    name: str
    columns: List[Dict[str, Any]] = Field(default_factory=list)


class TableInfoResult(BaseModel):
    """Outcome of a schema description request."""

    success: bool
    tables: List[TableInfo] = Field(default_factory=list)
    error: Optional[ErrorInfo] = None


class ConnectionStatus(BaseModel):
    connected: bool
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    database: Optional[str] = None
