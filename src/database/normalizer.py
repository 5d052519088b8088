"""Normalization of raw driver outcomes into ExecutionResult records."""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel
from pymysql.constants import FIELD_TYPE

from database.results import ExecutionResult, FieldInfo, OperationKind

logger = logging.getLogger(__name__)

_LEADING_KEYWORD_RE = re.compile(r"^\s*(select|insert|update|delete|show)\b", re.IGNORECASE)

# MySQL type code -> type name (first definition wins over aliases such as CHAR)
_FIELD_TYPE_NAMES: Dict[int, str] = {}
for _name, _code in vars(FIELD_TYPE).items():
    if _name.isupper() and isinstance(_code, int):
        _FIELD_TYPE_NAMES.setdefault(_code, _name)


def classify_operation(statement: str) -> OperationKind:
    """Classify a statement by its leading keyword."""
    if not isinstance(statement, str):
        return OperationKind.UNKNOWN
    match = _LEADING_KEYWORD_RE.match(statement)
    if not match:
        return OperationKind.UNKNOWN
    return OperationKind(match.group(1).lower())


class DriverOutcome(BaseModel):
    """What the driver reported for one executed statement.

    ``description`` is the DB-API cursor description; it is None for
    statements that produce no result set.
    """

    rows: Optional[List[Dict[str, Any]]] = None
    description: Optional[List[Any]] = None
    rowcount: int = -1
    lastrowid: Optional[int] = None


def extract_fields(description: Optional[Sequence[Any]]) -> List[FieldInfo]:
    """Turn a DB-API description into field metadata; missing data yields []."""
    fields = []
    for column in description or []:
        try:
            name = column[0]
            type_code = column[1] if len(column) > 1 else None
            length = column[3] if len(column) > 3 else None
        except (TypeError, IndexError):
            logger.debug(f"Skipping unreadable column description: {column!r}")
            continue
        fields.append(FieldInfo(
            name=str(name),
            type=_FIELD_TYPE_NAMES.get(type_code, str(type_code)) if type_code is not None else None,
            length=length if isinstance(length, int) else None
        ))
    return fields


def normalize(
    outcome: DriverOutcome,
    timing_ms: int,
    operation_kind: OperationKind = OperationKind.UNKNOWN
) -> ExecutionResult:
    """Map a driver outcome onto the uniform ExecutionResult shape.

    Result sets report their row count; statements without a result set report
    the affected-row count and, when the driver has one, the generated id.
    """
    if outcome.description is not None:
        rows = list(outcome.rows or [])
        return ExecutionResult(
            success=True,
            operation_kind=operation_kind,
            rows=rows,
            fields=extract_fields(outcome.description),
            row_count=len(rows),
            insert_id=None,
            execution_time_ms=timing_ms
        )

    return ExecutionResult(
        success=True,
        operation_kind=operation_kind,
        rows=[],
        fields=[],
        row_count=max(outcome.rowcount or 0, 0),
        insert_id=outcome.lastrowid or None,
        execution_time_ms=timing_ms
    )
