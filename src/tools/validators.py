"""Input validators for security and data integrity.

The statement checks are a heuristic layer, not a SQL parser: phrase and
pattern matching accept that sufficiently obfuscated injections pass and that
a denylisted phrase inside a string literal is rejected.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Pattern, Tuple

from pydantic import BaseModel

from database.normalizer import classify_operation
from database.results import OperationKind

POTENTIAL_INJECTION = "potential injection"


class ValidationVerdict(BaseModel):
    valid: bool
    reason: str = ""
    operation_kind: OperationKind = OperationKind.UNKNOWN


DEFAULT_DENYLIST: Tuple[str, ...] = (
    # schema destruction / alteration
    'drop table', 'drop database', 'truncate',
    'alter table', 'create database', 'drop index',
    # privileges
    'create user', 'drop user', 'grant', 'revoke',
    # file system primitives
    'load_file', 'into outfile', 'into dumpfile',
    # stored procedures / raw execute
    'exec', 'execute', 'sp_', 'xp_',
)

DEFAULT_INJECTION_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r"union\s+select", re.IGNORECASE),
    re.compile(r";\s*(drop|delete|update|insert)", re.IGNORECASE),
    re.compile(r"--\s*$"),
    re.compile(r"/\*.*?\*/", re.DOTALL),
    re.compile(r"'.*?'.*?or.*?'.*?'=", re.IGNORECASE),
    re.compile(r'".*?".*?or.*?".*?"=', re.IGNORECASE),
)


@dataclass(frozen=True)
class SecurityPolicy:
    """Phrase matchers plus pattern matchers applied to every statement."""

    denylist: Tuple[str, ...] = DEFAULT_DENYLIST
    injection_patterns: Tuple[Pattern, ...] = field(default=DEFAULT_INJECTION_PATTERNS)

    def extend(self, denylist=(), injection_patterns=()) -> "SecurityPolicy":
        """Return a new policy with extra phrases and patterns appended."""
        return SecurityPolicy(
            denylist=self.denylist + tuple(p.lower() for p in denylist),
            injection_patterns=self.injection_patterns + tuple(
                re.compile(p, re.IGNORECASE) if isinstance(p, str) else p
                for p in injection_patterns
            ),
        )


DEFAULT_POLICY = SecurityPolicy()


class StatementValidator:
    """SQL statement security validator."""

    def __init__(self, policy: SecurityPolicy = DEFAULT_POLICY):
        self.policy = policy

    def validate(self, statement: Any) -> ValidationVerdict:
        """
        Validate that a SQL statement is safe to execute.

        Steps, stopping at the first failure: non-empty text, denylist scan,
        operation classification (informational only), injection heuristics.
        """
        if not isinstance(statement, str) or not statement.strip():
            return ValidationVerdict(valid=False, reason="Statement must be a non-empty string")

        clean = statement.strip().lower()

        for phrase in self.policy.denylist:
            if phrase in clean:
                return ValidationVerdict(valid=False, reason=f"Dangerous operation detected: {phrase}")

        operation_kind = classify_operation(clean)

        for pattern in self.policy.injection_patterns:
            if pattern.search(clean):
                return ValidationVerdict(
                    valid=False, reason=POTENTIAL_INJECTION, operation_kind=operation_kind
                )

        return ValidationVerdict(valid=True, operation_kind=operation_kind)

    @staticmethod
    def validate_parameters(params: Any) -> ValidationVerdict:
        """
        Validate statement parameters.

        Args:
            params: List (or tuple) of bound values

        Returns:
            Invalid verdict naming the 1-indexed position and type of the first
            value that is not a string, number, boolean or None.
        """
        if not isinstance(params, (list, tuple)):
            return ValidationVerdict(valid=False, reason="Parameters must be an array")

        for position, value in enumerate(params, start=1):
            if value is None or isinstance(value, (str, bool, int, float)):
                continue
            return ValidationVerdict(
                valid=False,
                reason=f"Parameter {position} has invalid type: {describe_type(value)}"
            )

        return ValidationVerdict(valid=True)


def describe_type(value: Any) -> str:
    """Name a value's type the way the JSON-facing callers see it."""
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (list, tuple, set)):
        return "array"
    return type(value).__name__


class InputValidator:
    """General input validation utilities."""

    @staticmethod
    def validate_project_id(project_id: Any) -> Tuple[bool, str]:
        """
        Validate an Apifox project id.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if project_id is None or str(project_id).strip() == "":
            return False, "Project ID cannot be empty"

        if not re.match(r'^[\w\-]+$', str(project_id)):
            return False, "Invalid project ID format (only alphanumeric, _ and - allowed)"

        return True, ""
