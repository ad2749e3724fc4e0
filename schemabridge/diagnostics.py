"""Diagnostics and the error taxonomy shared by both generation directions.

Per-table and per-field problems are recorded as Diagnostic values and
returned alongside partial output. Only the fatal kinds are raised, and
each raised error carries the Diagnostic that describes it so the pipeline
can report it next to the non-fatal ones.
"""

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """How a diagnostic affects the table it belongs to."""

    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(Enum):
    """Known problem kinds."""

    INTROSPECTION_UNAVAILABLE = "IntrospectionUnavailable"
    UNSUPPORTED_RAW_TYPE = "UnsupportedRawType"
    MISSING_TABLE_ANNOTATION = "MissingTableAnnotation"
    MALFORMED_FIELD_ANNOTATION = "MalformedFieldAnnotation"
    AMBIGUOUS_SOFT_DELETE_COLUMN = "AmbiguousSoftDeleteColumn"
    MISSING_PRIMARY_KEY = "MissingPrimaryKey"
    UNKNOWN_DIALECT_POLICY = "UnknownDialectPolicy"
    SCHEMA_INVARIANT = "SchemaInvariant"
    UNKNOWN_SOFT_DELETE_OVERRIDE = "UnknownSoftDeleteOverride"


@dataclass(frozen=True)
class Diagnostic:
    """A single recorded problem."""

    code: DiagnosticCode
    severity: Severity
    message: str
    table: str | None = None
    column: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def location(self) -> str:
        if self.table and self.column:
            return f"{self.table}.{self.column}"
        return self.table or self.column or "-"

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.location()}: {self.message}"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
            "table": self.table,
            "column": self.column,
        }


def warning(
    code: DiagnosticCode, message: str, table: str | None = None, column: str | None = None
) -> Diagnostic:
    """Build a warning-level diagnostic."""
    return Diagnostic(code, Severity.WARNING, message, table, column)


def error(
    code: DiagnosticCode, message: str, table: str | None = None, column: str | None = None
) -> Diagnostic:
    """Build an error-level diagnostic."""
    return Diagnostic(code, Severity.ERROR, message, table, column)


class SchemaBridgeError(Exception):
    """Base class for fatal, per-table failures.

    Attributes:
        diagnostic: The error-level diagnostic describing the failure
    """

    code = DiagnosticCode.SCHEMA_INVARIANT

    def __init__(self, message: str, table: str | None = None, column: str | None = None):
        super().__init__(message)
        self.diagnostic = error(self.code, message, table, column)


class IntrospectionUnavailable(SchemaBridgeError):
    """The introspection collaborator could not describe a table."""

    code = DiagnosticCode.INTROSPECTION_UNAVAILABLE


class MissingTableAnnotation(SchemaBridgeError):
    """A model definition has no usable table-level annotation."""

    code = DiagnosticCode.MISSING_TABLE_ANNOTATION


class AmbiguousSoftDeleteColumn(SchemaBridgeError):
    """More than one column qualifies as the soft-delete marker."""

    code = DiagnosticCode.AMBIGUOUS_SOFT_DELETE_COLUMN


class UnknownDialectPolicy(SchemaBridgeError):
    """A dialect or (type, dialect) pair has no policy entry."""

    code = DiagnosticCode.UNKNOWN_DIALECT_POLICY


class SchemaInvariantError(SchemaBridgeError):
    """A TableSpec violates one of its structural invariants."""

    code = DiagnosticCode.SCHEMA_INVARIANT
