"""Bidirectional mapping between raw dialect type tokens and ScalarType.

Forward mapping (raw token -> ScalarType) is used when building a
TableSpec from introspection rows. Reverse mapping (ScalarType -> DDL
token) is used by the SQL emitter. The reverse table is exhaustive over
every (ScalarType, Dialect) pair and is verified at import time.
"""

import re
from dataclasses import dataclass

from schemabridge.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    UnknownDialectPolicy,
    warning,
)
from schemabridge.schema.dialects import AutoIncrementStyle, DialectPolicy, policy_for
from schemabridge.schema.spec import ColumnSpec
from schemabridge.schema.types import Dialect, ScalarType

# ============================================================================
# FORWARD: raw dialect token -> ScalarType
# ============================================================================

_ARGS_RE = re.compile(r"\(([^)]*)\)")
_DROPPED_QUALIFIERS = {"unsigned", "signed", "zerofill"}

_FORWARD = {
    "boolean": ScalarType.BOOL,
    "bool": ScalarType.BOOL,
    "tinyint": ScalarType.INT16,
    "smallint": ScalarType.INT16,
    "int2": ScalarType.INT16,
    "smallserial": ScalarType.INT16,
    "serial2": ScalarType.INT16,
    "int": ScalarType.INT32,
    "integer": ScalarType.INT32,
    "int4": ScalarType.INT32,
    "mediumint": ScalarType.INT32,
    "serial": ScalarType.INT32,
    "serial4": ScalarType.INT32,
    "bigint": ScalarType.INT64,
    "int8": ScalarType.INT64,
    "bigserial": ScalarType.INT64,
    "serial8": ScalarType.INT64,
    "double": ScalarType.FLOAT64,
    "double precision": ScalarType.FLOAT64,
    "float": ScalarType.FLOAT64,
    "float4": ScalarType.FLOAT64,
    "float8": ScalarType.FLOAT64,
    "real": ScalarType.FLOAT64,
    "decimal": ScalarType.FLOAT64,
    "numeric": ScalarType.FLOAT64,
    "money": ScalarType.FLOAT64,
    "varchar": ScalarType.TEXT,
    "character varying": ScalarType.TEXT,
    "nvarchar": ScalarType.TEXT,
    "char": ScalarType.TEXT,
    "character": ScalarType.TEXT,
    "nchar": ScalarType.TEXT,
    "text": ScalarType.TEXT,
    "tinytext": ScalarType.TEXT,
    "mediumtext": ScalarType.TEXT,
    "longtext": ScalarType.TEXT,
    "clob": ScalarType.TEXT,
    "enum": ScalarType.TEXT,
    "set": ScalarType.TEXT,
    "citext": ScalarType.TEXT,
    "string": ScalarType.TEXT,
    "date": ScalarType.DATE,
    "datetime": ScalarType.DATETIME_NAIVE,
    "timestamp": ScalarType.DATETIME_NAIVE,
    "timestamp without time zone": ScalarType.DATETIME_NAIVE,
    "timestamp with time zone": ScalarType.DATETIME_WITH_ZONE,
    "timestamptz": ScalarType.DATETIME_WITH_ZONE,
    "json": ScalarType.JSON,
    "jsonb": ScalarType.JSON,
    "blob": ScalarType.BINARY,
    "tinyblob": ScalarType.BINARY,
    "mediumblob": ScalarType.BINARY,
    "longblob": ScalarType.BINARY,
    "bytea": ScalarType.BINARY,
    "binary": ScalarType.BINARY,
    "varbinary": ScalarType.BINARY,
    "uuid": ScalarType.UUID,
}

# SQLite integers are always 64-bit
_SQLITE_FORWARD = {
    "int": ScalarType.INT64,
    "integer": ScalarType.INT64,
}

_SERIAL_TOKENS = {"smallserial", "serial2", "serial", "serial4", "bigserial", "serial8"}
_BOUNDED_TEXT_TOKENS = {"varchar", "character varying", "nvarchar"}


@dataclass(frozen=True)
class RawTypeMapping:
    """Result of mapping one raw type token."""

    scalar_type: ScalarType
    length: int | None = None
    auto_increment: bool = False
    diagnostic: Diagnostic | None = None


def _split_raw_type(raw: str) -> tuple[str, list[str]]:
    """Split 'tinyint(1) unsigned' into ('tinyint', ['1'])."""
    lowered = raw.strip().lower()
    args_match = _ARGS_RE.search(lowered)
    args = []
    if args_match:
        args = [a.strip() for a in args_match.group(1).split(",") if a.strip()]
    base = _ARGS_RE.sub(" ", lowered)
    words = [w for w in base.split() if w not in _DROPPED_QUALIFIERS]
    return " ".join(words), args


def _first_int(args: list[str]) -> int | None:
    if args and args[0].isdigit():
        return int(args[0])
    return None


def map_raw_type(
    raw: str,
    dialect: Dialect,
    table: str | None = None,
    column: str | None = None,
) -> RawTypeMapping:
    """Map a raw dialect type token to a ScalarType.

    Unknown tokens degrade to TEXT and carry an UnsupportedRawType warning.
    """
    base, args = _split_raw_type(raw)
    width = _first_int(args)

    if base == "tinyint":
        scalar = ScalarType.BOOL if width == 1 else ScalarType.INT16
        return RawTypeMapping(scalar)

    if base == "bit":
        scalar = ScalarType.BOOL if width in (None, 1) else ScalarType.BINARY
        return RawTypeMapping(scalar)

    scalar = None
    if dialect == Dialect.SQLITE:
        scalar = _SQLITE_FORWARD.get(base)
    if scalar is None:
        scalar = _FORWARD.get(base)

    if scalar is None:
        diag = warning(
            DiagnosticCode.UNSUPPORTED_RAW_TYPE,
            f"Unsupported type '{raw}', mapped to text",
            table=table,
            column=column,
        )
        return RawTypeMapping(ScalarType.TEXT, diagnostic=diag)

    length = width if base in _BOUNDED_TEXT_TOKENS else None
    return RawTypeMapping(scalar, length=length, auto_increment=base in _SERIAL_TOKENS)


# ============================================================================
# REVERSE: ScalarType -> DDL type token
# ============================================================================

BOOL_NOTE = "bool: 1 = true, 0 = false"

_REVERSE = {
    Dialect.MYSQL: {
        ScalarType.INT16: "SMALLINT",
        ScalarType.INT32: "INT",
        ScalarType.INT64: "BIGINT",
        ScalarType.BOOL: "TINYINT(1)",
        ScalarType.FLOAT64: "DOUBLE",
        ScalarType.TEXT: "TEXT",
        ScalarType.DATE: "DATE",
        ScalarType.DATETIME_NAIVE: "DATETIME",
        ScalarType.DATETIME_WITH_ZONE: "TIMESTAMP",
        ScalarType.BINARY: "BLOB",
        ScalarType.JSON: "JSON",
        ScalarType.UUID: "CHAR(36)",
    },
    Dialect.POSTGRES: {
        ScalarType.INT16: "SMALLINT",
        ScalarType.INT32: "INTEGER",
        ScalarType.INT64: "BIGINT",
        ScalarType.BOOL: "BOOLEAN",
        ScalarType.FLOAT64: "DOUBLE PRECISION",
        ScalarType.TEXT: "TEXT",
        ScalarType.DATE: "DATE",
        ScalarType.DATETIME_NAIVE: "TIMESTAMP",
        ScalarType.DATETIME_WITH_ZONE: "TIMESTAMP WITH TIME ZONE",
        ScalarType.BINARY: "BYTEA",
        ScalarType.JSON: "JSONB",
        ScalarType.UUID: "UUID",
    },
    Dialect.SQLITE: {
        ScalarType.INT16: "INTEGER",
        ScalarType.INT32: "INTEGER",
        ScalarType.INT64: "INTEGER",
        ScalarType.BOOL: "INTEGER",
        ScalarType.FLOAT64: "REAL",
        ScalarType.TEXT: "TEXT",
        ScalarType.DATE: "TEXT",
        ScalarType.DATETIME_NAIVE: "TEXT",
        ScalarType.DATETIME_WITH_ZONE: "TEXT",
        ScalarType.BINARY: "BLOB",
        ScalarType.JSON: "TEXT",
        ScalarType.UUID: "TEXT",
    },
}

_BOUNDED_TEXT = "VARCHAR({length})"

_SERIAL_TYPES = {
    ScalarType.INT16: "SMALLSERIAL",
    ScalarType.INT32: "SERIAL",
    ScalarType.INT64: "BIGSERIAL",
}


def _check_exhaustive() -> None:
    for dialect in Dialect:
        policy_for(dialect)
        table = _REVERSE.get(dialect, {})
        missing = [s.value for s in ScalarType if s not in table]
        if missing:
            raise UnknownDialectPolicy(
                f"Reverse type map for {dialect.value} is missing: {', '.join(missing)}"
            )


_check_exhaustive()


@dataclass(frozen=True)
class DdlType:
    """A rendered column type.

    Attributes:
        token: Type text including any auto-increment spelling
        note: Semantic hint rendered as a trailing SQL line comment
        inline_primary_key: True when the token already declares the primary key
    """

    token: str
    note: str | None = None
    inline_primary_key: bool = False


def ddl_type(column: ColumnSpec, dialect: Dialect) -> DdlType:
    """Render the DDL type for a column under a dialect."""
    policy = policy_for(dialect)
    try:
        token = _REVERSE[dialect][column.scalar_type]
    except KeyError:
        raise UnknownDialectPolicy(
            f"No {dialect.value} type for {column.scalar_type.value}", column=column.name
        ) from None

    if column.scalar_type == ScalarType.TEXT and column.length:
        token = _BOUNDED_TEXT.format(length=column.length)

    if column.scalar_type == ScalarType.BOOL and not policy.native_bool:
        return DdlType(token, note=BOOL_NOTE)

    if column.is_auto_increment and column.scalar_type.is_integer:
        return _auto_increment_type(token, column, policy)

    return DdlType(token)


def _auto_increment_type(token: str, column: ColumnSpec, policy: DialectPolicy) -> DdlType:
    style = policy.autoincrement_style
    if style == AutoIncrementStyle.MODIFIER:
        return DdlType(f"{token} {policy.autoincrement_keyword}")
    if style == AutoIncrementStyle.SERIAL:
        return DdlType(_SERIAL_TYPES[column.scalar_type])
    # SQLite only autoincrements the INTEGER PRIMARY KEY rowid alias
    if column.is_primary_key:
        return DdlType(
            f"INTEGER PRIMARY KEY {policy.autoincrement_keyword}", inline_primary_key=True
        )
    return DdlType(token)


# ============================================================================
# DEFAULT LITERALS
# ============================================================================

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_FUNCTION_RE = re.compile(r"^[A-Za-z_][\w.]*\s*\(.*\)$", re.DOTALL)
_KEYWORD_DEFAULTS = {"NULL", "CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME", "LOCALTIMESTAMP", "LOCALTIME"}
_TRUE_WORDS = {"1", "true", "t", "yes", "y", "on"}
_FALSE_WORDS = {"0", "false", "f", "no", "n", "off"}
_NUMERIC_TYPES = {ScalarType.INT16, ScalarType.INT32, ScalarType.INT64, ScalarType.FLOAT64}


def parse_bool_literal(value: str) -> bool | None:
    """Read a boolean default written as 1/0, true/false or b'1'/b'0'."""
    cleaned = value.strip().replace("\\'", "'").replace('\\"', '"')
    if cleaned.lower().startswith("b'") and cleaned.endswith("'") and len(cleaned) >= 4:
        cleaned = cleaned[2:-1]
    cleaned = cleaned.strip("'\"").lower()
    if cleaned in _TRUE_WORDS:
        return True
    if cleaned in _FALSE_WORDS:
        return False
    if _NUMERIC_RE.match(cleaned):
        return float(cleaned) != 0
    return None


def is_function_default(value: str) -> bool:
    """True for defaults that must be emitted unquoted (CURRENT_TIMESTAMP, now(), ...)."""
    stripped = value.strip()
    upper = stripped.upper()
    if upper in _KEYWORD_DEFAULTS or upper.startswith("CURRENT_"):
        return True
    return bool(_FUNCTION_RE.match(stripped))


def format_default(column: ColumnSpec, dialect: Dialect) -> str | None:
    """Render a column's default literal for a dialect, or None for no DEFAULT clause."""
    if column.default is None or column.is_auto_increment:
        return None

    policy = policy_for(dialect)
    value = column.default

    if column.scalar_type == ScalarType.BOOL:
        parsed = parse_bool_literal(value)
        if parsed is not None:
            return policy.bool_literal(parsed)

    if is_function_default(value):
        return value.strip()

    if column.scalar_type in _NUMERIC_TYPES and _NUMERIC_RE.match(value.strip()):
        return value.strip()

    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]

    return policy.string_literal(value)
