"""Closed scalar type set and dialect enumeration."""

from enum import Enum

from schemabridge.diagnostics import UnknownDialectPolicy


class ScalarType(Enum):
    """Dialect-neutral column types understood by both directions."""

    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    BOOL = "bool"
    FLOAT64 = "float64"
    TEXT = "text"
    DATE = "date"
    DATETIME_NAIVE = "datetime_naive"
    DATETIME_WITH_ZONE = "datetime_with_zone"
    BINARY = "binary"
    JSON = "json"
    UUID = "uuid"

    @property
    def is_integer(self) -> bool:
        return self in INTEGER_TYPES


INTEGER_TYPES = frozenset({ScalarType.INT16, ScalarType.INT32, ScalarType.INT64})


class Dialect(Enum):
    """Supported SQL engines."""

    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, name: str) -> "Dialect":
        """Resolve a user-supplied dialect name (case-insensitive)."""
        key = name.strip().lower()
        if key in _DIALECT_ALIASES:
            return _DIALECT_ALIASES[key]
        raise UnknownDialectPolicy(f"Unknown dialect '{name}'. Supported: mysql, postgres, sqlite")

    @classmethod
    def from_url(cls, url: str) -> "Dialect":
        """Infer the dialect from a database URL scheme."""
        lowered = url.strip().lower()
        for prefix, dialect in _URL_PREFIXES:
            if lowered.startswith(prefix):
                return dialect
        raise UnknownDialectPolicy(
            "Unsupported database URL. Supported: mysql://, postgres://, sqlite://"
        )


_DIALECT_ALIASES = {
    "mysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "postgres": Dialect.POSTGRES,
    "postgresql": Dialect.POSTGRES,
    "pg": Dialect.POSTGRES,
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
}

_URL_PREFIXES = (
    ("mysql://", Dialect.MYSQL),
    ("mariadb://", Dialect.MYSQL),
    ("postgres://", Dialect.POSTGRES),
    ("postgresql://", Dialect.POSTGRES),
    ("sqlite:", Dialect.SQLITE),
)
