"""Per-dialect DDL conventions.

Both emitters read the same policy value instead of branching on the
dialect name, so supporting another engine means adding one entry to
POLICIES.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from schemabridge.diagnostics import UnknownDialectPolicy
from schemabridge.schema.types import Dialect


class AutoIncrementStyle(Enum):
    """How an auto-increment integer column is spelled."""

    MODIFIER = "modifier"
    SERIAL = "serial"
    INTEGER_PRIMARY_KEY = "integer_primary_key"


class CommentStyle(Enum):
    """Where column and table comments go."""

    INLINE = "inline"
    STATEMENT = "statement"
    LINE = "line"


class UniqueStyle(Enum):
    """How a single-column unique constraint is declared inside CREATE TABLE."""

    KEY = "key"
    CONSTRAINT = "constraint"


@dataclass(frozen=True)
class DialectPolicy:
    """Static DDL rules for one dialect."""

    dialect: Dialect
    quote_open: str
    quote_close: str
    autoincrement_style: AutoIncrementStyle
    autoincrement_keyword: str
    native_bool: bool
    bool_true: str
    bool_false: str
    comment_style: CommentStyle
    supports_comments: bool
    unique_style: UniqueStyle
    backslash_escapes: bool = False

    def quote(self, identifier: str) -> str:
        """Quote an identifier, doubling any embedded closing quote."""
        escaped = identifier.replace(self.quote_close, self.quote_close * 2)
        return f"{self.quote_open}{escaped}{self.quote_close}"

    def bool_literal(self, value: bool) -> str:
        return self.bool_true if value else self.bool_false

    def string_literal(self, text: str) -> str:
        """Single-quote a string, escaping backslashes where the engine reads them."""
        if self.backslash_escapes:
            text = text.replace("\\", "\\\\")
        escaped = text.replace("'", "''")
        return f"'{escaped}'"

    @property
    def inline_comments(self) -> bool:
        return self.comment_style == CommentStyle.INLINE

    @property
    def comment_statements(self) -> bool:
        return self.comment_style == CommentStyle.STATEMENT


POLICIES = MappingProxyType({
    Dialect.MYSQL: DialectPolicy(
        dialect=Dialect.MYSQL,
        quote_open="`",
        quote_close="`",
        autoincrement_style=AutoIncrementStyle.MODIFIER,
        autoincrement_keyword="AUTO_INCREMENT",
        native_bool=False,
        bool_true="1",
        bool_false="0",
        comment_style=CommentStyle.INLINE,
        supports_comments=True,
        unique_style=UniqueStyle.KEY,
        backslash_escapes=True,
    ),
    Dialect.POSTGRES: DialectPolicy(
        dialect=Dialect.POSTGRES,
        quote_open='"',
        quote_close='"',
        autoincrement_style=AutoIncrementStyle.SERIAL,
        autoincrement_keyword="",
        native_bool=True,
        bool_true="TRUE",
        bool_false="FALSE",
        comment_style=CommentStyle.STATEMENT,
        supports_comments=True,
        unique_style=UniqueStyle.CONSTRAINT,
    ),
    Dialect.SQLITE: DialectPolicy(
        dialect=Dialect.SQLITE,
        quote_open='"',
        quote_close='"',
        autoincrement_style=AutoIncrementStyle.INTEGER_PRIMARY_KEY,
        autoincrement_keyword="AUTOINCREMENT",
        native_bool=False,
        bool_true="1",
        bool_false="0",
        comment_style=CommentStyle.LINE,
        supports_comments=False,
        unique_style=UniqueStyle.CONSTRAINT,
    ),
})


def policy_for(dialect: Dialect) -> DialectPolicy:
    """Look up the policy for a dialect."""
    try:
        return POLICIES[dialect]
    except KeyError:
        raise UnknownDialectPolicy(f"No dialect policy registered for {dialect!r}") from None
